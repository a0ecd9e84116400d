from .sheet_client import SheetClient

__all__ = ["SheetClient"]
