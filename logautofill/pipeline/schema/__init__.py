from .log_record import Confidence, LogRecord, ManualForm, SyncStatus

__all__ = ["Confidence", "LogRecord", "ManualForm", "SyncStatus"]
