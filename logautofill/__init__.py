"""LogAutoFill: handwritten equipment log extraction and spreadsheet sync."""

__version__ = "1.0.0"
