"""External sorting for data sets that do not fit in memory."""

__version__ = "0.1.5"

__all__ = ["buffer", "chunk", "merger", "sort", "formats", "records", "cli"]