"""In-memory task store with single-level undo and a FIFO processing queue."""

__version__ = "1.0.0"
