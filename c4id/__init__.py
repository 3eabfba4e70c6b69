"""C4 IDs: consistent identifiers for data, collections, trees, a store and the c4 command."""

__version__ = "0.8"

__all__ = ["cli", "core", "db", "errors", "fixed", "slices", "storage", "tree"]