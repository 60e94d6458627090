"""Upload storage adapters."""

from .base import FileStore, FileStoreError
from .local import LocalFileStore

__all__ = ["FileStore", "FileStoreError", "LocalFileStore"]
