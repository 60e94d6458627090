"""File storage interfaces."""

from abc import ABC, abstractmethod
from pathlib import Path


class FileStoreError(Exception):
    """Raised when an upload cannot be persisted."""


class FileStore(ABC):
    @abstractmethod
    async def save(self, data: bytes, name: str) -> str:
        """Persist ``data`` under ``name`` and return the public path."""

    @abstractmethod
    def locate(self, name: str) -> Path | None:
        """Return the stored file for ``name``, or ``None`` when there is none."""


__all__ = ["FileStore", "FileStoreError"]
