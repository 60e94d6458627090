"""Local filesystem upload storage."""

from __future__ import annotations

from pathlib import Path, PurePath

from starlette.concurrency import run_in_threadpool

from devcamper.adapters.storage.base import FileStore, FileStoreError


def _safe_name(name: str) -> str | None:
    safe_name = PurePath(name).name
    if not safe_name or safe_name in {".", ".."}:
        return None
    return safe_name


class LocalFileStore(FileStore):
    """Writes uploads into one directory and returns ``/uploads/<name>`` paths."""

    def __init__(self, base_path: str = "./public/uploads", public_prefix: str = "/uploads") -> None:
        self.base_path = Path(base_path)
        self._public_prefix = public_prefix.rstrip("/")

    def _write(self, data: bytes, name: str) -> None:
        self.base_path.mkdir(parents=True, exist_ok=True)
        (self.base_path / name).write_bytes(data)

    async def save(self, data: bytes, name: str) -> str:
        safe_name = _safe_name(name)
        if safe_name is None:
            raise FileStoreError("Invalid file name.")
        try:
            await run_in_threadpool(self._write, data, safe_name)
        except OSError as exc:
            raise FileStoreError("Problem with file upload") from exc
        return f"{self._public_prefix}/{safe_name}"

    def locate(self, name: str) -> Path | None:
        safe_name = _safe_name(name)
        if safe_name is None or safe_name != name:
            return None
        path = self.base_path / safe_name
        return path if path.is_file() else None


__all__ = ["LocalFileStore"]
