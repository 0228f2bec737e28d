from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Protocol

from studenthub.config import Settings, get_settings
from studenthub.errors import NotFound, StorageCleanupFailed, StorageError

logger = logging.getLogger(__name__)

_SAFE_SCOPE = re.compile(r"[^A-Za-z0-9_.-]+")


class StorageBackend(Protocol):
    def put(self, data: bytes, owner_scope: str, filename: str = "") -> str: ...

    def get_url(self, locator: str) -> str: ...

    def delete(self, locator: str) -> None: ...


class LocalFileStorage:
    """Stores uploads on disk as ``<root>/<owner scope>/<uuid>.<ext>``."""

    def __init__(self, root: Path, url_prefix: str = "/api/files"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def put(self, data: bytes, owner_scope: str, filename: str = "") -> str:
        scope = _SAFE_SCOPE.sub("_", owner_scope).strip("._") or "anonymous"
        suffix = Path(filename).suffix.lower()
        locator = f"{scope}/{uuid.uuid4().hex}{suffix}"
        target = self.resolve(locator)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"could not store upload: {exc}") from exc
        return locator

    def get_url(self, locator: str) -> str:
        return f"{self.url_prefix}/{locator}"

    def delete(self, locator: str) -> None:
        try:
            self.resolve(locator).unlink()
        except (OSError, NotFound) as exc:
            raise StorageCleanupFailed(locator, str(exc)) from exc

    def resolve(self, locator: str) -> Path:
        root = self.root.resolve()
        path = (root / locator).resolve()
        if root not in path.parents:
            raise NotFound("file not found")
        return path


def get_storage(settings: Settings | None = None) -> StorageBackend:
    settings = settings or get_settings()
    return LocalFileStorage(settings.upload_dir, url_prefix=settings.file_url_prefix)
