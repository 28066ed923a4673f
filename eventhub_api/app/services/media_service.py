"""
Object storage for banner images.

``MediaStorage`` is a small key/value object store on top of a local
directory.  Keys are slash-separated relative paths such as
``events/events_Ab3x.png``; each key maps to one file below
``settings.media_root`` and is publicly served under
``settings.media_base_url`` (see ``main.create_app``).

Writes are not transactional with database updates: a failure between
storing an image and recording its URL leaves an orphaned object,
which is harmless and not cleaned up.
"""

import logging
import mimetypes
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import List, Optional
from urllib.parse import urlparse

from ..core.config import resolve_project_path, settings
from ..core.errors import InvalidInputError
from ..core.utils import generate_safe_filename, is_valid_image_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    key: str
    url: str


@dataclass(frozen=True)
class ObjectMetadata:
    size: int
    uploaded: datetime
    content_type: Optional[str]


class MediaStorage:
    """Filesystem-backed object store."""

    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None) -> None:
        self.root = resolve_project_path(root or settings.media_root)
        self.base_url = (base_url if base_url is not None else settings.media_base_url).rstrip("/")

    # ------------------------------------------------------------------
    # Keys and URLs
    # ------------------------------------------------------------------
    def path_for(self, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not parts or key.startswith("/") or any(part in ("..", ".") for part in parts):
            raise ValueError(f"Invalid object key: {key!r}")
        return self.root.joinpath(*parts)

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        """Extract the object key from a URL produced by ``url_for``.

        Returns ``None`` for URLs that do not point into this store.
        """
        path = urlparse(url).path if "://" in url else url
        base_path = urlparse(self.base_url).path if "://" in self.base_url else self.base_url
        prefix = base_path.rstrip("/") + "/"
        if not path.startswith(prefix):
            return None
        key = path[len(prefix):]
        return key or None

    # ------------------------------------------------------------------
    # Object operations
    # ------------------------------------------------------------------
    def put(self, key: str, data: bytes) -> StoredObject:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug("Stored %s (%d bytes)", key, len(data))
        return StoredObject(key=key, url=self.url_for(key))

    def get(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def delete(self, key: str) -> bool:
        """Remove an object.  Returns False if it did not exist."""
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.debug("Deleted %s", key)
        return True

    def metadata(self, key: str) -> Optional[ObjectMetadata]:
        path = self.path_for(key)
        if not path.is_file():
            return None
        stat = path.stat()
        content_type, _ = mimetypes.guess_type(path.name)
        return ObjectMetadata(
            size=stat.st_size,
            uploaded=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            content_type=content_type,
        )

    def list(self, prefix: str = "", limit: int = 100) -> List[str]:
        """Return up to ``limit`` keys starting with ``prefix``, sorted."""
        if not self.root.is_dir():
            return []
        keys = sorted(
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob("*")
            if path.is_file()
        )
        return [key for key in keys if key.startswith(prefix)][:limit]

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------
    def upload_image(
        self,
        data: bytes,
        filename: Optional[str],
        content_type: Optional[str],
        folder: str = "events",
    ) -> StoredObject:
        """Validate and store an uploaded image under ``folder``.

        Raises ``InvalidInputError`` for unsupported content types and
        for files larger than ``settings.max_upload_bytes``.
        """
        if not is_valid_image_type(content_type):
            raise InvalidInputError("Invalid file type. Only images are allowed.")
        if len(data) > settings.max_upload_bytes:
            limit_mb = settings.max_upload_bytes // (1024 * 1024)
            raise InvalidInputError(f"File size exceeds {limit_mb}MB limit.")
        key = f"{folder}/{generate_safe_filename(filename, folder)}"
        return self.put(key, data)

    def discard_url(self, url: Optional[str]) -> None:
        """Delete the object behind ``url``, logging instead of raising on failure."""
        if not url:
            return
        key = self.key_from_url(url)
        if not key:
            return
        try:
            self.delete(key)
        except (OSError, ValueError):
            logger.warning("Failed to delete stored object %s", key, exc_info=True)


def get_media_storage() -> MediaStorage:
    """Return a storage bound to the current settings."""
    return MediaStorage()
