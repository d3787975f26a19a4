from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from pathlib import Path, PurePath

from app.core.config import settings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageUpload:
    filename: str | None
    data: bytes


class LocalImageStore:
    def __init__(self, base_dir: str, url_prefix: str = "/uploads"):
        self.base = Path(base_dir)
        self.base.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")

    @staticmethod
    def unique_name(original_name: str | None) -> str:
        # "<epoch ms>-<basename>"; keep only the final path component of the client's name
        base = PurePath((original_name or "").replace("\\", "/")).name or "image"
        return f"{int(time.time() * 1000)}-{base}"

    def save(self, *, original_name: str | None, data: bytes) -> str:
        """
        Write an uploaded image and return the relative URL it is served from.
        """
        name = self.unique_name(original_name)
        path = self.base / name
        path.write_bytes(data)
        log.info("stored upload %s (%d bytes)", name, len(data))
        return f"{self.url_prefix}/{name}"

    def resolve_path(self, url: str) -> Path:
        """
        Map a stored image URL ("/uploads/<name>") back to its file.
        """
        prefix = f"{self.url_prefix}/"
        if not url.startswith(prefix):
            raise ValueError(f"Not an upload URL: {url}")
        return self.base / url[len(prefix):]

    def delete(self, url: str) -> None:
        """
        Remove a stored image. Missing files are ignored.
        """
        self.resolve_path(url).unlink(missing_ok=True)
        log.info("removed upload %s", url)


_store: LocalImageStore | None = None


def get_image_store() -> LocalImageStore:
    global _store
    if _store is None:
        _store = LocalImageStore(settings.upload_dir, settings.uploads_url_prefix)
    return _store
