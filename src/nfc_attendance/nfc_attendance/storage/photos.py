from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

_SAFE_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


def blob_key(category: str, person_id: str) -> str:
    """``<category>/<id>.jpg``; both parts must be plain names."""
    if not _SAFE_NAME.match(category) or not _SAFE_NAME.match(person_id) or ".." in (category + person_id):
        raise ValueError(f"Unsafe blob key: {category!r}/{person_id!r}")
    return f"{category}/{person_id}.jpg"


class PhotoStorage(Protocol):
    def put(self, category: str, person_id: str, data: bytes) -> str:
        """Store the photo and return a retrievable URL."""

        raise NotImplementedError

    def url_for(self, category: str, person_id: str) -> Optional[str]:
        raise NotImplementedError


class LocalPhotoStorage(PhotoStorage):
    """Photo blobs on the local filesystem, served under ``base_url``."""

    def __init__(self, root: str | Path, base_url: str = "/photos"):
        self._root = Path(root)
        self._base_url = base_url.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, category: str, person_id: str) -> Path:
        return self._root / blob_key(category, person_id)

    def put(self, category: str, person_id: str, data: bytes) -> str:
        path = self.path_for(category, person_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Stored photo %s (%d bytes)", path, len(data))
        return f"{self._base_url}/{blob_key(category, person_id)}"

    def url_for(self, category: str, person_id: str) -> Optional[str]:
        if not self.path_for(category, person_id).is_file():
            return None
        return f"{self._base_url}/{blob_key(category, person_id)}"
