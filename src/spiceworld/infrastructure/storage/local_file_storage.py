"""FileStorage that writes uploads to a local directory.

No resizing happens here: the same bytes are stored once per size
variant so callers always get thumb/medium/large keys and urls.
"""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path

from spiceworld.domain.exceptions import StorageError
from spiceworld.domain.gateway.file_storage import FileStorage
from spiceworld.domain.model.operations import UploadFile
from spiceworld.domain.model.product import StoredFile, StoredImage

logger = logging.getLogger(__name__)

SIZES = ("thumb", "medium", "large")
ALLOWED_SUFFIXES = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


def _safe_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "file"


class LocalFileStorage(FileStorage):

    def __init__(self, root: Path, base_url: str) -> None:
        self._root = root
        self._base_url = base_url.rstrip("/")

    def upload(self, name: str, files: list[UploadFile]) -> list[StoredImage]:
        stored: list[StoredImage] = []
        written: list[str] = []
        try:
            for upload in files:
                suffix = Path(upload.filename).suffix.lower()
                if suffix not in ALLOWED_SUFFIXES:
                    raise StorageError(f"Unsupported image type: {upload.filename!r}")
                if not upload.content:
                    raise StorageError(f"Empty file: {upload.filename!r}")

                stem = f"{_safe_name(name)}-{uuid.uuid4().hex[:12]}"
                files_by_size: dict[str, StoredFile] = {}
                for size in SIZES:
                    key = f"{size}/{stem}{suffix}"
                    path = self._root / key
                    path.parent.mkdir(parents=True, exist_ok=True)
                    path.write_bytes(upload.content)
                    written.append(key)
                    files_by_size[size] = StoredFile(key=key, url=f"{self._base_url}/{key}")
                stored.append(StoredImage(**files_by_size))
        except OSError as exc:
            self.delete(written)
            raise StorageError(f"Could not store files for {name!r}: {exc}") from exc
        except StorageError:
            self.delete(written)
            raise
        return stored

    def delete(self, keys: list[str]) -> None:
        for key in keys:
            path = self._root / key
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise StorageError(f"Could not delete {key!r}: {exc}") from exc
        logger.debug("Deleted %d stored file(s)", len(keys))
