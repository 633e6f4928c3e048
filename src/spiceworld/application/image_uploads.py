"""Upload and cleanup of the files referenced by image operations.

Only files that an operation points at are uploaded.  Uploads happen
before the database write, so a failed write must call ``discard`` to
remove them again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from spiceworld.domain.exceptions import StorageError
from spiceworld.domain.gateway.file_storage import FileStorage
from spiceworld.domain.model.operations import ImageOperations, UploadFile
from spiceworld.domain.model.product import StoredImage

logger = logging.getLogger(__name__)


@dataclass
class UploadedImages:
    by_index: dict[int, StoredImage] = field(default_factory=dict)

    def for_creates(self, ops: ImageOperations) -> list[StoredImage]:
        return [self.by_index[op.file_index] for op in ops.create]

    def for_updates(self, ops: ImageOperations) -> dict[str, StoredImage]:
        return {
            op.id: self.by_index[op.file_index]
            for op in ops.update
            if op.file_index is not None
        }

    @property
    def keys(self) -> list[str]:
        return [key for stored in self.by_index.values() for key in stored.keys]


def upload_referenced_files(
    storage: FileStorage,
    name: str,
    files: list[UploadFile],
    ops: ImageOperations,
) -> UploadedImages:
    indices = sorted(
        {op.file_index for op in ops.create}
        | {op.file_index for op in ops.update if op.file_index is not None}
    )
    if not indices:
        return UploadedImages()

    stored = storage.upload(name, [files[idx] for idx in indices])
    if len(stored) != len(indices):
        raise StorageError(
            f"Storage returned {len(stored)} upload(s) for {len(indices)} file(s)"
        )
    logger.info("Uploaded %d image(s) for %r", len(indices), name)
    return UploadedImages(by_index=dict(zip(indices, stored)))


def discard(storage: FileStorage, keys: list[str], reason: str) -> None:
    """Best-effort delete of stored files; failures are logged, not raised."""
    if not keys:
        return
    try:
        storage.delete(keys)
    except StorageError:
        logger.warning("Could not delete %d stored file(s) after %s", len(keys), reason)
    else:
        logger.info("Deleted %d stored file(s) after %s", len(keys), reason)
