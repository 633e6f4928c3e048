"""File storage collaborator used for product and category images."""

from __future__ import annotations

from abc import ABC, abstractmethod

from spiceworld.domain.model.operations import UploadFile
from spiceworld.domain.model.product import StoredImage


class FileStorage(ABC):

    @abstractmethod
    def upload(self, name: str, files: list[UploadFile]) -> list[StoredImage]:
        """Store ``files`` under ``name``; one ``StoredImage`` per file, in order.

        Raises ``StorageError`` if any file could not be stored.
        """

    @abstractmethod
    def delete(self, keys: list[str]) -> None:
        """Remove stored files by key; unknown keys are ignored."""
