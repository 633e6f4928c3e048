"""Application service: Create Category use case."""

from __future__ import annotations

import logging

from spiceworld.application.category_schema import build_attribute
from spiceworld.application.dto import AttributeSpec, CategoryDTO, category_to_dto
from spiceworld.application.image_uploads import discard
from spiceworld.domain.exceptions import ConflictError, ValidationError
from spiceworld.domain.gateway.file_storage import FileStorage
from spiceworld.domain.model.category import Category, normalize_category_name
from spiceworld.domain.model.operations import UploadFile
from spiceworld.domain.model.product import Image
from spiceworld.domain.model.value_objects import new_id
from spiceworld.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class CreateCategoryHandler:

    def __init__(self, uow: UnitOfWork, storage: FileStorage) -> None:
        self._uow = uow
        self._storage = storage

    def handle(
        self,
        name: str,
        attributes: list[AttributeSpec] | None = None,
        image: UploadFile | None = None,
    ) -> CategoryDTO:
        """Create a category with its attribute schema.

        The name is stored normalized (trimmed, single-spaced, lower-case)
        and must be unique.  An optional image becomes the category
        thumbnail.
        """
        normalized = normalize_category_name(name or "")
        if not normalized:
            raise ValidationError("Category name is required")

        category_id = new_id()
        category = Category(
            id=category_id,
            name=normalized,
            attributes=[
                build_attribute(category_id, spec.name, spec.values)
                for spec in attributes or []
            ],
        )

        with self._uow:
            if self._uow.categories.get_by_name(normalized) is not None:
                raise ConflictError(f"Category '{normalized}' already exists")

            uploaded_keys: list[str] = []
            if image is not None:
                stored = self._storage.upload(normalized, [image])[0]
                uploaded_keys = stored.keys
                category.image = Image(
                    id=new_id(),
                    files=stored,
                    alt_text=f"{normalized} image",
                    is_thumbnail=True,
                )
            try:
                self._uow.categories.add(category)
                self._uow.commit()
            except Exception:
                discard(self._storage, uploaded_keys, "failed category create")
                raise

        logger.info(
            "Created category %r with %d attribute(s)", category.name, len(category.attributes)
        )
        return category_to_dto(category)
