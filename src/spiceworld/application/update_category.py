"""Application service: Update Category use case (patch)."""

from __future__ import annotations

import logging

from spiceworld.application.category_schema import (
    build_attribute,
    build_values,
    save_schema_change,
)
from spiceworld.application.dto import AttributeOperationsSpec, CategoryDTO, category_to_dto
from spiceworld.application.image_uploads import discard
from spiceworld.application.listing_cache import ListingCache
from spiceworld.domain.exceptions import ConflictError, EntityNotFoundError, ValidationError
from spiceworld.domain.gateway.file_storage import FileStorage
from spiceworld.domain.model.category import Category, normalize_category_name
from spiceworld.domain.model.operations import UploadFile
from spiceworld.domain.model.product import Image
from spiceworld.domain.model.value_objects import new_id
from spiceworld.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def apply_attribute_operations(category: Category, ops: AttributeOperationsSpec) -> list[str]:
    """Apply deletes, then updates, then creates; return removed value ids."""
    removed: list[str] = []
    for attribute_id in ops.delete:
        removed.extend(category.remove_attribute(attribute_id))

    for update in ops.update:
        attr = category.find_attribute(update.id)
        if update.name is not None:
            category.rename_attribute(attr.id, update.name)
        if update.delete_value_ids:
            removed.extend(category.remove_values(attr.id, list(update.delete_value_ids)))
        if update.add_values:
            category.add_values(attr.id, build_values(attr.name, update.add_values))

    for spec in ops.create:
        category.add_attribute(build_attribute(category.id, spec.name, spec.values))
    return removed


class UpdateCategoryHandler:

    def __init__(self, uow: UnitOfWork, storage: FileStorage, cache: ListingCache) -> None:
        self._uow = uow
        self._storage = storage
        self._cache = cache

    def handle(
        self,
        category_id: str,
        name: str | None = None,
        image: UploadFile | None = None,
        attributes: AttributeOperationsSpec | None = None,
    ) -> CategoryDTO:
        """Rename a category, replace its image and edit its attribute schema.

        Removed values are stripped from the category's variants; a
        published product that no longer passes validation is moved to
        DRAFT and reported in ``drafted_product_ids``.  The old image's
        files are deleted only after the commit.
        """
        uploaded_keys: list[str] = []
        replaced_keys: list[str] = []

        with self._uow:
            category = self._uow.categories.get_by_id(category_id)
            if category is None:
                raise EntityNotFoundError(f"Category with ID '{category_id}' not found")

            if name is not None:
                normalized = normalize_category_name(name)
                if not normalized:
                    raise ValidationError("Category name is required")
                other = self._uow.categories.get_by_name(normalized)
                if other is not None and other.id != category.id:
                    raise ConflictError(f"Category '{normalized}' already exists")
                category.rename(normalized)

            removed = apply_attribute_operations(category, attributes or AttributeOperationsSpec())

            if image is not None:
                stored = self._storage.upload(category.name, [image])[0]
                uploaded_keys = stored.keys
                if category.image is not None:
                    replaced_keys = category.image.files.keys
                category.image = Image(
                    id=new_id(),
                    files=stored,
                    alt_text=f"{category.name} image",
                    is_thumbnail=True,
                )

            try:
                drafted = save_schema_change(self._uow, category, removed)
                self._uow.commit()
            except Exception:
                discard(self._storage, uploaded_keys, "failed category update")
                raise

        logger.info(
            "Updated category %s (%r): %d value(s) removed, %d product(s) drafted",
            category.id,
            category.name,
            len(removed),
            len(drafted),
        )
        discard(self._storage, replaced_keys, "category image replace")
        # Summaries carry the category name, so every page of this category is stale.
        self._cache.invalidate(category_ids=[category.id])
        return category_to_dto(category, drafted)
