"""Application service: Delete Category use case."""

from __future__ import annotations

import logging

from spiceworld.application.image_uploads import discard
from spiceworld.application.listing_cache import ListingCache
from spiceworld.domain.exceptions import ConflictError, EntityNotFoundError
from spiceworld.domain.gateway.file_storage import FileStorage
from spiceworld.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class DeleteCategoryHandler:

    def __init__(self, uow: UnitOfWork, storage: FileStorage, cache: ListingCache) -> None:
        self._uow = uow
        self._storage = storage
        self._cache = cache

    def handle(self, category_id: str) -> None:
        """Delete an empty category with its attributes, values and image.

        A category that still has products cannot be deleted; move or
        delete the products first.
        """
        with self._uow:
            category = self._uow.categories.get_by_id(category_id)
            if category is None:
                raise EntityNotFoundError(f"Category with ID '{category_id}' not found")
            products = self._uow.products.count(category_ids=(category_id,))
            if products:
                raise ConflictError(
                    f"Category '{category.name}' still has {products} product(s)"
                )
            self._uow.categories.delete(category_id)
            self._uow.commit()

        logger.info("Deleted category %s (%r)", category.id, category.name)
        if category.image is not None:
            discard(self._storage, category.image.files.keys, "category delete")
        self._cache.invalidate(category_ids=[category_id])
