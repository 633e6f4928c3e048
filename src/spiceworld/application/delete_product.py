"""Application service: Delete Product use case."""

from __future__ import annotations

import logging

from spiceworld.application.image_uploads import discard
from spiceworld.application.listing_cache import ListingCache
from spiceworld.domain.exceptions import EntityNotFoundError
from spiceworld.domain.gateway.file_storage import FileStorage
from spiceworld.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class DeleteProductHandler:

    def __init__(self, uow: UnitOfWork, storage: FileStorage, cache: ListingCache) -> None:
        self._uow = uow
        self._storage = storage
        self._cache = cache

    def handle(self, product_id: str) -> None:
        """Delete a product; variants and images go with it.

        Existing orders keep their item snapshots.
        """
        with self._uow:
            product = self._uow.products.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product with ID '{product_id}' not found")
            self._uow.products.delete(product.id)
            self._uow.commit()

        logger.info("Deleted product %s (%s)", product.id, product.name)
        discard(
            self._storage,
            [key for image in product.images for key in image.files.keys],
            "product delete",
        )
        self._cache.invalidate(category_ids=[product.category_id], statuses=[product.status])
