"""Application service: Set Variant Stock use case (staff restock)."""

from __future__ import annotations

import logging

from spiceworld.application.listing_cache import ListingCache
from spiceworld.domain.exceptions import EntityNotFoundError, ValidationError
from spiceworld.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class SetStockHandler:

    def __init__(self, uow: UnitOfWork, cache: ListingCache) -> None:
        self._uow = uow
        self._cache = cache

    def handle(self, variant_id: str, stock: int) -> None:
        if stock < 0:
            raise ValidationError("Stock cannot be negative")

        with self._uow:
            snapshot = self._uow.products.get_variant(variant_id)
            if snapshot is None:
                raise EntityNotFoundError(f"Variant with ID '{variant_id}' not found")
            product = self._uow.products.get_by_id(snapshot.product_id)
            self._uow.products.set_stock(variant_id, stock)
            self._uow.commit()

        logger.info("Stock of variant %s set to %d (was %d)", variant_id, stock, snapshot.stock)
        if product is not None:
            self._cache.invalidate(
                category_ids=[product.category_id], statuses=[product.status]
            )
