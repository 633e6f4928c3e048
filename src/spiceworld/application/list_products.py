"""Application service: List Products use case (query).

Pages are served from the listing cache when possible; writes drop the
affected pages, so a reader may see a stale page for at most the cache
TTL only if it raced a write.
"""

from __future__ import annotations

from spiceworld.application.dto import ProductSummaryDTO, summary_to_dto
from spiceworld.application.listing_cache import ListingCache
from spiceworld.domain.model.listing import ListingQuery
from spiceworld.domain.model.product import ProductStatus
from spiceworld.domain.repository.unit_of_work import UnitOfWork


class ListProductsHandler:

    def __init__(self, uow: UnitOfWork, cache: ListingCache) -> None:
        self._uow = uow
        self._cache = cache

    def handle(self, query: ListingQuery) -> list[ProductSummaryDTO]:
        cached = self._cache.get(query)
        if cached is not None:
            return cached

        with self._uow:
            summaries = self._uow.products.list_summaries(query)
        result = [summary_to_dto(s) for s in summaries]
        self._cache.put(query, result)
        return result


class CountProductsHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        status: ProductStatus | None = None,
        category_ids: tuple[str, ...] = (),
    ) -> int:
        with self._uow:
            return self._uow.products.count(status=status, category_ids=category_ids)
