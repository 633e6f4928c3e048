"""Bounded, time-expiring cache of product listing pages.

Entries are keyed by the ``ListingQuery`` itself.  A product write drops
only the pages whose filters could contain that product: an entry is
affected when its status filter is unset or among the written statuses
AND its category filter is unset or overlaps the written categories.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from spiceworld.domain.model.listing import ListingQuery
from spiceworld.domain.model.product import ProductStatus

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 500
DEFAULT_TTL_SECONDS = 600.0


@dataclass
class _Entry:
    value: Any
    expires_at: float


class ListingCache:
    """LRU cache with a sliding TTL: every hit pushes the expiry back."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[ListingQuery, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, query: ListingQuery) -> Any | None:
        with self._lock:
            entry = self._entries.get(query)
            if entry is None:
                return None
            now = self._clock()
            if entry.expires_at <= now:
                del self._entries[query]
                return None
            entry.expires_at = now + self._ttl
            self._entries.move_to_end(query)
            return entry.value

    def put(self, query: ListingQuery, value: Any) -> None:
        with self._lock:
            self._entries[query] = _Entry(value=value, expires_at=self._clock() + self._ttl)
            self._entries.move_to_end(query)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def invalidate(
        self,
        category_ids: Iterable[str] | None = None,
        statuses: Iterable[ProductStatus] | None = None,
    ) -> int:
        """Drop affected entries and return how many were dropped.

        With no filters the whole cache is cleared.
        """
        with self._lock:
            if category_ids is None and statuses is None:
                dropped = len(self._entries)
                self._entries.clear()
            else:
                categories = set(category_ids) if category_ids is not None else None
                status_set = set(statuses) if statuses is not None else None
                stale = [
                    query
                    for query in self._entries
                    if _affected(query, categories, status_set)
                ]
                for query in stale:
                    del self._entries[query]
                dropped = len(stale)
        if dropped:
            logger.debug("Listing cache: dropped %d entr(y/ies)", dropped)
        return dropped

    def clear(self) -> None:
        self.invalidate()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _affected(
    query: ListingQuery,
    categories: set[str] | None,
    statuses: set[ProductStatus] | None,
) -> bool:
    status_hit = statuses is None or query.status is None or query.status in statuses
    category_hit = (
        categories is None
        or not query.category_ids
        or not categories.isdisjoint(query.category_ids)
    )
    return status_hit and category_hit
