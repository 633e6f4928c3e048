"""Read models for the product listing.

``ListingQuery`` doubles as the listing cache key, so it must stay
hashable: every collection field is a tuple.
"""

from __future__ import annotations

from dataclasses import dataclass

from spiceworld.domain.exceptions import ValidationError
from spiceworld.domain.model.product import ProductStatus
from spiceworld.domain.model.value_objects import Money

SORT_FIELDS = ("name", "created_at", "price")
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ListingQuery:
    sort_by: str = "name"
    sort_dir: str = "asc"
    skip: int = 0
    take: int = 25
    name: str | None = None
    status: ProductStatus | None = None
    category_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.sort_by not in SORT_FIELDS:
            raise ValidationError(
                f"Cannot sort by {self.sort_by!r}, expected one of {', '.join(SORT_FIELDS)}"
            )
        if self.sort_dir not in ("asc", "desc"):
            raise ValidationError(f"Sort direction must be 'asc' or 'desc', got {self.sort_dir!r}")
        if self.skip < 0:
            raise ValidationError("skip cannot be negative")
        if not 1 <= self.take <= MAX_PAGE_SIZE:
            raise ValidationError(f"take must be between 1 and {MAX_PAGE_SIZE}")
        # Filter order does not change the result set.
        object.__setattr__(self, "category_ids", tuple(sorted(set(self.category_ids))))


@dataclass(frozen=True)
class ProductSummary:
    id: str
    name: str
    slug: str
    status: ProductStatus
    category_id: str
    category_name: str
    min_price: Money | None  # over in-stock variants only
    max_price: Money | None
    total_stock: int
    thumbnail_url: str | None
