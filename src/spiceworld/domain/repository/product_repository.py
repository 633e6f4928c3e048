"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure.  Stock is deliberately not written by ``update``: the
checkout reserves it through ``decrement_stock_if_available`` and staff
change it through ``set_stock``, so a product edit can never overwrite a
concurrent reservation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from spiceworld.domain.model.listing import ListingQuery, ProductSummary
from spiceworld.domain.model.product import Product, ProductStatus, VariantSnapshot


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product with variants and images, or None."""

    @abstractmethod
    def get_by_slug(self, slug: str) -> Product | None:
        """Return a product by its slug, or None."""

    @abstractmethod
    def add(self, product: Product) -> None:
        """Persist a new product, its variants and its images."""

    @abstractmethod
    def update(self, product: Product, expected_version: int) -> int:
        """Write ``product`` if the stored version still equals ``expected_version``.

        The version check and the increment happen in the same statement
        that writes the product row.  Returns the new version; raises
        ``VersionConflictError`` when the stored version differs.
        Existing variants keep their stored stock.
        """

    @abstractmethod
    def delete(self, product_id: str) -> None:
        """Delete a product together with its variants and images."""

    @abstractmethod
    def list_by_category(self, category_id: str) -> list[Product]:
        """Return every product of a category with variants and images."""

    @abstractmethod
    def list_summaries(self, query: ListingQuery) -> list[ProductSummary]:
        """Return one page of product summaries."""

    @abstractmethod
    def count(
        self,
        status: ProductStatus | None = None,
        category_ids: tuple[str, ...] = (),
    ) -> int:
        """Return the number of products matching the filters."""

    @abstractmethod
    def get_variant(self, variant_id: str) -> VariantSnapshot | None:
        """Return a variant with its owning product's name and status, or None."""

    @abstractmethod
    def decrement_stock_if_available(self, variant_id: str, quantity: int) -> bool:
        """Atomically take ``quantity`` units if at least that many are in stock.

        Returns False when no row matched (too little stock or unknown variant).
        """

    @abstractmethod
    def increment_stock(self, variant_id: str, quantity: int) -> None:
        """Return ``quantity`` previously reserved units to stock."""

    @abstractmethod
    def set_stock(self, variant_id: str, stock: int) -> None:
        """Overwrite a variant's stock level (staff restock)."""
