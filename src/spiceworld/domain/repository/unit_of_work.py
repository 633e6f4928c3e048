"""Transaction boundary shared by the repositories.

Usage::

    with uow:
        uow.products.decrement_stock_if_available(variant_id, 2)
        uow.orders.add(order)
        uow.commit()

Leaving the block without ``commit()`` (normally or through an
exception) rolls every change back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from spiceworld.domain.repository.category_repository import CategoryRepository
from spiceworld.domain.repository.order_repository import OrderRepository
from spiceworld.domain.repository.product_repository import ProductRepository


class UnitOfWork(ABC):
    categories: CategoryRepository
    products: ProductRepository
    orders: OrderRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every change since entering the block durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted changes; a no-op after ``commit()``."""
