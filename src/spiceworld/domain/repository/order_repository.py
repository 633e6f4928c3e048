"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from spiceworld.domain.model.order import Order, OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: str) -> Order | None:
        """Return an order with its items, or None if not found."""

    @abstractmethod
    def get_by_payment_session(self, session_id: str) -> Order | None:
        """Return the order a payment session was created for, or None."""

    @abstractmethod
    def add(self, order: Order) -> None:
        """Persist a new order and its item snapshots."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist status, payment and shipping changes of an order.

        Items are never rewritten.
        """

    @abstractmethod
    def list(
        self,
        user_id: str | None = None,
        status: OrderStatus | None = None,
        skip: int = 0,
        take: int = 20,
    ) -> list[Order]:
        """Return orders newest first, optionally filtered."""

    @abstractmethod
    def count(self, user_id: str | None = None, status: OrderStatus | None = None) -> int:
        """Return the number of orders matching the filters."""
