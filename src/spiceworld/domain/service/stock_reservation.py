"""Domain service: Stock Reservation.

Reserves stock for a cart inside the caller's unit of work.  Each line
is taken with one conditional decrement, so two checkouts racing for the
last unit can never both succeed.  A failed line raises and the caller's
transaction rolls back every decrement made before it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from spiceworld.domain.exceptions import InsufficientStockError, ValidationError
from spiceworld.domain.model.order import Order, OrderItem
from spiceworld.domain.model.product import ProductStatus
from spiceworld.domain.model.value_objects import Quantity
from spiceworld.domain.repository.product_repository import ProductRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLine:
    variant_id: str
    quantity: int


class StockReservationService:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def reserve(self, lines: Sequence[CartLine]) -> list[OrderItem]:
        """Take stock for every line, in input order, and snapshot prices.

        Repeated variant ids are separate lines, each with its own
        decrement.  The decrement runs before the price read so the row is
        already locked by the time it is read.
        """
        items: list[OrderItem] = []
        for line in lines:
            quantity = Quantity(line.quantity)
            if not self._product_repo.decrement_stock_if_available(
                line.variant_id, quantity.value
            ):
                logger.info(
                    "Stock reservation failed for variant %s (qty %d)",
                    line.variant_id,
                    quantity.value,
                )
                raise InsufficientStockError(line.variant_id)

            snapshot = self._product_repo.get_variant(line.variant_id)
            if snapshot is None:
                raise InsufficientStockError(line.variant_id)
            if snapshot.product_status != ProductStatus.PUBLISHED:
                raise ValidationError(
                    f"Variant {line.variant_id} is not available for purchase"
                )

            items.append(
                OrderItem(
                    product_id=snapshot.product_id,
                    variant_id=snapshot.variant_id,
                    product_name=snapshot.product_name,
                    sku=snapshot.sku,
                    quantity=quantity,
                    unit_price=snapshot.price,  # price snapshot
                )
            )
        return items

    def release_for_order(self, order: Order) -> None:
        """Give an order's reserved units back to stock."""
        for item in order.items:
            self._product_repo.increment_stock(item.variant_id, item.quantity.value)
        logger.info("Released stock for order %s (%d line(s))", order.id, len(order.items))
