"""Application service: Update Order Status use case (staff).

Cancelling an order that still holds its reservation gives the stock
back in the same transaction.  A tracking number marks the order as
shipped.
"""

from __future__ import annotations

import logging

from spiceworld.application.dto import OrderDTO, order_to_dto
from spiceworld.domain.exceptions import EntityNotFoundError
from spiceworld.domain.model.order import OrderStatus
from spiceworld.domain.repository.unit_of_work import UnitOfWork
from spiceworld.domain.service.stock_reservation import StockReservationService

logger = logging.getLogger(__name__)


class UpdateOrderStatusHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        order_id: str,
        status: OrderStatus,
        tracking_number: str | None = None,
    ) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order {order_id} not found")

            previous = order.status
            releases_stock = status == OrderStatus.CANCELLED and order.holds_reservation
            order.transition_to(status)
            if releases_stock:
                StockReservationService(self._uow.products).release_for_order(order)
            if tracking_number:
                order.ship(tracking_number)

            self._uow.orders.save(order)
            self._uow.commit()

        logger.info("Order %s: %s -> %s", order.id, previous.value, order.status.value)
        return order_to_dto(order)
