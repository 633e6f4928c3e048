"""Application service: Complete Payment use case (payment webhook).

Stock was reserved at checkout, so marking an order PAID never touches
it.  The webhook must name the order the session was created for.
"""

from __future__ import annotations

import logging

from spiceworld.application.dto import OrderDTO, order_to_dto
from spiceworld.domain.exceptions import EntityNotFoundError, PaymentSessionMismatchError
from spiceworld.domain.model.order import OrderStatus
from spiceworld.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class CompletePaymentHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, session_id: str, order_id: str, payment_reference: str) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_by_payment_session(session_id)
            if order is None:
                raise EntityNotFoundError(f"No order for payment session '{session_id}'")
            if order.id != order_id:
                logger.warning(
                    "Payment session %s belongs to order %s, webhook named %s",
                    session_id,
                    order.id,
                    order_id,
                )
                raise PaymentSessionMismatchError(
                    f"Payment session '{session_id}' does not belong to order {order_id}"
                )

            if order.status == OrderStatus.PAID:
                logger.info("Order %s already paid; ignoring redelivered webhook", order.id)
                return order_to_dto(order)

            order.mark_paid(payment_reference)
            self._uow.orders.save(order)
            self._uow.commit()

        logger.info("Order %s paid (reference %s)", order.id, payment_reference)
        return order_to_dto(order)
