"""Application service: Checkout use case.

Turns a cart into a PENDING order without overselling:

1. In one unit of work, reserve every line with a conditional stock
   decrement (input order) and create the order with a placeholder
   payment session id.  Any failed line rolls the whole unit back.  The
   unit is also rolled back if the time budget ran out before commit,
   or if it gave up waiting for another checkout's stock locks.
2. After commit, ask the payment gateway for a session.
3. In a second unit of work, store the real session id on the order.

If step 2 fails the order stays PENDING with its stock reserved; that is
logged so it can be reconciled or cancelled by staff.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from spiceworld.application.dto import CheckoutItemSpec, CheckoutResultDTO, order_to_dto
from spiceworld.domain.exceptions import (
    CheckoutTimeoutError,
    EntityNotFoundError,
    PaymentGatewayError,
    TransactionTimeoutError,
    ValidationError,
)
from spiceworld.domain.gateway.payment_gateway import PaymentGateway
from spiceworld.domain.model.order import MAX_LINE_ITEMS, Order, ShippingAddress
from spiceworld.domain.model.value_objects import Money, Quantity, new_id
from spiceworld.domain.repository.unit_of_work import UnitOfWork
from spiceworld.domain.service.stock_reservation import CartLine, StockReservationService

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class CheckoutHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        payments: PaymentGateway,
        free_shipping_threshold: Money,
        shipping_fee: Money,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._uow = uow
        self._payments = payments
        self._free_shipping_threshold = free_shipping_threshold
        self._shipping_fee = shipping_fee
        self._timeout = timeout_seconds
        self._clock = clock

    def handle(
        self,
        user_id: str,
        items: list[CheckoutItemSpec],
        shipping_address: ShippingAddress,
    ) -> CheckoutResultDTO:
        if not items:
            raise ValidationError("Cart is empty")
        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")
        lines = [
            CartLine(variant_id=spec.variant_id, quantity=Quantity(spec.quantity).value)
            for spec in items
        ]

        deadline = self._clock() + self._timeout
        try:
            with self._uow:
                order_items = StockReservationService(self._uow.products).reserve(lines)
                order = Order.create(
                    order_id=new_id(),
                    user_id=user_id,
                    items=order_items,
                    shipping_address=shipping_address,
                    free_shipping_threshold=self._free_shipping_threshold,
                    shipping_fee=self._shipping_fee,
                )
                self._uow.orders.add(order)
                if self._clock() > deadline:
                    logger.warning(
                        "Checkout for user %s exceeded %.1fs; rolling back",
                        user_id,
                        self._timeout,
                    )
                    raise CheckoutTimeoutError(self._timeout_message())
                self._uow.commit()
        except TransactionTimeoutError as exc:
            logger.warning("Checkout for user %s timed out waiting for stock locks", user_id)
            raise CheckoutTimeoutError(self._timeout_message()) from exc

        logger.info(
            "Order %s created for user %s: %d line(s), total %s",
            order.id,
            user_id,
            len(order.items),
            order.total,
        )

        try:
            session = self._payments.create_session(
                order.items,
                metadata={"order_id": order.id, "shipping": str(order.shipping.amount)},
            )
        except PaymentGatewayError:
            logger.error(
                "Payment session failed for order %s; order stays PENDING with stock reserved",
                order.id,
            )
            raise

        with self._uow:
            stored = self._uow.orders.get_by_id(order.id)
            if stored is None:
                raise EntityNotFoundError(f"Order {order.id} not found")
            stored.attach_payment_session(session.session_id)
            self._uow.orders.save(stored)
            self._uow.commit()

        return CheckoutResultDTO(order=order_to_dto(stored), checkout_url=session.url)

    def _timeout_message(self) -> str:
        return f"Checkout did not complete within {self._timeout:g} seconds"
