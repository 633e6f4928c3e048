"""PaymentGateway that opens sessions locally, without a provider.

Used by the CLI: the session url points at the configured checkout page
and payment is completed with ``spiceworld order pay``.
"""

from __future__ import annotations

import logging
import uuid

from spiceworld.domain.exceptions import PaymentGatewayError
from spiceworld.domain.gateway.payment_gateway import PaymentGateway, PaymentSession
from spiceworld.domain.model.order import OrderItem

logger = logging.getLogger(__name__)


class OfflinePaymentGateway(PaymentGateway):

    def __init__(self, checkout_url: str) -> None:
        self._checkout_url = checkout_url.rstrip("/")

    def create_session(
        self, items: list[OrderItem], metadata: dict[str, str]
    ) -> PaymentSession:
        if not items:
            raise PaymentGatewayError("Cannot open a payment session without items")
        session_id = f"cs_{uuid.uuid4().hex}"
        logger.info(
            "Opened payment session %s for order %s", session_id, metadata.get("order_id")
        )
        return PaymentSession(
            session_id=session_id,
            url=f"{self._checkout_url}/{session_id}",
            status="open",
        )
