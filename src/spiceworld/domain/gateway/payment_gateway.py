"""Payment-session collaborator used by the checkout."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from spiceworld.domain.model.order import OrderItem


@dataclass(frozen=True)
class PaymentSession:
    session_id: str
    url: str
    status: str = "open"


class PaymentGateway(ABC):

    @abstractmethod
    def create_session(
        self, items: list[OrderItem], metadata: dict[str, str]
    ) -> PaymentSession:
        """Open a hosted payment session for ``items``.

        Raises ``PaymentGatewayError`` when the provider cannot be reached.
        """
