"""Order aggregate.

The Order is an aggregate root that owns its line items.  Items are a
snapshot taken at checkout time and are never recomputed from live
product data afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from spiceworld.domain.exceptions import ValidationError
from spiceworld.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FULFILLED = "FULFILLED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class ShippingStatus(Enum):
    PENDING = "PENDING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"


@dataclass(frozen=True)
class ShippingAddress:
    name: str
    line1: str
    city: str
    postal_code: str
    country: str
    line2: str | None = None

    def __post_init__(self) -> None:
        for attr in ("name", "line1", "city", "postal_code"):
            if not getattr(self, attr).strip():
                raise ValidationError(f"Shipping address {attr} is required")
        if len(self.country) != 2 or not self.country.isalpha():
            raise ValidationError(
                f"Shipping country must be a 2-letter code, got {self.country!r}"
            )
        object.__setattr__(self, "country", self.country.upper())

    def to_dict(self) -> dict[str, str]:
        result = {
            "name": self.name,
            "line1": self.line1,
            "city": self.city,
            "postal_code": self.postal_code,
            "country": self.country,
        }
        if self.line2:
            result["line2"] = self.line2
        return result

    @staticmethod
    def from_dict(raw: dict) -> ShippingAddress:
        return ShippingAddress(
            name=raw["name"],
            line1=raw["line1"],
            line2=raw.get("line2"),
            city=raw["city"],
            postal_code=raw["postal_code"],
            country=raw["country"],
        )


@dataclass(frozen=True)
class OrderItem:
    """Price snapshot of one variant at checkout time."""

    product_id: str
    variant_id: str
    product_name: str
    sku: str | None
    quantity: Quantity
    unit_price: Money  # locked at checkout time

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
MAX_LINE_ITEMS = 50
PLACEHOLDER_SESSION_ID = "pending"


def shipping_for(subtotal: Money, free_threshold: Money, flat_fee: Money) -> Money:
    """Shipping is free strictly above the threshold, a flat fee otherwise."""
    if subtotal > free_threshold:
        return Money.zero(subtotal.currency)
    return Money(flat_fee.amount, subtotal.currency)


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders; it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: str
    user_id: str
    items: list[OrderItem]
    shipping_address: ShippingAddress
    shipping: Money
    status: OrderStatus = OrderStatus.PENDING
    shipping_status: ShippingStatus = ShippingStatus.PENDING
    payment_session_id: str = PLACEHOLDER_SESSION_ID
    payment_reference: str | None = None
    tracking_number: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        order_id: str,
        user_id: str,
        items: list[OrderItem],
        shipping_address: ShippingAddress,
        free_shipping_threshold: Money,
        shipping_fee: Money,
    ) -> Order:
        """Create a new PENDING order, enforcing all invariants."""
        if not user_id or not user_id.strip():
            raise ValidationError("User id is required")

        if not items:
            raise ValidationError("Order must contain at least one item")

        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        currencies = {item.unit_price.currency for item in items}
        if len(currencies) > 1:
            raise ValidationError(
                f"Order items must share one currency, got {sorted(currencies)}"
            )

        subtotal = Order._sum(items)
        return Order(
            id=order_id,
            user_id=user_id,
            items=list(items),
            shipping_address=shipping_address,
            shipping=shipping_for(subtotal, free_shipping_threshold, shipping_fee),
        )

    # --- State transitions ----------------------------------------------------

    def attach_payment_session(self, session_id: str) -> None:
        if not session_id:
            raise ValidationError("Payment session id is required")
        self.payment_session_id = session_id

    def mark_paid(self, payment_reference: str) -> None:
        """Transition PENDING -> PAID.

        Stock was already reserved at checkout, so payment never touches it.
        """
        if self.status != OrderStatus.PENDING:
            raise ValidationError(
                f"Cannot mark order as paid: current status is {self.status.value}, "
                f"expected PENDING"
            )
        self.status = OrderStatus.PAID
        self.payment_reference = payment_reference

    def fulfill(self) -> None:
        """Transition PAID -> FULFILLED (staff action)."""
        if self.status != OrderStatus.PAID:
            raise ValidationError(
                f"Cannot fulfill order in {self.status.value} status"
            )
        self.status = OrderStatus.FULFILLED

    def cancel(self) -> None:
        """Transition PENDING|PAID -> CANCELLED.

        Releasing the reserved stock must be coordinated by the caller.
        """
        if self.status == OrderStatus.CANCELLED:
            raise ValidationError("Order is already cancelled")
        if self.status not in (OrderStatus.PENDING, OrderStatus.PAID):
            raise ValidationError(
                f"Cannot cancel order in {self.status.value} status"
            )
        if self.shipping_status != ShippingStatus.PENDING:
            raise ValidationError("Cannot cancel an order that has already shipped")
        self.status = OrderStatus.CANCELLED

    def refund(self) -> None:
        """Transition PAID|FULFILLED -> REFUNDED (terminal)."""
        if self.status not in (OrderStatus.PAID, OrderStatus.FULFILLED):
            raise ValidationError(
                f"Cannot refund order in {self.status.value} status"
            )
        self.status = OrderStatus.REFUNDED

    def transition_to(self, status: OrderStatus) -> None:
        """Apply a staff-requested status change."""
        if status == OrderStatus.FULFILLED:
            self.fulfill()
        elif status == OrderStatus.CANCELLED:
            self.cancel()
        elif status == OrderStatus.REFUNDED:
            self.refund()
        elif status == self.status:
            return
        else:
            raise ValidationError(
                f"Order status cannot be set to {status.value} manually"
            )

    def ship(self, tracking_number: str) -> None:
        if not tracking_number or not tracking_number.strip():
            raise ValidationError("Tracking number is required")
        if self.status in (OrderStatus.PENDING, OrderStatus.CANCELLED, OrderStatus.REFUNDED):
            raise ValidationError(
                f"Cannot ship order in {self.status.value} status"
            )
        self.tracking_number = tracking_number.strip()
        self.shipping_status = ShippingStatus.SHIPPED

    # --- Computed properties --------------------------------------------------

    @property
    def currency(self) -> str:
        return self.items[0].unit_price.currency if self.items else self.shipping.currency

    @property
    def subtotal(self) -> Money:
        return self._sum(self.items)

    @property
    def total(self) -> Money:
        return self.subtotal + Money(self.shipping.amount, self.subtotal.currency)

    @property
    def holds_reservation(self) -> bool:
        """True while reserved stock has not left the warehouse."""
        return self.status in (OrderStatus.PENDING, OrderStatus.PAID)

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _sum(items: list[OrderItem]) -> Money:
        currency = items[0].unit_price.currency if items else Money.zero().currency
        result = Money.zero(currency)
        for item in items:
            result = result + item.line_total
        return result
