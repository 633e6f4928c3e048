"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from spiceworld.application.checkout import CheckoutHandler
from spiceworld.application.complete_payment import CompletePaymentHandler
from spiceworld.application.dto import CheckoutItemSpec, OrderDTO
from spiceworld.application.show_order import ListOrdersHandler, ShowOrderHandler
from spiceworld.application.update_order_status import UpdateOrderStatusHandler
from spiceworld.domain.exceptions import DomainException
from spiceworld.domain.model.order import OrderStatus, ShippingAddress
from spiceworld.infrastructure.bootstrap import (
    free_shipping_threshold,
    payment_gateway,
    settings,
    shipping_fee,
    unit_of_work,
)
from spiceworld.infrastructure.cli.parsing import domain_error

_STATUS = click.Choice([s.value for s in OrderStatus], case_sensitive=False)


def _parse_items(raw: str) -> list[CheckoutItemSpec]:
    """Parse '<variant-id>:3,<variant-id>:1' into CheckoutItemSpec list."""
    specs: list[CheckoutItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'VariantId:Quantity'."
            )
        variant_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for variant '{variant_id}'."
            )
        specs.append(CheckoutItemSpec(variant_id=variant_id.strip(), quantity=qty))
    return specs


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.id}  (status={dto.status}, shipping={dto.shipping_status})")
    click.echo(f"User:     {dto.user_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.tracking_number:
        click.echo(f"Tracking: {dto.tracking_number}")
    click.echo()
    click.echo(f"  {'Product':<24} {'Qty':>5} {'Price':>12} {'Total':>12}")
    click.echo(f"  {'-'*56}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<24} {item.quantity:>5} {item.unit_price:>12} {item.line_total:>12}"
        )
    click.echo(f"  {'-'*56}")
    click.echo(f"  {'Subtotal':<30} {dto.subtotal:>25}")
    click.echo(f"  {'Shipping':<30} {dto.shipping:>25}")
    click.echo(f"  {'Order Total':<30} {dto.total:>25}")


@click.command("checkout")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--items", required=True, help="Items as 'VariantId:Qty,VariantId:Qty'.")
@click.option("--ship-name", required=True, help="Recipient name.")
@click.option("--ship-line1", required=True, help="Street address.")
@click.option("--ship-line2", default=None, help="Second address line.")
@click.option("--ship-city", required=True, help="City.")
@click.option("--ship-postal-code", required=True, help="Postal code.")
@click.option("--ship-country", required=True, help="2-letter country code.")
def order_checkout(
    user_id: str,
    items: str,
    ship_name: str,
    ship_line1: str,
    ship_line2: str | None,
    ship_city: str,
    ship_postal_code: str,
    ship_country: str,
) -> None:
    """Check out a cart: reserve stock and open a payment session."""
    specs = _parse_items(items)

    handler = CheckoutHandler(
        uow=unit_of_work(),
        payments=payment_gateway(),
        free_shipping_threshold=free_shipping_threshold(),
        shipping_fee=shipping_fee(),
        timeout_seconds=settings().checkout_timeout,
    )

    try:
        address = ShippingAddress(
            name=ship_name,
            line1=ship_line1,
            line2=ship_line2,
            city=ship_city,
            postal_code=ship_postal_code,
            country=ship_country,
        )
        result = handler.handle(user_id=user_id, items=specs, shipping_address=address)
    except DomainException as exc:
        raise domain_error(exc)

    _display_order(result.order)
    click.echo()
    click.echo(f"Pay at: {result.checkout_url}")


@click.command("pay")
@click.option("--session", "session_id", required=True, help="Payment session ID.")
@click.option("--id", "order_id", required=True, help="Order ID the payment is for.")
@click.option("--reference", required=True, help="Payment reference from the provider.")
def order_pay(session_id: str, order_id: str, reference: str) -> None:
    """Record a completed payment (what the payment webhook does)."""
    handler = CompletePaymentHandler(uow=unit_of_work())

    try:
        dto = handler.handle(session_id=session_id, order_id=order_id, payment_reference=reference)
    except DomainException as exc:
        raise domain_error(exc)

    click.echo(f"Order {dto.id} is {dto.status}.")


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
@click.option("--user", "user_id", required=True, help="Requesting user ID.")
@click.option("--admin", is_flag=True, default=False, help="Request as staff.")
def order_show(order_id: str, user_id: str, admin: bool) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(uow=unit_of_work())

    try:
        dto = handler.handle(order_id, user_id=user_id, is_admin=admin)
    except DomainException as exc:
        raise domain_error(exc)

    _display_order(dto)


@click.command("list")
@click.option("--user", "user_id", required=True, help="Requesting user ID.")
@click.option("--admin", is_flag=True, default=False, help="List every user's orders.")
@click.option("--page", default=1, type=int, help="Page number, from 1.")
@click.option("--limit", default=10, type=int, help="Orders per page.")
@click.option("--status", default=None, type=_STATUS, help="Only this status.")
def order_list(user_id: str, admin: bool, page: int, limit: int, status: str | None) -> None:
    """List orders, newest first."""
    handler = ListOrdersHandler(uow=unit_of_work())

    try:
        result = handler.handle(
            user_id=user_id,
            is_admin=admin,
            page=page,
            limit=limit,
            status=OrderStatus(status.upper()) if status else None,
        )
    except DomainException as exc:
        raise domain_error(exc)

    if not result.items:
        click.echo("No orders found.")
        return

    click.echo(f"  {'Order':<36} {'User':<16} {'Status':<10} {'Total':>14}")
    click.echo(f"  {'-'*79}")
    for dto in result.items:
        click.echo(f"  {dto.id:<36} {dto.user_id:<16} {dto.status:<10} {dto.total:>14}")
    click.echo(f"Page {result.page} ({len(result.items)} of {result.total}).")


@click.command("status")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--status", required=True, type=_STATUS, help="New status.")
@click.option("--tracking", default=None, help="Tracking number; marks the order shipped.")
def order_status(order_id: str, status: str, tracking: str | None) -> None:
    """Change an order's status (staff)."""
    handler = UpdateOrderStatusHandler(uow=unit_of_work())

    try:
        dto = handler.handle(order_id, OrderStatus(status.upper()), tracking_number=tracking)
    except DomainException as exc:
        raise domain_error(exc)

    click.echo(f"Order {dto.id} is {dto.status} (shipping={dto.shipping_status}).")
