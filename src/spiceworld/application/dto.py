"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.  Money is rendered as
text ("12.50 EUR") next to its integer minor-unit amount.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from spiceworld.domain.model.category import Category
from spiceworld.domain.model.listing import ProductSummary
from spiceworld.domain.model.order import Order
from spiceworld.domain.model.product import Product
from spiceworld.domain.model.validation import ValidationIssue


# --- Inputs -------------------------------------------------------------------


@dataclass(frozen=True)
class AttributeSpec:
    """Input: an attribute and its allowed values for a new category."""

    name: str
    values: tuple[str, ...]


@dataclass(frozen=True)
class AttributeUpdateSpec:
    """Input: rename an attribute and/or add and remove its values."""

    id: str
    name: str | None = None
    add_values: tuple[str, ...] = ()
    delete_value_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class AttributeOperationsSpec:
    create: tuple[AttributeSpec, ...] = ()
    update: tuple[AttributeUpdateSpec, ...] = ()
    delete: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.create or self.update or self.delete)


@dataclass(frozen=True)
class CheckoutItemSpec:
    """Input: what the customer put in the cart (variant id + quantity)."""

    variant_id: str
    quantity: int


# --- Outputs ------------------------------------------------------------------


@dataclass(frozen=True)
class AttributeValueDTO:
    id: str
    value: str


@dataclass(frozen=True)
class AttributeDTO:
    id: str
    name: str
    values: list[AttributeValueDTO]


@dataclass(frozen=True)
class CategoryDTO:
    id: str
    name: str
    attributes: list[AttributeDTO]
    image_url: str | None = None
    # Products moved to DRAFT because a schema edit removed their values.
    drafted_product_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class VariantDTO:
    id: str
    price: str  # formatted, e.g. "3.99 EUR"
    price_minor: int
    currency: str
    stock: int
    sku: str | None
    attribute_value_ids: list[str]


@dataclass(frozen=True)
class ImageDTO:
    id: str
    url: str
    thumb_url: str
    alt_text: str | None
    is_thumbnail: bool


@dataclass(frozen=True)
class ProductDTO:
    id: str
    name: str
    slug: str
    description: str | None
    status: str
    category_id: str
    version: int
    variants: list[VariantDTO]
    images: list[ImageDTO]
    created_at: str
    # Reasons a requested status was downgraded, e.g. PUB1/PUB2.
    warnings: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class ProductSummaryDTO:
    id: str
    name: str
    slug: str
    status: str
    category_name: str
    price_range: str | None
    total_stock: int
    thumbnail_url: str | None


@dataclass(frozen=True)
class BulkUpdateResultDTO:
    updated_ids: list[str]
    warnings: dict[str, list[dict]] = field(default_factory=dict)


@dataclass(frozen=True)
class OrderItemDTO:
    product_name: str
    sku: str | None
    quantity: int
    unit_price: str
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    id: str
    user_id: str
    status: str
    shipping_status: str
    tracking_number: str | None
    items: list[OrderItemDTO]
    subtotal: str
    shipping: str
    total: str
    total_minor: int
    payment_session_id: str
    created_at: str


@dataclass(frozen=True)
class OrderPageDTO:
    items: list[OrderDTO]
    total: int
    page: int
    limit: int


@dataclass(frozen=True)
class CheckoutResultDTO:
    order: OrderDTO
    checkout_url: str


# --- Mapping ------------------------------------------------------------------


def _timestamp(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC")


def category_to_dto(
    category: Category, drafted_product_ids: tuple[str, ...] = ()
) -> CategoryDTO:
    return CategoryDTO(
        id=category.id,
        name=category.name,
        attributes=[
            AttributeDTO(
                id=attr.id,
                name=attr.name,
                values=[AttributeValueDTO(id=v.id, value=v.value) for v in attr.values],
            )
            for attr in category.attributes
        ],
        image_url=category.image.files.medium.url if category.image else None,
        drafted_product_ids=drafted_product_ids,
    )


def product_to_dto(
    product: Product, warnings: tuple[ValidationIssue, ...] | list[ValidationIssue] = ()
) -> ProductDTO:
    return ProductDTO(
        id=product.id,
        name=product.name,
        slug=product.slug,
        description=product.description,
        status=product.status.value,
        category_id=product.category_id,
        version=product.version,
        variants=[
            VariantDTO(
                id=v.id,
                price=str(v.price),
                price_minor=v.price.amount,
                currency=v.currency,
                stock=v.stock,
                sku=v.sku,
                attribute_value_ids=list(v.attribute_value_ids),
            )
            for v in product.variants
        ],
        images=[
            ImageDTO(
                id=img.id,
                url=img.files.large.url,
                thumb_url=img.files.thumb.url,
                alt_text=img.alt_text,
                is_thumbnail=img.is_thumbnail,
            )
            for img in product.images
        ],
        created_at=_timestamp(product.created_at),
        warnings=[w.to_payload() for w in warnings],
    )


def summary_to_dto(summary: ProductSummary) -> ProductSummaryDTO:
    if summary.min_price is None or summary.max_price is None:
        price_range = None
    elif summary.min_price == summary.max_price:
        price_range = str(summary.min_price)
    else:
        price_range = f"{summary.min_price} - {summary.max_price}"
    return ProductSummaryDTO(
        id=summary.id,
        name=summary.name,
        slug=summary.slug,
        status=summary.status.value,
        category_name=summary.category_name,
        price_range=price_range,
        total_stock=summary.total_stock,
        thumbnail_url=summary.thumbnail_url,
    )


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,
        user_id=order.user_id,
        status=order.status.value,
        shipping_status=order.shipping_status.value,
        tracking_number=order.tracking_number,
        items=[
            OrderItemDTO(
                product_name=item.product_name,
                sku=item.sku,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
        subtotal=str(order.subtotal),
        shipping=str(order.shipping),
        total=str(order.total),
        total_minor=order.total.amount,
        payment_session_id=order.payment_session_id,
        created_at=_timestamp(order.created_at),
    )
