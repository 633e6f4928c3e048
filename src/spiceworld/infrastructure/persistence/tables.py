"""SQLAlchemy ORM tables.

Rows are a persistence detail: repositories translate them to and from
the domain dataclasses and never hand a row to the application layer.
Money columns hold integer minor units.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


# ============================================================================
# CATALOG
# ============================================================================


class CategoryRow(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)

    attributes: Mapped[list[AttributeRow]] = relationship(
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="AttributeRow.position",
    )
    image: Mapped[ImageRow | None] = relationship(
        cascade="all, delete-orphan",
        primaryjoin="CategoryRow.id == ImageRow.category_id",
        uselist=False,
    )


class AttributeRow(Base):
    __tablename__ = "attributes"
    __table_args__ = (UniqueConstraint("category_id", "name", name="uq_attribute_name"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    category_id: Mapped[str] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    category: Mapped[CategoryRow] = relationship(back_populates="attributes")
    values: Mapped[list[AttributeValueRow]] = relationship(
        back_populates="attribute",
        cascade="all, delete-orphan",
        order_by="AttributeValueRow.position",
    )


class AttributeValueRow(Base):
    __tablename__ = "attribute_values"
    __table_args__ = (UniqueConstraint("attribute_id", "value", name="uq_attribute_value"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    attribute_id: Mapped[str] = mapped_column(
        ForeignKey("attributes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    value: Mapped[str] = mapped_column(String(120), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    attribute: Mapped[AttributeRow] = relationship(back_populates="values")


class ProductRow(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("version >= 1", name="ck_product_version"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(220), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    category_id: Mapped[str] = mapped_column(
        ForeignKey("categories.id"), nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    variants: Mapped[list[VariantRow]] = relationship(
        cascade="all, delete-orphan",
        order_by="VariantRow.position",
        passive_deletes=True,
    )
    images: Mapped[list[ImageRow]] = relationship(
        cascade="all, delete-orphan",
        primaryjoin="ProductRow.id == ImageRow.product_id",
        order_by="ImageRow.position",
        passive_deletes=True,
    )


class VariantRow(Base):
    __tablename__ = "product_variants"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_variant_stock"),
        CheckConstraint("price >= 0", name="ck_variant_price"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    product_id: Mapped[str] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sku: Mapped[str | None] = mapped_column(String(64))
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    value_links: Mapped[list[VariantValueRow]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class VariantValueRow(Base):
    """Link between a variant and one attribute value."""

    __tablename__ = "variant_attribute_values"

    variant_id: Mapped[str] = mapped_column(
        ForeignKey("product_variants.id", ondelete="CASCADE"), primary_key=True
    )
    attribute_value_id: Mapped[str] = mapped_column(
        ForeignKey("attribute_values.id", ondelete="CASCADE"), primary_key=True
    )


class ImageRow(Base):
    """An image owned by either a product or a category."""

    __tablename__ = "images"
    __table_args__ = (
        CheckConstraint(
            "(product_id IS NULL) != (category_id IS NULL)", name="ck_image_owner"
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    product_id: Mapped[str | None] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), index=True
    )
    category_id: Mapped[str | None] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), index=True
    )
    key_thumb: Mapped[str] = mapped_column(String(255), nullable=False)
    key_medium: Mapped[str] = mapped_column(String(255), nullable=False)
    key_large: Mapped[str] = mapped_column(String(255), nullable=False)
    url_thumb: Mapped[str] = mapped_column(String(500), nullable=False)
    url_medium: Mapped[str] = mapped_column(String(500), nullable=False)
    url_large: Mapped[str] = mapped_column(String(500), nullable=False)
    alt_text: Mapped[str | None] = mapped_column(String(255))
    is_thumbnail: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


# ============================================================================
# ORDERS
# ============================================================================


class OrderRow(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    shipping_status: Mapped[str] = mapped_column(String(16), nullable=False)
    tracking_number: Mapped[str | None] = mapped_column(String(120))
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    subtotal: Mapped[int] = mapped_column(Integer, nullable=False)
    shipping: Mapped[int] = mapped_column(Integer, nullable=False)
    total: Mapped[int] = mapped_column(Integer, nullable=False)
    shipping_address: Mapped[dict] = mapped_column(JSON, nullable=False)
    payment_session_id: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    payment_reference: Mapped[str | None] = mapped_column(String(120))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    items: Mapped[list[OrderItemRow]] = relationship(
        cascade="all, delete-orphan",
        order_by="OrderItemRow.position",
    )


class OrderItemRow(Base):
    """Snapshot of one purchased variant; never recomputed from the catalog."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(String(36), nullable=False)
    variant_id: Mapped[str] = mapped_column(String(36), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    sku: Mapped[str | None] = mapped_column(String(64))
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    line_total: Mapped[int] = mapped_column(Integer, nullable=False)
