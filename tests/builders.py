"""Builders for catalog objects used across the test suite."""

from __future__ import annotations

from spiceworld.domain.model.category import Attribute, AttributeValue, Category
from spiceworld.domain.model.product import (
    Image,
    Product,
    ProductStatus,
    ProductVariant,
    StoredFile,
    StoredImage,
    slugify,
)
from spiceworld.domain.model.value_objects import Money


def make_category(
    category_id: str = "cat-1",
    name: str = "ground spices",
    attributes: dict[str, list[str]] | None = None,
) -> Category:
    """Build a category; value ids are '<attribute>-<value>', e.g. 'weight-50g'."""
    return Category(
        id=category_id,
        name=name,
        attributes=[
            Attribute(
                id=f"{category_id}-{attr_name.lower()}",
                name=attr_name,
                category_id=category_id,
                values=[
                    AttributeValue(id=f"{attr_name.lower()}-{value}", value=value)
                    for value in values
                ],
            )
            for attr_name, values in (attributes or {}).items()
        ],
    )


def stored_image(key: str) -> StoredImage:
    return StoredImage(
        thumb=StoredFile(key=f"{key}-thumb", url=f"https://cdn.test/{key}-thumb"),
        medium=StoredFile(key=f"{key}-medium", url=f"https://cdn.test/{key}-medium"),
        large=StoredFile(key=f"{key}-large", url=f"https://cdn.test/{key}-large"),
    )


def make_image(image_id: str, is_thumbnail: bool = False) -> Image:
    return Image(id=image_id, files=stored_image(image_id), is_thumbnail=is_thumbnail)


def make_variant(
    variant_id: str,
    price: str = "3.99",
    stock: int = 10,
    values: tuple[str, ...] = (),
    sku: str | None = None,
) -> ProductVariant:
    return ProductVariant(
        id=variant_id,
        price=Money.of(price),
        stock=stock,
        sku=sku,
        attribute_value_ids=values,
    )


def make_product(
    product_id: str = "prod-1",
    name: str = "Smoked Paprika",
    category_id: str = "cat-1",
    status: ProductStatus = ProductStatus.PUBLISHED,
    variants: list[ProductVariant] | None = None,
    images: list[Image] | None = None,
) -> Product:
    return Product(
        id=product_id,
        name=name,
        slug=slugify(name),
        category_id=category_id,
        status=status,
        variants=variants if variants is not None else [make_variant(f"{product_id}-v1")],
        images=images if images is not None else [make_image(f"{product_id}-img1", True)],
    )
