"""No-op detection for product patches.

A patch whose values all equal the stored ones must not bump the product
version or invalidate any cache.
"""

from __future__ import annotations

from collections.abc import Sequence

from spiceworld.domain.model.operations import ImageOperations, VariantOperations
from spiceworld.domain.model.product import Image, Product, ProductStatus, ProductVariant


def has_product_changes(
    product: Product,
    name: str | None = None,
    description: str | None = None,
    status: ProductStatus | None = None,
    category_id: str | None = None,
) -> bool:
    return (
        (name is not None and name != product.name)
        or (description is not None and description != product.description)
        or (status is not None and status != product.status)
        or (category_id is not None and category_id != product.category_id)
    )


def has_image_changes(
    ops: ImageOperations | None, current_images: Sequence[Image]
) -> bool:
    if ops is None:
        return False
    if ops.create or ops.delete:
        return True

    by_id = {img.id: img for img in current_images}
    for op in ops.update:
        current = by_id.get(op.id)
        if current is None:
            continue
        if op.file_index is not None:
            return True
        if op.alt_text is not None and op.alt_text != current.alt_text:
            return True
        if op.is_thumbnail is not None and op.is_thumbnail != current.is_thumbnail:
            return True
    return False


def has_variant_changes(
    ops: VariantOperations | None, current_variants: Sequence[ProductVariant]
) -> bool:
    if ops is None:
        return False
    if ops.create or ops.delete:
        return True

    by_id = {v.id: v for v in current_variants}
    for op in ops.update:
        current = by_id.get(op.id)
        if current is None:
            continue
        if op.price is not None and op.price != current.price:
            return True
        if op.sku is not None and op.sku != current.sku:
            return True
        if op.stock is not None and op.stock != current.stock:
            return True
        if (
            op.attribute_value_ids is not None
            and sorted(op.attribute_value_ids) != list(current.combination)
        ):
            return True
    return False
