"""Keep a category's products consistent after its attribute schema shrinks.

Removing an attribute or a value leaves variants pointing at ids that no
longer exist.  Those ids are stripped from the variants; a PUBLISHED
product whose variants can then no longer be told apart (or no longer fit
the category's capacity) is moved to DRAFT, with the reasons returned as
warnings.
"""

from __future__ import annotations

from collections.abc import Iterable

from spiceworld.domain.model.category import Category
from spiceworld.domain.model.product import Product, ProductStatus
from spiceworld.domain.model.validation import ValidationIssue
from spiceworld.domain.service.publish_readiness import resolve_publish_status
from spiceworld.domain.service.variant_validation import validate_variants


def strip_removed_values(product: Product, removed_value_ids: Iterable[str]) -> bool:
    """Drop removed value ids from every variant; True when anything changed."""
    removed = set(removed_value_ids)
    changed = False
    for variant in product.variants:
        kept = tuple(v for v in variant.attribute_value_ids if v not in removed)
        if kept != variant.attribute_value_ids:
            variant.attribute_value_ids = kept
            changed = True
    return changed


def reconcile_product(
    category: Category, product: Product, removed_value_ids: Iterable[str]
) -> tuple[ValidationIssue, ...] | None:
    """Apply a schema removal to one product of ``category``.

    Returns None when the product used none of the removed values, else
    the warnings that moved it to DRAFT (empty when it stays as it is).
    """
    if not strip_removed_values(product, removed_value_ids):
        return None
    if product.status != ProductStatus.PUBLISHED:
        return ()

    issues = validate_variants(category, None, product.variants)
    decision = resolve_publish_status(
        requested_status=None,
        current_status=product.status,
        current_variants=product.variants,
        ops=None,
        category_has_attributes=category.has_attributes,
    )
    warnings = tuple(issues) + decision.warnings
    if warnings:
        product.status = ProductStatus.DRAFT
    return warnings
