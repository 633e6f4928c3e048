"""Publish-readiness rules and product status resolution.

A product may only be PUBLISHED when a buyer can actually purchase and
tell its variants apart:

- PUB1: at least one final variant has a price greater than 0
- PUB2: with no category attributes at most one variant exists; with
  attributes and more than one variant, every variant carries values

A failing check never rejects the request.  The target status is
downgraded to DRAFT and the reasons are returned as warnings, so data
can be entered incrementally.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from spiceworld.domain.model.operations import VariantOperations
from spiceworld.domain.model.product import ProductStatus, ProductVariant
from spiceworld.domain.model.validation import ValidationIssue
from spiceworld.domain.model.value_objects import Money


@dataclass(frozen=True)
class _VariantState:
    price: Money
    attribute_value_ids: tuple[str, ...]


@dataclass(frozen=True)
class StatusDecision:
    final_status: ProductStatus
    warnings: tuple[ValidationIssue, ...] = ()

    @property
    def downgraded(self) -> bool:
        return bool(self.warnings)


@dataclass(frozen=True)
class VariantAnalysis:
    """Shape of the variant set after a request's operations."""

    final_variant_count: int
    variants_with_values: int
    is_properly_reconfigured: bool
    untouched_variant_ids: tuple[str, ...]


def final_variant_states(
    current_variants: Sequence[ProductVariant],
    ops: VariantOperations | None = None,
) -> list[_VariantState]:
    """Surviving variants with their updates applied, followed by creates."""
    ops = ops or VariantOperations()
    deleted = set(ops.delete)
    updates = {u.id: u for u in ops.update}
    states: list[_VariantState] = []
    for variant in current_variants:
        if variant.id in deleted:
            continue
        update = updates.get(variant.id)
        price = variant.price
        values = variant.attribute_value_ids
        if update is not None:
            if update.price is not None:
                price = update.price
            if update.attribute_value_ids is not None:
                values = update.attribute_value_ids
        states.append(_VariantState(price=price, attribute_value_ids=tuple(values)))
    for create in ops.create:
        states.append(
            _VariantState(price=create.price, attribute_value_ids=create.attribute_value_ids)
        )
    return states


def check_positive_price(
    current_variants: Sequence[ProductVariant],
    ops: VariantOperations | None = None,
) -> ValidationIssue | None:
    """PUB1"""
    states = final_variant_states(current_variants, ops)
    if any(state.price.is_positive for state in states):
        return None
    return ValidationIssue(
        code="PUB1",
        message="Cannot publish: at least one variant must have a price greater than 0",
        field="variants.price",
    )


def check_distinguishability(
    category_has_attributes: bool,
    current_variants: Sequence[ProductVariant],
    ops: VariantOperations | None = None,
) -> ValidationIssue | None:
    """PUB2"""
    states = final_variant_states(current_variants, ops)
    count = len(states)

    if not category_has_attributes:
        if count > 1:
            return ValidationIssue(
                code="PUB2",
                message=(
                    f"Cannot publish: category has no attributes, so product can only "
                    f"have 1 variant (found {count}). Multiple variants require "
                    f"attribute values to distinguish them."
                ),
                field="variants",
            )
        return None

    if count > 1:
        missing = sum(1 for state in states if not state.attribute_value_ids)
        if missing:
            return ValidationIssue(
                code="PUB2",
                message=(
                    f"Cannot publish: {missing} variant(s) have no attribute values. "
                    f"Each variant must be distinguishable when product has multiple variants."
                ),
                field="variants.attributeValueIds",
            )
    return None


def resolve_publish_status(
    requested_status: ProductStatus | None,
    current_status: ProductStatus,
    current_variants: Sequence[ProductVariant],
    ops: VariantOperations | None,
    category_has_attributes: bool,
) -> StatusDecision:
    """Downgrade a PUBLISHED target to DRAFT when PUB1 or PUB2 fails."""
    target = requested_status or current_status
    if target != ProductStatus.PUBLISHED:
        return StatusDecision(final_status=target)

    warnings = [
        issue
        for issue in (
            check_positive_price(current_variants, ops),
            check_distinguishability(category_has_attributes, current_variants, ops),
        )
        if issue is not None
    ]
    if warnings:
        return StatusDecision(final_status=ProductStatus.DRAFT, warnings=tuple(warnings))
    return StatusDecision(final_status=ProductStatus.PUBLISHED)


def status_after_category_change(
    current_status: ProductStatus,
    requested_status: ProductStatus | None,
    new_category_has_attributes: bool,
    final_variant_count: int,
    variants_with_values: int,
) -> ProductStatus:
    """Force DRAFT when the variants no longer fit the new category's schema."""
    if new_category_has_attributes:
        if variants_with_values < final_variant_count:
            return ProductStatus.DRAFT
    elif final_variant_count > 1:
        return ProductStatus.DRAFT
    return requested_status or current_status


def analyze_variant_operations(
    ops: VariantOperations | None,
    current_variants: Sequence[ProductVariant],
    new_category_has_attributes: bool,
    category_changing: bool = False,
) -> VariantAnalysis:
    if ops is None or ops.is_empty:
        # Values of the old category mean nothing in a new one.
        with_values = 0 if category_changing else sum(
            1 for v in current_variants if v.attribute_value_ids
        )
        return VariantAnalysis(
            final_variant_count=len(current_variants),
            variants_with_values=with_values,
            is_properly_reconfigured=False,
            untouched_variant_ids=tuple(v.id for v in current_variants),
        )

    deleted = set(ops.delete)
    updated = {u.id for u in ops.update}
    remaining = [v for v in current_variants if v.id not in deleted]
    untouched = [v for v in remaining if v.id not in updated]
    final_count = len(remaining) + len(ops.create)

    with_values = sum(1 for c in ops.create if c.attribute_value_ids)
    with_values += sum(
        1 for u in ops.update if u.id not in deleted and u.attribute_value_ids
    )
    if not category_changing:
        with_values += sum(1 for v in untouched if v.attribute_value_ids)

    if new_category_has_attributes:
        reconfigured = not untouched and with_values == final_count
    else:
        reconfigured = not untouched

    return VariantAnalysis(
        final_variant_count=final_count,
        variants_with_values=with_values,
        is_properly_reconfigured=reconfigured,
        untouched_variant_ids=tuple(v.id for v in untouched),
    )


def determine_status(
    requested_status: ProductStatus | None,
    current_status: ProductStatus,
    current_variants: Sequence[ProductVariant],
    ops: VariantOperations | None,
    category_has_attributes: bool,
    category_changed: bool,
    analysis: VariantAnalysis,
) -> StatusDecision:
    """Final status of a product update.

    On a category change the auto-draft resolver runs first; a product that
    survives it still has to pass the publish-readiness checks.
    """
    target = requested_status or current_status
    if category_changed:
        after_change = status_after_category_change(
            current_status=current_status,
            requested_status=requested_status,
            new_category_has_attributes=category_has_attributes,
            final_variant_count=analysis.final_variant_count,
            variants_with_values=analysis.variants_with_values,
        )
        if after_change == ProductStatus.DRAFT and target != ProductStatus.DRAFT:
            return StatusDecision(
                final_status=ProductStatus.DRAFT,
                warnings=(
                    ValidationIssue(
                        code="AUTO_DRAFT",
                        message=(
                            "Product automatically set to DRAFT because its category "
                            "changed. Reconfigure variant attributes for the new category."
                        ),
                        field="status",
                    ),
                ),
            )

    return resolve_publish_status(
        requested_status=requested_status,
        current_status=current_status,
        current_variants=current_variants,
        ops=ops,
        category_has_attributes=category_has_attributes,
    )
