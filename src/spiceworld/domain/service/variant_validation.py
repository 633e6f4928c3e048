"""Variant & attribute consistency rules.

Every check runs on every request and returns ``ValidationIssue`` values;
nothing short-circuits, so a caller sees all problems of a request at once.

Error codes:
- VVA1: attribute value does not belong to the product's category
- VVA2: a variant carries two values of the same attribute
- VVA3: final variant count is zero or exceeds the category capacity
- VVA4: two variants share the same attribute combination
- VVA5: current variants do not fit the capacity of a new category
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from spiceworld.domain.model.category import Category
from spiceworld.domain.model.operations import VariantOperations
from spiceworld.domain.model.product import ProductVariant
from spiceworld.domain.model.validation import ValidationIssue
from spiceworld.domain.service.capacity import category_capacity


@dataclass(frozen=True)
class _FinalVariant:
    label: str
    combination: tuple[str, ...]


def validate_variants(
    category: Category,
    ops: VariantOperations | None = None,
    current_variants: Sequence[ProductVariant] = (),
) -> list[ValidationIssue]:
    """Check a prospective variant set against ``category``.

    ``category`` is the *target* category: on a category change, pass the
    new one.
    """
    ops = ops or VariantOperations()
    value_to_attribute = category.value_to_attribute()
    current_by_id = {v.id: v for v in current_variants}
    issues: list[ValidationIssue] = []

    for index, create in enumerate(ops.create):
        context = f"create[{index}]"
        label = create.sku or context
        issues.extend(
            issue.with_context(context)
            for issue in _check_values(label, create.attribute_value_ids, value_to_attribute)
        )

    for index, update in enumerate(ops.update):
        context = f"update[{index}]"
        current = current_by_id.get(update.id)
        if current is None:
            issues.append(
                ValidationIssue(
                    code="VARIANT_NOT_FOUND",
                    message=f"{context}: variant {update.id} does not belong to this product",
                    field="variants.update",
                    details={"invalidValue": update.id},
                )
            )
            continue
        if not update.attribute_value_ids:
            continue
        label = update.sku or current.label
        issues.extend(
            issue.with_context(context)
            for issue in _check_values(label, update.attribute_value_ids, value_to_attribute)
        )

    for variant_id in ops.delete:
        if variant_id not in current_by_id:
            issues.append(
                ValidationIssue(
                    code="VARIANT_NOT_FOUND",
                    message=f"delete: variant {variant_id} does not belong to this product",
                    field="variants.delete",
                    details={"invalidValue": variant_id},
                )
            )

    deleted = {vid for vid in ops.delete if vid in current_by_id}
    final_count = len(current_by_id) - len(deleted) + len(ops.create)
    capacity_issue = _check_capacity(final_count, category)
    if capacity_issue is not None:
        issues.append(capacity_issue)

    issues.extend(_check_duplicate_combinations(_final_variants(ops, current_variants)))
    return issues


def validate_category_change_capacity(
    category: Category, variant_count: int
) -> ValidationIssue | None:
    """VVA5: the product's variants must fit the new category before anything else."""
    capacity = category_capacity(category)
    if variant_count > capacity:
        return ValidationIssue(
            code="VVA5",
            message=(
                f"Cannot move product with {variant_count} variant(s) to category "
                f"'{category.name}', which only allows {capacity} unique combination(s)"
            ),
            field="categoryId",
            details={"constraints": {"current": variant_count, "maximum": capacity}},
        )
    return None


# --- Individual rules ---------------------------------------------------------


def _check_values(
    label: str,
    attribute_value_ids: Sequence[str],
    value_to_attribute: dict[str, str],
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    # VVA1
    for value_id in attribute_value_ids:
        if value_id not in value_to_attribute:
            issues.append(
                ValidationIssue(
                    code="VVA1",
                    message=(
                        f'Invalid attribute value "{value_id}" for variant {label}. '
                        f"Attribute values should match product category."
                    ),
                    field="attributeValueIds",
                    details={"invalidValue": value_id},
                )
            )

    # VVA2
    seen: dict[str, list[str]] = {}
    for value_id in attribute_value_ids:
        attribute_id = value_to_attribute.get(value_id)
        if attribute_id is None:
            continue
        previous = seen.setdefault(attribute_id, [])
        if previous:
            issues.append(
                ValidationIssue(
                    code="VVA2",
                    message=(
                        f"Variant {label} has multiple values for the same attribute "
                        f"({attribute_id}). Found values: {', '.join(previous)} and {value_id}."
                    ),
                    field="attributeValueIds",
                    details={
                        "conflicts": {
                            "attributeId": attribute_id,
                            "duplicates": [*previous, value_id],
                        }
                    },
                )
            )
        previous.append(value_id)

    return issues


def _check_capacity(variant_count: int, category: Category) -> ValidationIssue | None:
    if variant_count < 1:
        return ValidationIssue(
            code="VVA3",
            message="Product must have at least 1 variant. Cannot delete all variants.",
            field="variants",
            details={"constraints": {"current": variant_count, "minimum": 1}},
        )

    capacity = category_capacity(category)
    if variant_count > capacity:
        return ValidationIssue(
            code="VVA3",
            message=(
                f"Product has {variant_count} variant(s), but category only allows "
                f"{capacity} unique combination(s)"
            ),
            field="variants",
            details={"constraints": {"current": variant_count, "maximum": capacity}},
        )
    return None


def _final_variants(
    ops: VariantOperations, current_variants: Sequence[ProductVariant]
) -> list[_FinalVariant]:
    """Resolve the variant set as it will look after the operations."""
    deleted = set(ops.delete)
    updates = {u.id: u for u in ops.update}
    final: list[_FinalVariant] = []

    for variant in current_variants:
        if variant.id in deleted:
            continue
        update = updates.get(variant.id)
        values = variant.attribute_value_ids
        label = variant.label
        if update is not None:
            if update.attribute_value_ids is not None:
                values = update.attribute_value_ids
            label = update.sku or label
        final.append(_FinalVariant(label=label, combination=tuple(sorted(values))))

    for index, create in enumerate(ops.create):
        final.append(
            _FinalVariant(
                label=create.sku or f"create[{index}]",
                combination=tuple(sorted(create.attribute_value_ids)),
            )
        )
    return final


def _check_duplicate_combinations(variants: list[_FinalVariant]) -> list[ValidationIssue]:
    # VVA4
    issues: list[ValidationIssue] = []
    first_seen: dict[tuple[str, ...], str] = {}
    for variant in variants:
        existing = first_seen.get(variant.combination)
        if existing is not None:
            issues.append(
                ValidationIssue(
                    code="VVA4",
                    message=(
                        f"Duplicate attribute combination found in variants "
                        f"{existing} and {variant.label}"
                    ),
                    field="variants.attributeValueIds",
                    details={
                        "conflicts": {
                            "duplicates": [existing, variant.label],
                            "combination": list(variant.combination),
                        }
                    },
                )
            )
            continue
        first_seen[variant.combination] = variant.label
    return issues
