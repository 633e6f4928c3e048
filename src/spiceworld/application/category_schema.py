"""Shared steps of the category schema use cases."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from spiceworld.domain.exceptions import ValidationError
from spiceworld.domain.model.category import Attribute, AttributeValue, Category
from spiceworld.domain.model.value_objects import new_id
from spiceworld.domain.repository.unit_of_work import UnitOfWork
from spiceworld.domain.service.schema_reconciliation import reconcile_product

logger = logging.getLogger(__name__)


def build_values(attribute_name: str, values: Iterable[str]) -> list[AttributeValue]:
    result = []
    for value in values:
        if not value.strip():
            raise ValidationError(f"Attribute '{attribute_name}' has an empty value")
        result.append(AttributeValue(id=new_id(), value=value.strip()))
    return result


def build_attribute(category_id: str, name: str, values: Iterable[str]) -> Attribute:
    if not name.strip():
        raise ValidationError("Attribute name is required")
    return Attribute(
        id=new_id(),
        name=name.strip(),
        category_id=category_id,
        values=build_values(name, values),
    )


def save_schema_change(
    uow: UnitOfWork, category: Category, removed_value_ids: Iterable[str] = ()
) -> tuple[str, ...]:
    """Write ``category`` and strip removed values from its products.

    Must run inside ``uow``.  Returns the ids of the products that were
    moved to DRAFT.
    """
    removed = set(removed_value_ids)
    drafted: list[str] = []
    if removed:
        for product in uow.products.list_by_category(category.id):
            warnings = reconcile_product(category, product, removed)
            if warnings is None:
                continue
            uow.products.update(product, product.version)
            if warnings:
                drafted.append(product.id)
                logger.warning(
                    "Product %s moved to DRAFT after a schema edit of category %r: %s",
                    product.id,
                    category.name,
                    ", ".join(issue.code for issue in warnings),
                )
    uow.categories.update(category)
    return tuple(drafted)
