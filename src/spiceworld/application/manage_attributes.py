"""Application services: attribute and attribute-value use cases.

Each handler edits one piece of a category's schema.  They go through
the same path as a category patch, so removing a value also strips it
from the category's variants.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from spiceworld.application.category_schema import (
    build_attribute,
    build_values,
    save_schema_change,
)
from spiceworld.application.dto import AttributeDTO, AttributeValueDTO
from spiceworld.application.listing_cache import ListingCache
from spiceworld.domain.exceptions import EntityNotFoundError
from spiceworld.domain.model.category import Attribute, Category
from spiceworld.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _attribute_to_dto(attr: Attribute) -> AttributeDTO:
    return AttributeDTO(
        id=attr.id,
        name=attr.name,
        values=[AttributeValueDTO(id=v.id, value=v.value) for v in attr.values],
    )


class _SchemaEditHandler:

    def __init__(self, uow: UnitOfWork, cache: ListingCache) -> None:
        self._uow = uow
        self._cache = cache

    def _edit(
        self,
        load: Callable[[], Category | None],
        missing: str,
        edit: Callable[[Category], tuple[T, list[str]]],
    ) -> tuple[T, tuple[str, ...]]:
        """Load, edit and save a category; ``edit`` returns (result, removed value ids)."""
        with self._uow:
            category = load()
            if category is None:
                raise EntityNotFoundError(missing)
            result, removed = edit(category)
            drafted = save_schema_change(self._uow, category, removed)
            self._uow.commit()
        self._cache.invalidate(category_ids=[category.id])
        return result, drafted


class CreateAttributeHandler(_SchemaEditHandler):

    def handle(self, category_id: str, name: str, values: list[str]) -> AttributeDTO:
        def edit(category: Category):
            attr = build_attribute(category.id, name, values)
            category.add_attribute(attr)
            return attr, []

        attr, _ = self._edit(
            lambda: self._uow.categories.get_by_id(category_id),
            f"Category with ID '{category_id}' not found",
            edit,
        )
        logger.info("Added attribute %r to category %s", attr.name, category_id)
        return _attribute_to_dto(attr)


class RenameAttributeHandler(_SchemaEditHandler):

    def handle(self, attribute_id: str, name: str) -> AttributeDTO:
        def edit(category: Category):
            category.rename_attribute(attribute_id, name)
            return category.find_attribute(attribute_id), []

        attr, _ = self._edit(
            lambda: self._uow.categories.get_by_attribute(attribute_id),
            f"Attribute {attribute_id} not found",
            edit,
        )
        return _attribute_to_dto(attr)


class DeleteAttributeHandler(_SchemaEditHandler):

    def handle(self, attribute_id: str) -> tuple[str, ...]:
        """Delete an attribute with its values; returns the drafted product ids."""
        _, drafted = self._edit(
            lambda: self._uow.categories.get_by_attribute(attribute_id),
            f"Attribute {attribute_id} not found",
            lambda category: (None, category.remove_attribute(attribute_id)),
        )
        logger.info("Deleted attribute %s; %d product(s) drafted", attribute_id, len(drafted))
        return drafted


class AddAttributeValueHandler(_SchemaEditHandler):

    def handle(self, attribute_id: str, value: str) -> AttributeValueDTO:
        def edit(category: Category):
            attr = category.find_attribute(attribute_id)
            (new_value,) = build_values(attr.name, [value])
            category.add_values(attribute_id, [new_value])
            return new_value, []

        new_value, _ = self._edit(
            lambda: self._uow.categories.get_by_attribute(attribute_id),
            f"Attribute {attribute_id} not found",
            edit,
        )
        return AttributeValueDTO(id=new_value.id, value=new_value.value)


class RenameAttributeValueHandler(_SchemaEditHandler):

    def handle(self, value_id: str, value: str) -> AttributeValueDTO:
        renamed, _ = self._edit(
            lambda: self._uow.categories.get_by_attribute_value(value_id),
            f"Attribute value {value_id} not found",
            lambda category: (category.rename_value(value_id, value), []),
        )
        return AttributeValueDTO(id=renamed.id, value=renamed.value)


class DeleteAttributeValueHandler(_SchemaEditHandler):

    def handle(self, value_id: str) -> tuple[str, ...]:
        """Delete one value; returns the drafted product ids."""

        def edit(category: Category):
            attr = category.attribute_of_value(value_id)
            return None, category.remove_values(attr.id, [value_id])

        _, drafted = self._edit(
            lambda: self._uow.categories.get_by_attribute_value(value_id),
            f"Attribute value {value_id} not found",
            edit,
        )
        logger.info("Deleted attribute value %s; %d product(s) drafted", value_id, len(drafted))
        return drafted
