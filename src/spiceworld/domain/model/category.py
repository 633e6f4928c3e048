"""Category aggregate.

A category defines the attribute schema its products' variants are built
from: each attribute owns a set of allowed values, and a variant picks at
most one value per attribute.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from spiceworld.domain.exceptions import ConflictError, EntityNotFoundError, ValidationError
from spiceworld.domain.model.product import Image


@dataclass(frozen=True)
class AttributeValue:
    id: str
    value: str


@dataclass
class Attribute:
    id: str
    name: str
    category_id: str
    values: list[AttributeValue] = field(default_factory=list)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for val in self.values:
            key = val.value.strip().lower()
            if key in seen:
                raise ValidationError(
                    f"Attribute '{self.name}' has duplicate value '{val.value}'"
                )
            seen.add(key)


@dataclass
class Category:
    """Aggregate root for the attribute schema of a group of products."""

    id: str
    name: str
    attributes: list[Attribute] = field(default_factory=list)
    image: Image | None = None

    def __post_init__(self) -> None:
        names = [attr.name.strip().lower() for attr in self.attributes]
        if len(names) != len(set(names)):
            raise ValidationError(
                f"Category '{self.name}' has duplicate attribute names"
            )

    @property
    def has_attributes(self) -> bool:
        return len(self.attributes) > 0

    def value_to_attribute(self) -> dict[str, str]:
        """Map every allowed attribute value id to its attribute id."""
        return {
            val.id: attr.id
            for attr in self.attributes
            for val in attr.values
        }

    def value_counts(self) -> list[int]:
        return [len(attr.values) for attr in self.attributes]

    def find_value(self, value_id: str) -> AttributeValue | None:
        for attr in self.attributes:
            for val in attr.values:
                if val.id == value_id:
                    return val
        return None

    def find_attribute(self, attribute_id: str) -> Attribute:
        for attr in self.attributes:
            if attr.id == attribute_id:
                return attr
        raise EntityNotFoundError(f"Attribute {attribute_id} not found")

    def attribute_of_value(self, value_id: str) -> Attribute:
        for attr in self.attributes:
            if any(val.id == value_id for val in attr.values):
                return attr
        raise EntityNotFoundError(f"Attribute value {value_id} not found")

    # --- Schema edits ---------------------------------------------------------
    #
    # Each edit checks its own conflicts and raises before touching state.
    # Removals return the attribute value ids that disappeared so callers
    # can strip them from the category's variants.

    def rename(self, name: str) -> None:
        if not name:
            raise ValidationError("Category name is required")
        self.name = name

    def add_attribute(self, attribute: Attribute) -> None:
        _required(attribute.name, "Attribute name")
        if self._attribute_named(attribute.name) is not None:
            raise ConflictError(f"Attribute names already exist: {attribute.name}")
        attribute.category_id = self.id
        self.attributes.append(attribute)

    def rename_attribute(self, attribute_id: str, name: str) -> None:
        attr = self.find_attribute(attribute_id)
        name = _required(name, "Attribute name")
        other = self._attribute_named(name)
        if other is not None and other.id != attr.id:
            raise ConflictError(f"Attribute name conflicts: {name}")
        attr.name = name

    def remove_attribute(self, attribute_id: str) -> list[str]:
        attr = self.find_attribute(attribute_id)
        self.attributes.remove(attr)
        return [val.id for val in attr.values]

    def add_values(self, attribute_id: str, values: list[AttributeValue]) -> None:
        attr = self.find_attribute(attribute_id)
        existing = {val.value.strip().lower() for val in attr.values}
        duplicates = [val.value for val in values if val.value.strip().lower() in existing]
        if duplicates:
            raise ConflictError(
                f"Attribute {attr.name} already has values: {', '.join(duplicates)}"
            )
        # The combined list re-runs the duplicate check within ``values``.
        attr.values = Attribute(attr.id, attr.name, self.id, attr.values + list(values)).values

    def rename_value(self, value_id: str, value: str) -> AttributeValue:
        attr = self.attribute_of_value(value_id)
        value = _required(value, "Attribute value")
        for val in attr.values:
            if val.id != value_id and val.value.strip().lower() == value.lower():
                raise ConflictError(f"Attribute {attr.name} already has values: {value}")
        renamed = AttributeValue(id=value_id, value=value)
        attr.values = [renamed if val.id == value_id else val for val in attr.values]
        return renamed

    def remove_values(self, attribute_id: str, value_ids: list[str]) -> list[str]:
        attr = self.find_attribute(attribute_id)
        known = {val.id for val in attr.values}
        missing = [value_id for value_id in value_ids if value_id not in known]
        if missing:
            raise EntityNotFoundError(f"Value IDs not found: {', '.join(missing)}")
        removed = set(value_ids)
        attr.values = [val for val in attr.values if val.id not in removed]
        return list(value_ids)

    def _attribute_named(self, name: str) -> Attribute | None:
        key = name.strip().lower()
        for attr in self.attributes:
            if attr.name.strip().lower() == key:
                return attr
        return None


def _required(text: str, label: str) -> str:
    text = (text or "").strip()
    if not text:
        raise ValidationError(f"{label} is required")
    return text


def normalize_category_name(name: str) -> str:
    return " ".join(name.split()).lower()
