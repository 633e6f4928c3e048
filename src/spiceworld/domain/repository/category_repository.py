"""Abstract repository for Category aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from spiceworld.domain.model.category import Category


class CategoryRepository(ABC):

    @abstractmethod
    def get_by_id(self, category_id: str) -> Category | None:
        """Return a category with its attributes and values, or None."""

    @abstractmethod
    def get_by_name(self, name: str) -> Category | None:
        """Return a category by its normalized name, or None."""

    @abstractmethod
    def list_all(self) -> list[Category]:
        """Return every category ordered by name."""

    @abstractmethod
    def add(self, category: Category) -> None:
        """Persist a new category with its attributes."""

    @abstractmethod
    def update(self, category: Category) -> None:
        """Write name, image, attributes and values; missing ones are deleted."""

    @abstractmethod
    def delete(self, category_id: str) -> None:
        """Delete a category with its attributes, values and image."""

    @abstractmethod
    def get_by_attribute(self, attribute_id: str) -> Category | None:
        """Return the category owning an attribute, or None."""

    @abstractmethod
    def get_by_attribute_value(self, value_id: str) -> Category | None:
        """Return the category owning an attribute value, or None."""
