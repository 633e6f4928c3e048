"""SQLAlchemy implementation of CategoryRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from spiceworld.domain.model.category import Attribute, AttributeValue, Category
from spiceworld.domain.repository.category_repository import CategoryRepository
from spiceworld.infrastructure.persistence.image_rows import (
    image_to_domain,
    new_image_row,
    write_image,
)
from spiceworld.infrastructure.persistence.tables import (
    AttributeRow,
    AttributeValueRow,
    CategoryRow,
)


class SqlCategoryRepository(CategoryRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- CategoryRepository interface -----------------------------------------

    def get_by_id(self, category_id: str) -> Category | None:
        row = self._load(CategoryRow.id == category_id)
        return self._to_domain(row) if row is not None else None

    def get_by_name(self, name: str) -> Category | None:
        row = self._load(CategoryRow.name == name)
        return self._to_domain(row) if row is not None else None

    def get_by_attribute(self, attribute_id: str) -> Category | None:
        category_id = self._session.scalar(
            select(AttributeRow.category_id).where(AttributeRow.id == attribute_id)
        )
        return self.get_by_id(category_id) if category_id is not None else None

    def get_by_attribute_value(self, value_id: str) -> Category | None:
        category_id = self._session.scalar(
            select(AttributeRow.category_id)
            .join(AttributeValueRow, AttributeValueRow.attribute_id == AttributeRow.id)
            .where(AttributeValueRow.id == value_id)
        )
        return self.get_by_id(category_id) if category_id is not None else None

    def list_all(self) -> list[Category]:
        rows = self._session.scalars(self._select().order_by(CategoryRow.name))
        return [self._to_domain(row) for row in rows]

    def add(self, category: Category) -> None:
        row = CategoryRow(
            id=category.id,
            name=category.name,
            attributes=[
                self._new_attribute_row(attr, a_pos)
                for a_pos, attr in enumerate(category.attributes)
            ],
        )
        if category.image is not None:
            row.image = new_image_row(category.image, 0)
        self._session.add(row)
        self._session.flush()

    def update(self, category: Category) -> None:
        row = self._load(CategoryRow.id == category.id)
        if row is None:
            return
        row.name = category.name
        self._sync_attributes(row, category)

        if category.image is None:
            row.image = None
        elif row.image is None or row.image.id != category.image.id:
            row.image = new_image_row(category.image, 0)
        else:
            write_image(row.image, category.image, 0)
        self._session.flush()

    def delete(self, category_id: str) -> None:
        row = self._load(CategoryRow.id == category_id)
        if row is not None:
            self._session.delete(row)
            self._session.flush()

    # --- Internal helpers -----------------------------------------------------

    def _sync_attributes(self, row: CategoryRow, category: Category) -> None:
        wanted = {attr.id: attr for attr in category.attributes}
        existing = {attr_row.id: attr_row for attr_row in row.attributes}

        # Deletes are flushed first so a new or renamed attribute (or value)
        # may reuse a name that is being removed.
        for attr_row in list(row.attributes):
            if attr_row.id not in wanted:
                row.attributes.remove(attr_row)
                continue
            keep = {val.id for val in wanted[attr_row.id].values}
            for val_row in list(attr_row.values):
                if val_row.id not in keep:
                    attr_row.values.remove(val_row)
        self._session.flush()

        for a_pos, attr in enumerate(category.attributes):
            attr_row = existing.get(attr.id)
            if attr_row is None:
                row.attributes.append(self._new_attribute_row(attr, a_pos))
                continue
            attr_row.name = attr.name
            attr_row.position = a_pos
            values = {val_row.id: val_row for val_row in attr_row.values}
            for v_pos, val in enumerate(attr.values):
                val_row = values.get(val.id)
                if val_row is None:
                    attr_row.values.append(
                        AttributeValueRow(id=val.id, value=val.value, position=v_pos)
                    )
                else:
                    val_row.value = val.value
                    val_row.position = v_pos

    @staticmethod
    def _new_attribute_row(attr: Attribute, position: int) -> AttributeRow:
        return AttributeRow(
            id=attr.id,
            name=attr.name,
            position=position,
            values=[
                AttributeValueRow(id=val.id, value=val.value, position=v_pos)
                for v_pos, val in enumerate(attr.values)
            ],
        )

    def _load(self, condition) -> CategoryRow | None:
        return self._session.scalars(self._select().where(condition)).one_or_none()

    # --- Mapping helpers ------------------------------------------------------

    @staticmethod
    def _select():
        return select(CategoryRow).options(
            selectinload(CategoryRow.attributes).selectinload(AttributeRow.values),
            selectinload(CategoryRow.image),
        )

    @staticmethod
    def _to_domain(row: CategoryRow) -> Category:
        return Category(
            id=row.id,
            name=row.name,
            attributes=[
                Attribute(
                    id=attr.id,
                    name=attr.name,
                    category_id=row.id,
                    values=[AttributeValue(id=v.id, value=v.value) for v in attr.values],
                )
                for attr in row.attributes
            ],
            image=image_to_domain(row.image) if row.image is not None else None,
        )
