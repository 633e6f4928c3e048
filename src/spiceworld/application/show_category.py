"""Application service: Show / List Categories use cases (queries)."""

from __future__ import annotations

from spiceworld.application.dto import CategoryDTO, category_to_dto
from spiceworld.domain.exceptions import EntityNotFoundError
from spiceworld.domain.repository.unit_of_work import UnitOfWork


class ShowCategoryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, category_id: str) -> CategoryDTO:
        with self._uow:
            category = self._uow.categories.get_by_id(category_id)
        if category is None:
            raise EntityNotFoundError(f"Category with ID '{category_id}' not found")
        return category_to_dto(category)


class ListCategoriesHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[CategoryDTO]:
        with self._uow:
            return [category_to_dto(c) for c in self._uow.categories.list_all()]
