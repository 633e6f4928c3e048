"""Application service: Show Product use case (query)."""

from __future__ import annotations

from spiceworld.application.dto import ProductDTO, product_to_dto
from spiceworld.domain.exceptions import EntityNotFoundError, ValidationError
from spiceworld.domain.repository.unit_of_work import UnitOfWork


class ShowProductHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, product_id: str | None = None, slug: str | None = None) -> ProductDTO:
        if (product_id is None) == (slug is None):
            raise ValidationError("Give exactly one of product id or slug")

        with self._uow:
            if product_id is not None:
                product = self._uow.products.get_by_id(product_id)
            else:
                product = self._uow.products.get_by_slug(slug)
        if product is None:
            raise EntityNotFoundError(f"Product '{product_id or slug}' not found")
        return product_to_dto(product)
