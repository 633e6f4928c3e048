"""Application service: Show / List Orders use cases (queries).

Customers only see their own orders; admins see every order.
"""

from __future__ import annotations

from spiceworld.application.dto import OrderDTO, OrderPageDTO, order_to_dto
from spiceworld.domain.exceptions import EntityNotFoundError, UnauthorizedError, ValidationError
from spiceworld.domain.model.order import OrderStatus
from spiceworld.domain.repository.unit_of_work import UnitOfWork

MAX_PAGE_SIZE = 100


class ShowOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: str, user_id: str, is_admin: bool = False) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order {order_id} not found")
        if not is_admin and order.user_id != user_id:
            raise UnauthorizedError(f"Order {order_id} belongs to another user")
        return order_to_dto(order)


class ListOrdersHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        user_id: str,
        is_admin: bool = False,
        page: int = 1,
        limit: int = 10,
        status: OrderStatus | None = None,
    ) -> OrderPageDTO:
        if page < 1:
            raise ValidationError("Page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

        owner = None if is_admin else user_id
        with self._uow:
            orders = self._uow.orders.list(
                user_id=owner, status=status, skip=(page - 1) * limit, take=limit
            )
            total = self._uow.orders.count(user_id=owner, status=status)
        return OrderPageDTO(
            items=[order_to_dto(o) for o in orders], total=total, page=page, limit=limit
        )
