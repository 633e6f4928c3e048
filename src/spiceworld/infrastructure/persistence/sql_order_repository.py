"""SQLAlchemy implementation of OrderRepository."""

from __future__ import annotations

from datetime import timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from spiceworld.domain.model.order import (
    Order,
    OrderItem,
    OrderStatus,
    ShippingAddress,
    ShippingStatus,
)
from spiceworld.domain.model.value_objects import Money, Quantity
from spiceworld.domain.repository.order_repository import OrderRepository
from spiceworld.infrastructure.persistence.tables import OrderItemRow, OrderRow


class SqlOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: str) -> Order | None:
        row = self._session.scalars(
            self._select().where(OrderRow.id == order_id)
        ).one_or_none()
        return self._to_domain(row) if row is not None else None

    def get_by_payment_session(self, session_id: str) -> Order | None:
        row = self._session.scalars(
            self._select().where(OrderRow.payment_session_id == session_id)
        ).first()
        return self._to_domain(row) if row is not None else None

    def add(self, order: Order) -> None:
        row = OrderRow(
            id=order.id,
            user_id=order.user_id,
            currency=order.currency,
            subtotal=order.subtotal.amount,
            shipping=order.shipping.amount,
            total=order.total.amount,
            shipping_address=order.shipping_address.to_dict(),
            created_at=order.created_at,
            items=[
                OrderItemRow(
                    position=pos,
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    product_name=item.product_name,
                    sku=item.sku,
                    unit_price=item.unit_price.amount,
                    quantity=item.quantity.value,
                    line_total=item.line_total.amount,
                )
                for pos, item in enumerate(order.items)
            ],
        )
        self._write_state(row, order)
        self._session.add(row)
        self._session.flush()

    def save(self, order: Order) -> None:
        row = self._session.get(OrderRow, order.id)
        if row is None:
            self.add(order)
            return
        self._write_state(row, order)
        self._session.flush()

    def list(
        self,
        user_id: str | None = None,
        status: OrderStatus | None = None,
        skip: int = 0,
        take: int = 20,
    ) -> list[Order]:
        stmt = self._filter(self._select(), user_id, status)
        stmt = stmt.order_by(OrderRow.created_at.desc(), OrderRow.id).offset(skip).limit(take)
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def count(self, user_id: str | None = None, status: OrderStatus | None = None) -> int:
        stmt = self._filter(select(func.count()).select_from(OrderRow), user_id, status)
        return self._session.scalar(stmt) or 0

    # --- Mapping helpers ------------------------------------------------------

    @staticmethod
    def _write_state(row: OrderRow, order: Order) -> None:
        row.status = order.status.value
        row.shipping_status = order.shipping_status.value
        row.tracking_number = order.tracking_number
        row.payment_session_id = order.payment_session_id
        row.payment_reference = order.payment_reference

    @staticmethod
    def _filter(stmt, user_id, status):
        if user_id is not None:
            stmt = stmt.where(OrderRow.user_id == user_id)
        if status is not None:
            stmt = stmt.where(OrderRow.status == status.value)
        return stmt

    @staticmethod
    def _select():
        return select(OrderRow).options(selectinload(OrderRow.items))

    @staticmethod
    def _to_domain(row: OrderRow) -> Order:
        created_at = row.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return Order(
            id=row.id,
            user_id=row.user_id,
            items=[
                OrderItem(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    product_name=item.product_name,
                    sku=item.sku,
                    quantity=Quantity(item.quantity),
                    unit_price=Money(item.unit_price, row.currency),
                )
                for item in row.items
            ],
            shipping_address=ShippingAddress.from_dict(row.shipping_address),
            shipping=Money(row.shipping, row.currency),
            status=OrderStatus(row.status),
            shipping_status=ShippingStatus(row.shipping_status),
            payment_session_id=row.payment_session_id,
            payment_reference=row.payment_reference,
            tracking_number=row.tracking_number,
            created_at=created_at,
        )
