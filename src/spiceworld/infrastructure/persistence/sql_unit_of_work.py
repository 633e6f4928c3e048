"""SQLAlchemy implementation of UnitOfWork: one session per ``with`` block."""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from spiceworld.domain.exceptions import TransactionTimeoutError
from spiceworld.domain.repository.unit_of_work import UnitOfWork
from spiceworld.infrastructure.persistence.database import is_lock_timeout
from spiceworld.infrastructure.persistence.sql_category_repository import SqlCategoryRepository
from spiceworld.infrastructure.persistence.sql_order_repository import SqlOrderRepository
from spiceworld.infrastructure.persistence.sql_product_repository import SqlProductRepository


class SqlUnitOfWork(UnitOfWork):

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> SqlUnitOfWork:
        self._session = self._session_factory()
        self.categories = SqlCategoryRepository(self._session)
        self.products = SqlProductRepository(self._session)
        self.orders = SqlOrderRepository(self._session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            super().__exit__(exc_type, exc, tb)
        finally:
            if self._session is not None:
                self._session.close()
            self._session = None
        if is_lock_timeout(exc):
            raise TransactionTimeoutError(
                "Gave up waiting for a database lock; the transaction was rolled back"
            ) from exc

    def commit(self) -> None:
        self._require_session().commit()

    def rollback(self) -> None:
        if self._session is not None:
            self._session.rollback()

    def _require_session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work used outside of a 'with' block")
        return self._session
