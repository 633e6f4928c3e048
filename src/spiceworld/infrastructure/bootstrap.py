"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from spiceworld.application.listing_cache import ListingCache
from spiceworld.domain.model.value_objects import Money
from spiceworld.infrastructure.config import Settings, load_settings
from spiceworld.infrastructure.payment.offline_payment_gateway import OfflinePaymentGateway
from spiceworld.infrastructure.persistence.database import (
    create_database_engine,
    session_factory,
)
from spiceworld.infrastructure.persistence.sql_unit_of_work import SqlUnitOfWork
from spiceworld.infrastructure.storage.local_file_storage import LocalFileStorage

_SQLITE_FILE_PREFIX = "sqlite:///"


@lru_cache(maxsize=1)
def settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def engine() -> Engine:
    url = settings().database_url
    if url.startswith(_SQLITE_FILE_PREFIX) and not url.endswith(":memory:"):
        Path(url[len(_SQLITE_FILE_PREFIX):]).parent.mkdir(parents=True, exist_ok=True)
    return create_database_engine(url, lock_timeout=settings().checkout_timeout)


@lru_cache(maxsize=1)
def _sessions() -> sessionmaker[Session]:
    return session_factory(engine())


@lru_cache(maxsize=1)
def listing_cache() -> ListingCache:
    cfg = settings()
    return ListingCache(max_entries=cfg.cache_max_entries, ttl_seconds=cfg.cache_ttl)


def unit_of_work() -> SqlUnitOfWork:
    return SqlUnitOfWork(_sessions())


def file_storage() -> LocalFileStorage:
    cfg = settings()
    return LocalFileStorage(cfg.storage_dir, cfg.storage_base_url)


def payment_gateway() -> OfflinePaymentGateway:
    return OfflinePaymentGateway(settings().checkout_url)


def free_shipping_threshold() -> Money:
    cfg = settings()
    return Money(cfg.free_shipping_threshold, cfg.currency)


def shipping_fee() -> Money:
    cfg = settings()
    return Money(cfg.shipping_fee, cfg.currency)


def reset() -> None:
    """Drop every cached component so the next call re-reads settings."""
    for factory in (settings, engine, _sessions, listing_cache):
        factory.cache_clear()
