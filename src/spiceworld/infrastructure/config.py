"""Centralized configuration, read from the environment.

A ``.env`` file in the working directory is loaded first; real
environment variables win over it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Project root when installed in editable mode.
_PROJECT_ROOT = Path(__file__).resolve().parents[3]


@dataclass(frozen=True)
class Settings:
    database_url: str
    storage_dir: Path
    storage_base_url: str
    checkout_url: str
    currency: str
    free_shipping_threshold: int  # minor units
    shipping_fee: int  # minor units
    checkout_timeout: float  # seconds
    cache_max_entries: int
    cache_ttl: float  # seconds
    log_level: str


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings() -> Settings:
    load_dotenv(Path.cwd() / ".env")
    data_dir = _PROJECT_ROOT / "data"
    return Settings(
        database_url=os.getenv(
            "SPICEWORLD_DATABASE_URL", f"sqlite:///{data_dir / 'spiceworld.db'}"
        ),
        storage_dir=Path(os.getenv("SPICEWORLD_STORAGE_DIR", str(data_dir / "uploads"))),
        storage_base_url=os.getenv("SPICEWORLD_STORAGE_BASE_URL", "http://localhost:8000/files"),
        checkout_url=os.getenv("SPICEWORLD_CHECKOUT_URL", "http://localhost:8000/checkout"),
        currency=os.getenv("SPICEWORLD_CURRENCY", "EUR").upper(),
        free_shipping_threshold=_int("SPICEWORLD_FREE_SHIPPING_THRESHOLD", 5000),
        shipping_fee=_int("SPICEWORLD_SHIPPING_FEE", 500),
        checkout_timeout=_float("SPICEWORLD_CHECKOUT_TIMEOUT", 10.0),
        cache_max_entries=_int("SPICEWORLD_CACHE_MAX_ENTRIES", 500),
        cache_ttl=_float("SPICEWORLD_CACHE_TTL", 600.0),
        log_level=os.getenv("SPICEWORLD_LOG_LEVEL", "WARNING").upper(),
    )
