"""Build the storage backend selected in ``calendar.toml``."""

from __future__ import annotations

import logging

import asyncpg

from inline_calendar.config import StorageBackend, StorageConfig
from inline_calendar.storage.base import CalendarStorage
from inline_calendar.storage.memory import MemoryStorage
from inline_calendar.storage.state import StateStoreStorage, ensure_state_table

logger = logging.getLogger(__name__)


async def open_storage(config: StorageConfig) -> CalendarStorage:
    """Return a ready-to-use storage backend for *config*.

    For the postgres backend a connection pool is created and the ``state``
    table is provisioned; the caller owns the pool (``storage.pool``) and
    must close it on shutdown.
    """
    if config.backend is StorageBackend.MEMORY:
        return MemoryStorage()

    if not config.dsn:
        raise ValueError("A DSN is required for the postgres storage backend")

    pool = await asyncpg.create_pool(
        dsn=config.dsn,
        min_size=config.min_pool_size,
        max_size=config.max_pool_size,
    )
    try:
        await ensure_state_table(pool)
    except Exception:
        await pool.close()
        raise

    logger.info(
        "Calendar state storage ready",
        extra={"storage_backend": config.backend.value, "key_prefix": config.key_prefix},
    )
    return StateStoreStorage(pool, key_prefix=config.key_prefix)
