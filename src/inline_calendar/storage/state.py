"""Calendar storage backed by a PostgreSQL JSONB key-value ``state`` table.

Calendars are written as their ``to_json()`` snapshot and revived on read.
Keys are namespaced with a configurable prefix so the table can be shared
with other state.

The check-then-write in ``CalendarControlPanel.create`` is not guarded here
either: two concurrent writers for the same key both succeed and the last
write wins.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import asyncpg

from inline_calendar.core.calendar import Calendar

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "calendar:"

STATE_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS state (
    key TEXT PRIMARY KEY,
    value JSONB NOT NULL DEFAULT '{}',
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    version INTEGER NOT NULL DEFAULT 1
)
"""


def decode_jsonb(val: Any) -> Any:
    """Decode a JSONB value, handling potential double-encoding.

    asyncpg returns JSONB columns as Python strings (text representation)
    when no custom codec is registered.  Normally one ``json.loads`` pass
    suffices.  If the stored JSONB was accidentally double-encoded (a JSON
    string containing JSON text), a second pass is needed.
    """
    if not isinstance(val, str):
        return val
    val = json.loads(val)
    if isinstance(val, str):
        logger.warning("Double-encoded JSONB detected, applying second decode pass")
        try:
            val = json.loads(val)
        except (json.JSONDecodeError, ValueError):
            pass
    return val


async def ensure_state_table(pool: asyncpg.Pool) -> None:
    """Create the ``state`` table if it does not exist yet."""
    await pool.execute(STATE_TABLE_DDL)


async def state_get(pool: asyncpg.Pool, key: str) -> Any | None:
    """Return the JSONB value for *key*, or ``None`` if the key does not exist."""
    row = await pool.fetchval(
        "SELECT value FROM state WHERE key = $1",
        key,
    )
    if row is None:
        return None
    return decode_jsonb(row)


async def state_set(pool: asyncpg.Pool, key: str, value: Any) -> int:
    """Upsert *key* with *value* (any JSON-serialisable type).

    Returns:
        The row version after the upsert (1 for a fresh key).
    """
    json_value = json.dumps(value, ensure_ascii=False)
    new_version: int = await pool.fetchval(
        """
        INSERT INTO state (key, value, updated_at, version)
        VALUES ($1, $2::jsonb, now(), 1)
        ON CONFLICT (key) DO UPDATE
            SET value = EXCLUDED.value,
                updated_at = now(),
                version = state.version + 1
        RETURNING version
        """,
        key,
        json_value,
    )
    return new_version


async def state_delete(pool: asyncpg.Pool, key: str) -> None:
    """Delete *key* from the state store.  No-op if the key does not exist."""
    await pool.execute("DELETE FROM state WHERE key = $1", key)


class StateStoreStorage:
    """Calendar storage over the JSONB ``state`` table.

    Args:
        pool: asyncpg pool (or anything exposing ``fetchval``/``execute``).
        key_prefix: Prepended to every calendar id to form the state key.
    """

    def __init__(self, pool: asyncpg.Pool, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self.pool = pool
        self.key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def read(self, key: str) -> Any | None:
        return await state_get(self.pool, self._key(key))

    async def write(self, key: str, value: Calendar) -> None:
        version = await state_set(self.pool, self._key(key), value.to_json())
        logger.debug(
            "Calendar snapshot stored",
            extra={"state_key": self._key(key), "state_version": version},
        )

    async def delete(self, key: str) -> None:
        await state_delete(self.pool, self._key(key))
