# services/kv_store.py
import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

import asyncpg

logger = logging.getLogger("uvicorn.error")

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class KVStore:
    """
    Narrow key-value contract used by the repository and the ZIP resolver.
    Keys are strings, values are JSON-compatible structures.

    mget() is aligned with its input: one slot per key, None where missing.
    incr_count() atomically adds `amount` to the {"count": n} record at `key`
    (creating it at 0 when absent) and returns the new value.
    """

    async def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    async def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError

    async def mget(self, keys: Sequence[str]) -> List[Optional[Any]]:
        raise NotImplementedError

    async def mset(self, entries: Mapping[str, Any]) -> None:
        raise NotImplementedError

    async def mdel(self, keys: Sequence[str]) -> None:
        raise NotImplementedError

    async def get_by_prefix(self, prefix: str) -> Dict[str, Any]:
        raise NotImplementedError

    async def incr_count(self, key: str, amount: int = 1) -> int:
        raise NotImplementedError

    async def close(self) -> None:
        return None


# ----------------------------- PostgreSQL -----------------------------
def _escape_like(prefix: str) -> str:
    return prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _load(raw: Optional[str]) -> Optional[Any]:
    # asyncpg hands jsonb back as text unless a codec is registered
    if raw is None:
        return None
    return json.loads(raw)


class PgKVStore(KVStore):
    """
    Table layout:
        CREATE TABLE kv_store (key TEXT NOT NULL PRIMARY KEY, value JSONB NOT NULL)
    """

    def __init__(self, pool: asyncpg.pool.Pool, table: str = "kv_store"):
        if not _TABLE_NAME.match(table):
            raise ValueError(f"Invalid KV table name: {table!r}")
        self.pool = pool
        self.table = table

    async def ensure_schema(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                  key   TEXT  NOT NULL PRIMARY KEY,
                  value JSONB NOT NULL
                )
                """
            )

    async def get(self, key: str) -> Optional[Any]:
        async with self.pool.acquire() as conn:
            raw = await conn.fetchval(f"SELECT value FROM {self.table} WHERE key = $1", key)
        return _load(raw)

    async def set(self, key: str, value: Any) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                f"""
                INSERT INTO {self.table} (key, value) VALUES ($1, $2::jsonb)
                ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value
                """,
                key,
                json.dumps(value),
            )

    async def delete(self, key: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(f"DELETE FROM {self.table} WHERE key = $1", key)

    async def mget(self, keys: Sequence[str]) -> List[Optional[Any]]:
        if not keys:
            return []
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT key, value FROM {self.table} WHERE key = ANY($1::text[])",
                list(keys),
            )
        found = {r["key"]: _load(r["value"]) for r in rows}
        return [found.get(k) for k in keys]

    async def mset(self, entries: Mapping[str, Any]) -> None:
        if not entries:
            return
        async with self.pool.acquire() as conn:
            await conn.executemany(
                f"""
                INSERT INTO {self.table} (key, value) VALUES ($1, $2::jsonb)
                ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value
                """,
                [(k, json.dumps(v)) for k, v in entries.items()],
            )

    async def mdel(self, keys: Sequence[str]) -> None:
        if not keys:
            return
        async with self.pool.acquire() as conn:
            await conn.execute(
                f"DELETE FROM {self.table} WHERE key = ANY($1::text[])",
                list(keys),
            )

    async def get_by_prefix(self, prefix: str) -> Dict[str, Any]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT key, value FROM {self.table} WHERE key LIKE $1 ORDER BY key",
                _escape_like(prefix) + "%",
            )
        return {r["key"]: _load(r["value"]) for r in rows}

    async def incr_count(self, key: str, amount: int = 1) -> int:
        # single statement, so concurrent callers never read the same value
        async with self.pool.acquire() as conn:
            value = await conn.fetchval(
                f"""
                INSERT INTO {self.table} (key, value)
                VALUES ($1, jsonb_build_object('count', $2::bigint))
                ON CONFLICT (key) DO UPDATE
                SET value = jsonb_build_object(
                  'count', COALESCE(({self.table}.value->>'count')::bigint, 0) + $2::bigint
                )
                RETURNING (value->>'count')::bigint
                """,
                key,
                int(amount),
            )
        return int(value)

    async def close(self) -> None:
        await self.pool.close()


# ----------------------------- in-memory -----------------------------
def _copy(value: Any) -> Any:
    # same JSON round trip the database applies
    return None if value is None else json.loads(json.dumps(value))


class MemoryKVStore(KVStore):
    """Process-local backend for development and tests. Not durable."""

    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        return _copy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = _copy(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def mget(self, keys: Sequence[str]) -> List[Optional[Any]]:
        return [_copy(self._data.get(k)) for k in keys]

    async def mset(self, entries: Mapping[str, Any]) -> None:
        for k, v in entries.items():
            self._data[k] = _copy(v)

    async def mdel(self, keys: Sequence[str]) -> None:
        for k in keys:
            self._data.pop(k, None)

    async def get_by_prefix(self, prefix: str) -> Dict[str, Any]:
        return {k: _copy(self._data[k]) for k in sorted(self._data) if k.startswith(prefix)}

    async def incr_count(self, key: str, amount: int = 1) -> int:
        # no await between read and write: atomic within the event loop
        current = self._data.get(key)
        count = current.get("count", 0) if isinstance(current, dict) else 0
        count = int(count) + int(amount)
        self._data[key] = {"count": count}
        return count


async def open_kv_store(database_url: Optional[str], *, table: str, timeout: float) -> KVStore:
    if not database_url:
        logger.warning("DATABASE_URL not set, using in-memory KV store (data is lost on restart)")
        return MemoryKVStore()
    pool = await asyncpg.create_pool(database_url, timeout=timeout)
    store = PgKVStore(pool, table=table)
    await store.ensure_schema()
    return store
