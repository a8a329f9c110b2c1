# services/store_repository.py
import logging
import re
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError as SchemaError

from services.errors import RepositoryNotInitialized, ValidationError
from services.kv_store import KVStore
from services.records import (
    REQUIRED_STORE_FIELDS,
    STORE_COUNT_KEY,
    Store,
    StoreCount,
    StoredStore,
    store_key,
)

logger = logging.getLogger("uvicorn.error")

_STORE_ID = re.compile(r"^\d+$")

MISSING_FIELDS_MSG = "Missing required fields: " + ", ".join(REQUIRED_STORE_FIELDS)
BULK_FIELDS_MSG = "All stores must have: " + ", ".join(REQUIRED_STORE_FIELDS)
BULK_SHAPE_MSG = "stores must be a non-empty array"


def parse_store(payload: Any, message: str = MISSING_FIELDS_MSG) -> Store:
    if not isinstance(payload, dict):
        raise ValidationError(message)
    try:
        return Store.model_validate(payload)
    except SchemaError as e:
        raise ValidationError(message) from e


def parse_store_id(raw: Any) -> int:
    text = str(raw).strip()
    if not _STORE_ID.match(text):
        raise ValidationError("Invalid store ID")
    return int(text)


class StoreRepository:
    """
    Stores live at `store:{i}` and `store:count` holds the next id to hand out.
    Ids are positional: deleting one leaves a hole and the counter only goes
    back to zero on a full clear.

    Ids are reserved with an atomic counter increment before anything is
    written, so concurrent creates never land on the same index.
    """

    def __init__(self, kv: KVStore):
        self.kv = kv

    # ---- counter ----
    async def count(self) -> Optional[int]:
        """Current counter value, or None when the store list was never initialized."""
        raw = await self.kv.get(STORE_COUNT_KEY)
        if raw is None:
            return None
        try:
            return StoreCount.model_validate(raw).count
        except SchemaError as e:
            raise ValueError(f"Malformed {STORE_COUNT_KEY} record: {raw!r}") from e

    async def _reserve(self, n: int) -> int:
        """Reserve n consecutive ids; returns the first one."""
        end = await self.kv.incr_count(STORE_COUNT_KEY, n)
        return end - n

    # ---- reads ----
    async def _fetch(self, count: int) -> List[StoredStore]:
        if count <= 0:
            return []
        raw = await self.kv.mget([store_key(i) for i in range(count)])
        out: List[StoredStore] = []
        for i, value in enumerate(raw):
            if value is None:
                continue  # hole left by a delete
            try:
                out.append(StoredStore.model_validate({**value, "id": i}))
            except (SchemaError, TypeError) as e:
                logger.warning("Skipping malformed record %s: %s", store_key(i), e)
        return out

    async def list_all(self, *, require_initialized: bool = False) -> List[StoredStore]:
        count = await self.count()
        if count is None:
            if require_initialized:
                raise RepositoryNotInitialized()
            return []
        return await self._fetch(count)

    async def list_retailers(self) -> List[str]:
        stores = await self.list_all()
        return sorted({s.retailer for s in stores})

    # ---- writes ----
    async def create(self, payload: Any) -> StoredStore:
        store = parse_store(payload)
        new_id = await self._reserve(1)
        await self.kv.set(store_key(new_id), store.model_dump())
        return StoredStore(**store.model_dump(), id=new_id)

    async def bulk_create(self, payload: Any) -> List[StoredStore]:
        if not isinstance(payload, list) or not payload:
            raise ValidationError(BULK_SHAPE_MSG)
        # validate everything before the first write
        stores = [parse_store(item, BULK_FIELDS_MSG) for item in payload]

        first = await self._reserve(len(stores))
        entries = {store_key(first + i): s.model_dump() for i, s in enumerate(stores)}
        await self.kv.mset(entries)
        return [StoredStore(**s.model_dump(), id=first + i) for i, s in enumerate(stores)]

    async def delete_by_id(self, raw_id: Any) -> int:
        store_id = parse_store_id(raw_id)
        await self.kv.delete(store_key(store_id))
        return store_id

    async def delete_all(self) -> int:
        count = await self.count()
        if not count:
            return 0
        await self.kv.mdel([store_key(i) for i in range(count)])
        await self.kv.set(STORE_COUNT_KEY, StoreCount(count=0).model_dump())
        return count

    async def seed(self, stores: Sequence[dict]) -> List[StoredStore]:
        await self.delete_all()
        return await self.bulk_create(list(stores))
