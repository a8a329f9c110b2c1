"""
Unit tests for StoreRepository.

Positional ids, holes left by deletes, all-or-nothing bulk validation and
concurrent id reservation.
"""

import asyncio

import pytest

from services.errors import RepositoryNotInitialized, ValidationError
from services.kv_store import MemoryKVStore
from services.records import STORE_COUNT_KEY, store_key
from services.store_repository import (
    BULK_FIELDS_MSG,
    BULK_SHAPE_MSG,
    MISSING_FIELDS_MSG,
    StoreRepository,
    parse_store_id,
)


def make_store(n: int, retailer: str = "Walmart") -> dict:
    return {
        "store_name": f"Store {n}",
        "address": f"{100 + n} Main St, Springfield, IL 62701",
        "lat": 39.78 + n / 1000,
        "lon": -89.65,
        "retailer": retailer,
    }


class SlowCounterKVStore(MemoryKVStore):
    """Yields to the loop between reading and writing, like a network round-trip."""

    async def get(self, key):
        value = await super().get(key)
        await asyncio.sleep(0)
        return value


async def naive_create(kv, payload):
    """Read-then-write id allocation: racy under concurrency."""
    raw = await kv.get(STORE_COUNT_KEY)
    count = raw["count"] if raw else 0
    await kv.set(store_key(count), payload)
    await kv.set(STORE_COUNT_KEY, {"count": count + 1})
    return count


@pytest.mark.asyncio
async def test_uninitialized_repository(repo):
    assert await repo.count() is None
    assert await repo.list_all() == []
    with pytest.raises(RepositoryNotInitialized) as exc:
        await repo.list_all(require_initialized=True)
    assert "POST /init-stores" in exc.value.message


@pytest.mark.asyncio
async def test_create_assigns_sequential_ids(repo, kv):
    first = await repo.create(make_store(0))
    second = await repo.create(make_store(1))
    assert (first.id, second.id) == (0, 1)
    assert await repo.count() == 2
    assert await kv.get("store:1") == make_store(1)


@pytest.mark.asyncio
async def test_create_drops_unknown_fields(repo, kv):
    stored = await repo.create({**make_store(0), "phone": "555-0100"})
    assert "phone" not in await kv.get(store_key(stored.id))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"store_name": "X", "address": "1 A St", "lat": 1.0, "lon": 2.0},
        {**make_store(0), "lat": "north"},
        {**make_store(0), "store_name": ""},
        ["not", "an", "object"],
        None,
    ],
)
async def test_create_rejects_invalid_payload(repo, payload):
    with pytest.raises(ValidationError) as exc:
        await repo.create(payload)
    assert exc.value.message == MISSING_FIELDS_MSG
    assert await repo.count() is None


@pytest.mark.asyncio
async def test_delete_leaves_hole_and_id_is_not_reused(repo):
    await repo.bulk_create([make_store(i) for i in range(6)])
    assert await repo.delete_by_id("5") == 5

    remaining = await repo.list_all()
    assert [s.id for s in remaining] == [0, 1, 2, 3, 4]
    assert await repo.count() == 6

    added = await repo.create(make_store(99))
    assert added.id == 6
    assert [s.id for s in await repo.list_all()] == [0, 1, 2, 3, 4, 6]


@pytest.mark.asyncio
async def test_delete_missing_id_is_not_an_error(repo):
    await repo.create(make_store(0))
    assert await repo.delete_by_id(42) == 42
    assert len(await repo.list_all()) == 1


@pytest.mark.parametrize("raw", ["abc", "-1", "1.5", "", " ", "1e3"])
def test_parse_store_id_rejects_non_integers(raw):
    with pytest.raises(ValidationError) as exc:
        parse_store_id(raw)
    assert exc.value.message == "Invalid store ID"


def test_parse_store_id_accepts_digits():
    assert parse_store_id("007") == 7
    assert parse_store_id(3) == 3


@pytest.mark.asyncio
async def test_bulk_create_reserves_contiguous_ids(repo):
    await repo.create(make_store(0))
    stored = await repo.bulk_create([make_store(i) for i in range(1, 4)])
    assert [s.id for s in stored] == [1, 2, 3]
    assert await repo.count() == 4


@pytest.mark.asyncio
async def test_bulk_create_is_all_or_nothing(repo, kv):
    await repo.create(make_store(0))
    bad = [make_store(1), {"store_name": "No coords"}, make_store(2)]
    with pytest.raises(ValidationError) as exc:
        await repo.bulk_create(bad)
    assert exc.value.message == BULK_FIELDS_MSG
    assert await repo.count() == 1
    assert await kv.get(store_key(1)) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [[], None, {"stores": []}, "stores"])
async def test_bulk_create_requires_non_empty_array(repo, payload):
    with pytest.raises(ValidationError) as exc:
        await repo.bulk_create(payload)
    assert exc.value.message == BULK_SHAPE_MSG


@pytest.mark.asyncio
async def test_delete_all_resets_counter(repo, kv):
    await repo.bulk_create([make_store(i) for i in range(3)])
    assert await repo.delete_all() == 3
    assert await repo.count() == 0
    assert await kv.mget([store_key(i) for i in range(3)]) == [None, None, None]
    assert await repo.delete_all() == 0

    # an emptied (but initialized) store list is searchable, just empty
    assert await repo.list_all(require_initialized=True) == []
    assert (await repo.create(make_store(7))).id == 0


@pytest.mark.asyncio
async def test_delete_all_on_uninitialized_repository(repo):
    assert await repo.delete_all() == 0
    assert await repo.count() is None


@pytest.mark.asyncio
async def test_list_retailers_sorted_and_unique(repo):
    await repo.bulk_create(
        [make_store(0, "Walmart"), make_store(1, "Ralphs"), make_store(2, "Walmart")]
    )
    assert await repo.list_retailers() == ["Ralphs", "Walmart"]


@pytest.mark.asyncio
async def test_malformed_records_are_skipped(repo, kv):
    await repo.bulk_create([make_store(i) for i in range(3)])
    await kv.set(store_key(1), {"store_name": "Broken"})
    stores = await repo.list_all()
    assert [s.id for s in stores] == [0, 2]


@pytest.mark.asyncio
async def test_malformed_counter_raises(repo, kv):
    await kv.set(STORE_COUNT_KEY, {"count": "many"})
    with pytest.raises(ValueError):
        await repo.count()


@pytest.mark.asyncio
async def test_seed_replaces_existing_stores(repo, sample_stores):
    await repo.bulk_create([make_store(i) for i in range(25)])
    stored = await repo.seed(sample_stores)
    assert len(stored) == len(sample_stores)
    assert [s.id for s in stored] == list(range(len(sample_stores)))
    assert await repo.count() == len(sample_stores)

    # re-seeding is idempotent
    await repo.seed(sample_stores)
    assert len(await repo.list_all()) == len(sample_stores)


@pytest.mark.asyncio
async def test_naive_read_then_write_loses_stores():
    kv = SlowCounterKVStore()
    ids = await asyncio.gather(*(naive_create(kv, make_store(i)) for i in range(10)))
    assert len(set(ids)) < len(ids)


@pytest.mark.asyncio
async def test_concurrent_creates_get_distinct_ids():
    repo = StoreRepository(SlowCounterKVStore())
    stored = await asyncio.gather(*(repo.create(make_store(i)) for i in range(10)))
    assert sorted(s.id for s in stored) == list(range(10))
    assert await repo.count() == 10
    assert len(await repo.list_all()) == 10
