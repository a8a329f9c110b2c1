"""
Pytest configuration and fixtures for the store locator tests.

Provides an in-memory KV store, a fake Zippopotam.us API served through
httpx.MockTransport, and resolver/repository fixtures wired to them.
"""

import os

# Settings are read at import time: pin them before anything imports settings.py
os.environ["DATABASE_URL"] = ""
os.environ["REDIS_URL"] = ""
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["SEARCH_RATE_PER_MINUTE"] = "100000"
os.environ.setdefault("API_PREFIX", "/api")

from typing import Dict, List, Optional

import httpx
import pytest

from services.kv_store import MemoryKVStore
from services.sample_stores import SAMPLE_STORES
from services.store_repository import StoreRepository
from services.zip_resolver import ZipCoordinateCache, ZipResolver

ZIP_API_BASE = "https://zip.test/us"


def zippopotam_payload(zip_code: str, lat: str, lon: str, city: str, state: str) -> dict:
    return {
        "post code": zip_code,
        "country": "United States",
        "country abbreviation": "US",
        "places": [
            {
                "place name": city,
                "longitude": lon,
                "state": state,
                "state abbreviation": state,
                "latitude": lat,
            }
        ],
    }


DEFAULT_ZIPS = {
    "90210": zippopotam_payload("90210", "34.0901", "-118.4065", "Beverly Hills", "CA"),
    "10001": zippopotam_payload("10001", "40.7484", "-73.9967", "New York City", "NY"),
    "60601": zippopotam_payload("60601", "41.8858", "-87.6181", "Chicago", "IL"),
}


class FakeZipApi:
    """Stands in for api.zippopotam.us; unknown codes get a 404 like the real API."""

    def __init__(self, payloads: Optional[Dict[str, dict]] = None):
        self.payloads = dict(DEFAULT_ZIPS if payloads is None else payloads)
        self.calls: List[str] = []
        self.error: Optional[Exception] = None
        self.status_override: Optional[int] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        zip_code = request.url.path.rsplit("/", 1)[-1]
        self.calls.append(zip_code)
        if self.error is not None:
            raise self.error
        if self.status_override is not None:
            return httpx.Response(self.status_override, json={})
        if zip_code in self.payloads:
            return httpx.Response(200, json=self.payloads[zip_code])
        return httpx.Response(404, json={})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def zip_api() -> FakeZipApi:
    return FakeZipApi()


@pytest.fixture
def kv() -> MemoryKVStore:
    return MemoryKVStore()


@pytest.fixture
def repo(kv) -> StoreRepository:
    return StoreRepository(kv)


@pytest.fixture
def resolver(kv, zip_api) -> ZipResolver:
    return ZipResolver(ZipCoordinateCache(), kv, zip_api.client(), base_url=ZIP_API_BASE, timeout=1.0)


@pytest.fixture
def sample_stores() -> List[dict]:
    return [dict(s) for s in SAMPLE_STORES]
