# services/zip_resolver.py
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import quote

import httpx
from pydantic import ValidationError as SchemaError

from services.errors import UpstreamError
from services.kv_store import KVStore
from services.records import ZipCoordinate, zip_key

logger = logging.getLogger("uvicorn.error")

SOURCE_MEMORY = "memory"
SOURCE_REMOTE = "remote"
SOURCE_STORAGE = "storage"


class ZipCoordinateCache:
    """
    Process-wide memoization of resolved ZIP codes. Built once at startup and
    never cleared. Values are immutable once resolved, so concurrent puts of
    the same key are harmless and no lock is taken.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, ZipCoordinate] = {}

    def get(self, zip_code: str) -> Optional[ZipCoordinate]:
        return self._entries.get(zip_code)

    def put(self, zip_code: str, coord: ZipCoordinate) -> None:
        self._entries[zip_code] = coord

    def __contains__(self, zip_code: str) -> bool:
        return zip_code in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class ZipLookup:
    zip_code: str
    coordinate: Optional[ZipCoordinate] = None
    source: Optional[str] = None
    # why the remote step was skipped over, when it was
    upstream_error: Optional[UpstreamError] = None

    @property
    def found(self) -> bool:
        return self.coordinate is not None


class ZipResolver:
    """
    ZIP -> coordinate in three steps:
      1. process cache
      2. external lookup (Zippopotam.us shape), persisted best-effort on success
      3. durable copy in the KV store when step 2 fails or finds nothing
    Only when 2 and 3 both come up empty is the lookup "not found".
    """

    def __init__(
        self,
        cache: ZipCoordinateCache,
        kv: KVStore,
        http_client: httpx.AsyncClient,
        base_url: str = "https://api.zippopotam.us/us",
        timeout: float = 5.0,
    ):
        self.cache = cache
        self.kv = kv
        self.http = http_client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def resolve(self, zip_code: str) -> ZipLookup:
        cached = self.cache.get(zip_code)
        if cached is not None:
            logger.debug("ZIP %s found in cache", zip_code)
            return ZipLookup(zip_code, cached, SOURCE_MEMORY)

        coord, upstream_error = await self._fetch_remote(zip_code)
        if coord is not None:
            self.cache.put(zip_code, coord)
            await self._persist(zip_code, coord)
            logger.info(
                "ZIP %s geocoded: %s, %s (%s, %s)",
                zip_code, coord.city, coord.state, coord.lat, coord.lon,
            )
            return ZipLookup(zip_code, coord, SOURCE_REMOTE)

        logger.warning("ZIP %s remote lookup failed (%s), trying KV store", zip_code, upstream_error)
        coord = await self._load_persisted(zip_code)
        if coord is not None:
            self.cache.put(zip_code, coord)
            logger.info("ZIP %s loaded from KV store", zip_code)
            return ZipLookup(zip_code, coord, SOURCE_STORAGE, upstream_error)

        return ZipLookup(zip_code, upstream_error=upstream_error)

    # ---- step 2 ----
    async def _fetch_remote(self, zip_code: str) -> Tuple[Optional[ZipCoordinate], Optional[UpstreamError]]:
        url = f"{self.base_url}/{quote(zip_code, safe='')}"
        try:
            resp = await self.http.get(url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            places = data.get("places") or []
            if not places:
                return None, UpstreamError(f"No location data for ZIP {zip_code}")
            place = places[0]
            coord = ZipCoordinate(
                lat=float(place["latitude"]),
                lon=float(place["longitude"]),
                city=place.get("place name"),
                state=place.get("state abbreviation"),
            )
            return coord, None
        except httpx.HTTPStatusError as e:
            return None, UpstreamError(f"ZIP lookup returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            # includes timeouts
            return None, UpstreamError(f"ZIP lookup failed: {e!r}")
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # malformed payload; pydantic errors are ValueErrors too
            return None, UpstreamError(f"Malformed ZIP lookup payload: {e}")

    async def _persist(self, zip_code: str, coord: ZipCoordinate) -> None:
        try:
            await self.kv.set(zip_key(zip_code), coord.model_dump())
        except Exception as e:
            logger.warning("Could not persist ZIP %s to KV store: %s", zip_code, e)

    # ---- step 3 ----
    async def _load_persisted(self, zip_code: str) -> Optional[ZipCoordinate]:
        try:
            raw = await self.kv.get(zip_key(zip_code))
        except Exception as e:
            logger.error("KV store lookup failed for ZIP %s: %s", zip_code, e)
            return None
        if raw is None:
            return None
        try:
            return ZipCoordinate.model_validate(raw)
        except SchemaError as e:
            logger.warning("Discarding malformed ZIP record for %s: %s", zip_code, e)
            return None
