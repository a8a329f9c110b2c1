# services/records.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Key layout inside the KV store
STORE_KEY_PREFIX = "store:"
STORE_COUNT_KEY = "store:count"
ZIP_KEY_PREFIX = "zip:"

REQUIRED_STORE_FIELDS = ("store_name", "address", "lat", "lon", "retailer")


def store_key(index: int) -> str:
    return f"{STORE_KEY_PREFIX}{index}"


def zip_key(zip_code: str) -> str:
    return f"{ZIP_KEY_PREFIX}{zip_code}"


class Store(BaseModel):
    store_name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    # strict: JSON ints pass, booleans and numeric strings do not
    lat: float = Field(ge=-90.0, le=90.0, strict=True)
    lon: float = Field(ge=-180.0, le=180.0, strict=True)
    retailer: str = Field(min_length=1)

    def address_key(self) -> str:
        # dedup key: whitespace/case-insensitive
        return self.address.strip().casefold()


class StoredStore(Store):
    id: int = Field(ge=0)


class StoreWithDistance(Store):
    distance_miles: float


class ZipCoordinate(BaseModel):
    # shared by every caller through the resolver cache
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0, strict=True)
    lon: float = Field(ge=-180.0, le=180.0, strict=True)
    city: Optional[str] = None
    state: Optional[str] = None


class StoreCount(BaseModel):
    count: int = Field(ge=0)
