# services/search_service.py
import math
from typing import Any, Dict, List, Optional

from services.errors import NotFoundError, ValidationError
from services.records import StoreWithDistance
from services.store_repository import StoreRepository
from services.zip_resolver import ZipResolver
from settings import DEFAULT_RADIUS_MILES
from utils.geo import bounding_box, great_circle_distance_miles


def parse_radius(raw: Optional[str], default: float = DEFAULT_RADIUS_MILES) -> float:
    if raw is None or str(raw).strip() == "":
        return float(default)
    try:
        radius = float(raw)
    except (TypeError, ValueError):
        raise ValidationError("radius must be a number")
    if not math.isfinite(radius):
        raise ValidationError("radius must be a number")
    return radius


def dedupe_by_address(stores: List[StoreWithDistance]) -> List[StoreWithDistance]:
    """Keep the first store per normalized address; input order is preserved."""
    seen = set()
    out = []
    for s in stores:
        key = s.address_key()
        if key in seen:
            continue
        seen.add(key)
        out.append(s)
    return out


async def search_stores(
    repo: StoreRepository,
    resolver: ZipResolver,
    zip_code: Optional[str],
    radius: Optional[str] = None,
    retailer: Optional[str] = None,
    default_radius: float = DEFAULT_RADIUS_MILES,
) -> Dict[str, Any]:
    """
    Stores within `radius` miles of a ZIP code, nearest first.

    Bounding box first (cheap, slightly too wide), then the exact Haversine
    cutoff (inclusive), stable sort by distance, then dedup by address.
    All stores come from a single batched read.
    """
    if not zip_code:
        raise ValidationError("ZIP code is required")

    lookup = await resolver.resolve(zip_code)
    if not lookup.found:
        raise NotFoundError(f"ZIP code {zip_code} not found. Please enter a valid US ZIP code.")
    center = lookup.coordinate

    radius_miles = parse_radius(radius, default_radius)
    bbox = bounding_box(center.lat, center.lon, radius_miles)

    stores = await repo.list_all(require_initialized=True)

    candidates = [s for s in stores if bbox.contains(s.lat, s.lon)]
    if retailer:
        wanted = retailer.lower()
        candidates = [s for s in candidates if s.retailer.lower() == wanted]

    within: List[StoreWithDistance] = []
    for s in candidates:
        d = great_circle_distance_miles(center.lat, center.lon, s.lat, s.lon)
        if d <= radius_miles:
            within.append(
                StoreWithDistance(
                    store_name=s.store_name,
                    address=s.address,
                    lat=s.lat,
                    lon=s.lon,
                    retailer=s.retailer,
                    distance_miles=d,
                )
            )
    # sorted() is stable: ties keep storage order
    within = sorted(within, key=lambda s: s.distance_miles)
    results = dedupe_by_address(within)

    return {
        "zip_code": zip_code,
        "center_location": center.model_dump(),
        "radius_miles": radius_miles,
        "total_results": len(results),
        "stores": [s.model_dump() for s in results],
    }
