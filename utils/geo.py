# utils/geo.py
import math
from typing import NamedTuple

EARTH_RADIUS_MILES = 3959.0
MILES_PER_DEGREE_LAT = 69.0

# keeps the longitude span finite at the poles
MIN_COS_LAT = 1e-6


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lat: float, lon: float) -> bool:
        return (
            self.min_lat <= lat <= self.max_lat
            and self.min_lon <= lon <= self.max_lon
        )


def round_half_up(value: float, ndigits: int = 2) -> float:
    scale = 10 ** ndigits
    return math.floor(value * scale + 0.5) / scale


def great_circle_distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Haversine distance in miles, rounded half-up to 2 decimals.
    This is the authoritative distance for radius cutoffs.
    """
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    a = min(1.0, max(0.0, a))  # float drift near antipodes
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round_half_up(EARTH_RADIUS_MILES * c, 2)


def bounding_box(lat: float, lon: float, radius_miles: float) -> BoundingBox:
    """
    Rectangular pre-filter around (lat, lon). A little wider than
    the circle; callers must still apply great_circle_distance_miles.
    """
    lat_deg_per_mile = 1 / MILES_PER_DEGREE_LAT
    cos_lat = max(math.cos(math.radians(lat)), MIN_COS_LAT)
    lon_deg_per_mile = 1 / (MILES_PER_DEGREE_LAT * cos_lat)

    return BoundingBox(
        min_lat=lat - radius_miles * lat_deg_per_mile,
        max_lat=lat + radius_miles * lat_deg_per_mile,
        min_lon=lon - radius_miles * lon_deg_per_mile,
        max_lon=lon + radius_miles * lon_deg_per_mile,
    )
