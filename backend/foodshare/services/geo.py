"""
Radius search helpers: a cheap latitude band for the SQL prefilter, then an exact great-circle check.
"""
from dataclasses import dataclass
from math import asin, cos, degrees, radians, sin, sqrt

from foodshare.core.constants import DEFAULT_RADIUS_KM, EARTH_RADIUS_KM


@dataclass(frozen=True)
class RadiusFilter:
    lat: float
    lng: float
    radius_km: float

    @property
    def radius_radians(self) -> float:
        return self.radius_km / EARTH_RADIUS_KM

    def latitude_band(self) -> tuple[float, float]:
        """Latitudes any matching point must fall in (longitude is not narrowed; it wraps)."""
        delta = degrees(self.radius_radians)
        return max(-90.0, self.lat - delta), min(90.0, self.lat + delta)

    def contains(self, lng: float | None, lat: float | None) -> bool:
        if lng is None or lat is None:
            return False
        return distance_km(self.lat, self.lng, lat, lng) <= self.radius_km


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance on a sphere of EARTH_RADIUS_KM."""
    dlat = radians(lat2 - lat1)
    dlng = radians(lng2 - lng1)
    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * asin(min(1.0, sqrt(a)))


def _to_float(value: str | float | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if f == f else None  # NaN


def parse_radius_filter(lat: str | None, lng: str | None, radius: str | None) -> RadiusFilter | None:
    """
    Build a filter only when lat, lng and radius are all given and lat/lng parse.
    An unparsable (or non-positive) radius falls back to DEFAULT_RADIUS_KM.
    """
    if not (lat and lng and radius):
        return None
    lat_f, lng_f = _to_float(lat), _to_float(lng)
    if lat_f is None or lng_f is None:
        return None
    radius_f = _to_float(radius)
    if radius_f is None or radius_f <= 0:
        radius_f = DEFAULT_RADIUS_KM
    return RadiusFilter(lat=lat_f, lng=lng_f, radius_km=radius_f)
