"""Great-circle distance helpers for the store proximity search.

Distances are computed on a sphere of radius 6 378 100 m, the radius MongoDB
uses for spherical queries, so a "10 km" radius means the same thing here.
"""

from dataclasses import dataclass
import math

EARTH_RADIUS_M = 6_378_100.0


@dataclass(frozen=True)
class BoundingBox:
    """Lat/lng rectangle that contains a search circle."""

    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float
    # True when the circle crosses the antimeridian or reaches a pole;
    # the longitude bounds are then meaningless and must not be used.
    wraps: bool = False


def haversine_m(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    """Great-circle distance in metres between two (lng, lat) points.

    Same formula as the SQL expression in services.search.distance_expr, which
    does the filtering; this one is the reference the geo tests check against.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, a)))


def bounding_box(lng: float, lat: float, distance_m: float) -> BoundingBox:
    """Smallest lat/lng box containing every point within `distance_m` of (lng, lat).

    Used as an index-friendly pre-filter before the exact distance check.
    """
    dlat = math.degrees(distance_m / EARTH_RADIUS_M)
    min_lat = lat - dlat
    max_lat = lat + dlat
    if min_lat <= -90 or max_lat >= 90:
        return BoundingBox(-180.0, max(min_lat, -90.0), 180.0, min(max_lat, 90.0), wraps=True)

    dlng = math.degrees(math.asin(min(1.0, math.sin(distance_m / EARTH_RADIUS_M) / math.cos(math.radians(lat)))))
    min_lng = lng - dlng
    max_lng = lng + dlng
    if min_lng < -180 or max_lng > 180:
        return BoundingBox(-180.0, min_lat, 180.0, max_lat, wraps=True)
    return BoundingBox(min_lng, min_lat, max_lng, max_lat)
