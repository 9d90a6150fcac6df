import math

import pytest

from storefinder.services.geo import EARTH_RADIUS_M, bounding_box, haversine_m


def _destination(lng: float, lat: float, bearing_deg: float, distance_m: float) -> tuple[float, float]:
    """Point `distance_m` away from (lng, lat) along `bearing_deg`."""
    delta = distance_m / EARTH_RADIUS_M
    theta = math.radians(bearing_deg)
    phi1 = math.radians(lat)
    lmb1 = math.radians(lng)
    phi2 = math.asin(math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta))
    lmb2 = lmb1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    return math.degrees(lmb2), math.degrees(phi2)


def test_haversine_same_point_is_zero():
    assert haversine_m(-0.09, 51.5, -0.09, 51.5) == 0.0


def test_haversine_london_paris():
    distance = haversine_m(-0.1276, 51.5072, 2.3522, 48.8566)
    assert 340_000 < distance < 350_000


def test_haversine_one_degree_of_latitude():
    assert haversine_m(0, 0, 0, 1) == pytest.approx(EARTH_RADIUS_M * math.pi / 180)


def test_bounding_box_contains_search_circle():
    lng, lat, radius = -0.09, 51.5, 10_000
    box = bounding_box(lng, lat, radius)
    assert not box.wraps

    for bearing in range(0, 360, 15):
        p_lng, p_lat = _destination(lng, lat, bearing, radius * 0.999)
        assert haversine_m(lng, lat, p_lng, p_lat) <= radius
        assert box.min_lng <= p_lng <= box.max_lng
        assert box.min_lat <= p_lat <= box.max_lat


def test_bounding_box_excludes_far_store():
    box = bounding_box(-0.09, 51.5, 10_000)
    # Brighton, ~75 km south
    assert not (box.min_lat <= 50.819 <= box.max_lat)


def test_bounding_box_near_pole_wraps():
    box = bounding_box(10.0, 89.95, 10_000)
    assert box.wraps
    assert box.max_lat == 90.0


def test_bounding_box_across_antimeridian_wraps():
    box = bounding_box(179.99, 0.0, 10_000)
    assert box.wraps
    assert (box.min_lng, box.max_lng) == (-180.0, 180.0)
