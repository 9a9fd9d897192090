"""
Great-circle distance helpers used by sample validation and proximity queries.
"""
import math

EARTH_RADIUS_M = 6_371_000.0


def distance_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Haversine distance in meters between two lat/lng pairs given in degrees.

    NaN inputs propagate to a NaN result.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def is_within_radius(
    lat: float,
    lng: float,
    center_lat: float,
    center_lng: float,
    radius_m: float,
) -> bool:
    """Check whether a point lies inside or on the boundary of a circle."""
    return distance_meters(lat, lng, center_lat, center_lng) <= radius_m
