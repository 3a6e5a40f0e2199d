"""Great-circle geometry helpers.

Every distance in tourguard is in meters.  Both the background tracker
and the map view go through ``haversine_distance`` so their containment
decisions cannot drift apart.
"""

from __future__ import annotations

import math

from tourguard.domain.position import Coordinates

EARTH_RADIUS_METERS = 6_371_000.0


def haversine_distance(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two points using the Haversine formula."""
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_METERS * c


def offset(origin: Coordinates, north_meters: float = 0.0, east_meters: float = 0.0) -> Coordinates:
    """Return the point displaced from *origin* by the given meters.

    Spherical approximation, accurate to well under a meter for the
    few-kilometer offsets used when building zones around a point.
    """
    dlat = math.degrees(north_meters / EARTH_RADIUS_METERS)
    dlon = math.degrees(
        east_meters / (EARTH_RADIUS_METERS * math.cos(math.radians(origin.latitude)))
    )
    return Coordinates(latitude=origin.latitude + dlat, longitude=origin.longitude + dlon)
