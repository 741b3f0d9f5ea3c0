# Overview: Pure geofencing helpers; great-circle distance and nearest-agent ranking.

"""
Geofence Service

Distance and containment math used by delivery assignment. Nothing here touches
the database: callers pass in an order coordinate and a list of agent-shaped
objects and get back a ranked list.

COORDINATES:
- Wire and storage order is [longitude, latitude] (GeoJSON).
- GeoPoint keeps both fields named so they cannot be swapped silently.
- [0, 0] is treated as "no location" (legacy default for unset agents).

RANKING:
1. Only active, available agents with a location participate
2. Distance is haversine on a 6371 km sphere
3. An agent serves the order when distance_km <= max_delivery_radius_km
4. Results are ordered by (distance_km, agent id)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable

from ..errors import HerbTradeError, ValidationError


EARTH_RADIUS_KM = 6371.0
DEFAULT_MAX_DELIVERY_RADIUS_KM = 10.0


class MissingDeliveryLocationError(HerbTradeError):
    """Order has no usable delivery coordinate."""
    default_message = "Order has no delivery location"


@dataclass(frozen=True)
class GeoPoint:
    longitude: float
    latitude: float

    @classmethod
    def from_optional(cls, longitude: float | None, latitude: float | None) -> GeoPoint | None:
        """Build a point from stored columns; None when unset or at [0, 0]."""
        if longitude is None or latitude is None:
            return None
        if longitude == 0 and latitude == 0:
            return None
        return cls(longitude=float(longitude), latitude=float(latitude))

    @classmethod
    def from_coordinates(cls, coordinates: Any) -> GeoPoint:
        """
        Parse a GeoJSON-style [longitude, latitude] pair.

        Raises ValueError when the input is not two finite numbers in range.
        """
        if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
            raise ValueError("coordinates must be [longitude, latitude]")
        lon, lat = coordinates
        for value in (lon, lat):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError("coordinates must be numeric")
            if not math.isfinite(value):
                raise ValueError("coordinates must be finite")
        if not -180 <= lon <= 180:
            raise ValueError("longitude must be between -180 and 180")
        if not -90 <= lat <= 90:
            raise ValueError("latitude must be between -90 and 90")
        return cls(longitude=float(lon), latitude=float(lat))

    def to_coordinates(self) -> list[float]:
        return [self.longitude, self.latitude]


@dataclass(frozen=True)
class AgentMatch:
    """One ranked candidate for an order."""
    agent: Any
    distance_km: float
    in_service_area: bool

    def to_dict(self) -> dict:
        agent = self.agent
        return {
            "agent": agent.to_dict() if hasattr(agent, "to_dict") else {"id": agent.id},
            "distance_km": round(self.distance_km, 3),
            "in_service_area": self.in_service_area,
        }


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in kilometers between two points."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def service_radius_km(agent: Any) -> float:
    radius = getattr(agent, "max_delivery_radius_km", None)
    if radius is None:
        return DEFAULT_MAX_DELIVERY_RADIUS_KM
    return float(radius)


def is_eligible(agent: Any) -> bool:
    return bool(agent.is_active) and bool(agent.is_available) and agent.current_location is not None


def find_nearest_agents(order_point: GeoPoint | None, candidates: Iterable[Any]) -> list[AgentMatch]:
    """
    Rank the agents whose service radius contains the order point.

    Candidates only need `id`, `is_active`, `is_available`,
    `current_location` (GeoPoint or None) and `max_delivery_radius_km`.

    Raises MissingDeliveryLocationError when order_point is absent or [0, 0].
    """
    if order_point is None or (order_point.longitude == 0 and order_point.latitude == 0):
        raise MissingDeliveryLocationError()

    matches = []
    for agent in candidates:
        if not is_eligible(agent):
            continue
        distance = haversine_km(order_point, agent.current_location)
        in_area = distance <= service_radius_km(agent)
        if in_area:
            matches.append(AgentMatch(agent=agent, distance_km=distance, in_service_area=True))

    matches.sort(key=lambda m: (m.distance_km, m.agent.id))
    return matches


def parse_location_payload(data: Any) -> GeoPoint:
    """
    Read a point from a request body.

    Accepts {"coordinates": [lon, lat]}, a GeoJSON Point
    ({"type": "Point", "coordinates": [...]}) or {"latitude": .., "longitude": ..}.
    Raises ValidationError on anything else.
    """
    if not isinstance(data, dict):
        raise ValidationError("Location is required")
    try:
        if "coordinates" in data:
            return GeoPoint.from_coordinates(data["coordinates"])
        if "latitude" in data and "longitude" in data:
            return GeoPoint.from_coordinates([data["longitude"], data["latitude"]])
    except ValueError as exc:
        raise ValidationError(str(exc))
    raise ValidationError("Latitude and longitude are required")
