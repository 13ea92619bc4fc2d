"""
Plain domain records passed between the upstream client, the resolvers
and the API layer.

These are not ORM models: they are never stored as rows. The route cache
serializes RouteRecord through to_dict()/from_dict() when it mirrors
entries to disk.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

# ICAO callsigns are at most 8 characters
MAX_CALLSIGN_LENGTH = 8


class SourceTag(str, Enum):
    """
    How a FlightSummary was assembled.

    - PRIMARY: straight from the aircraft's flight history
    - ENRICHED: history record existed but an endpoint came from a
      movement lookup
    - RECONSTRUCTED: no history record; built from the route and
      movement lookups alone
    """
    PRIMARY = 'primary'
    RECONSTRUCTED = 'reconstructed'
    ENRICHED = 'enriched'


class MovementKind(str, Enum):
    """Which airport movement board to search."""
    DEPARTURE = 'departure'
    ARRIVAL = 'arrival'


@dataclass
class AirportDetail:
    """Airport identity plus the time of the movement it was attached to."""
    code: str
    name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    time: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            'code': self.code,
            'name': self.name,
            'city': self.city,
            'country': self.country,
            'time': self.time,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional['AirportDetail']:
        if not data or not data.get('code'):
            return None
        return cls(
            code=data['code'],
            name=data.get('name'),
            city=data.get('city'),
            country=data.get('country'),
            time=data.get('time'),
        )


@dataclass
class RouteRecord:
    """
    Published itinerary for a callsign.

    airports is in itinerary order: first is the origin, last is the
    destination, anything between is an intermediate stop.
    """
    callsign: str
    airports: Tuple[str, ...]
    origin_code: str
    destination_code: str
    origin_detail: Optional[AirportDetail] = None
    destination_detail: Optional[AirportDetail] = None

    def to_dict(self) -> dict:
        return {
            'callsign': self.callsign,
            'route': list(self.airports),
            'from': self.origin_code,
            'to': self.destination_code,
            'fromAirport': self.origin_detail.to_dict() if self.origin_detail else None,
            'toAirport': self.destination_detail.to_dict() if self.destination_detail else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'RouteRecord':
        return cls(
            callsign=data['callsign'],
            airports=tuple(data['route']),
            origin_code=data['from'],
            destination_code=data['to'],
            origin_detail=AirportDetail.from_dict(data.get('fromAirport')),
            destination_detail=AirportDetail.from_dict(data.get('toAirport')),
        )


class NoRoute:
    """Marker for "upstream confirmed there is no route for this callsign"."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'NO_ROUTE'

    def __bool__(self) -> bool:
        return False


NO_ROUTE = NoRoute()


def _clean_code(value: Any) -> Optional[str]:
    if not value or not isinstance(value, str):
        return None
    return value.strip().upper() or None


def _clean_time(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return int(value)


@dataclass
class FlightRecord:
    """
    One flight as reported by the history or airport movement endpoints.

    Any field may be missing; the upstream only knows what its receivers
    heard.
    """
    icao24: Optional[str] = None
    callsign: Optional[str] = None
    departure_airport: Optional[str] = None
    arrival_airport: Optional[str] = None
    first_seen: Optional[int] = None
    last_seen: Optional[int] = None

    @classmethod
    def from_api(cls, data: dict) -> 'FlightRecord':
        """Parse an OpenSky flight object (flights/aircraft, arrival, departure)."""
        icao24 = data.get('icao24')
        callsign = data.get('callsign')
        return cls(
            icao24=icao24.strip().lower() if isinstance(icao24, str) and icao24.strip() else None,
            callsign=(callsign.strip() or None) if isinstance(callsign, str) else None,
            departure_airport=_clean_code(data.get('estDepartureAirport')),
            arrival_airport=_clean_code(data.get('estArrivalAirport')),
            first_seen=_clean_time(data.get('firstSeen')),
            last_seen=_clean_time(data.get('lastSeen')),
        )


@dataclass
class FlightSummary:
    """The reconciled answer to "what flight is this aircraft on"."""
    icao24: str
    callsign: Optional[str] = None
    departure_airport: Optional[str] = None
    arrival_airport: Optional[str] = None
    departure_time: Optional[int] = None
    arrival_time: Optional[int] = None
    route: Optional[Tuple[str, ...]] = None
    source: SourceTag = SourceTag.PRIMARY
    departure: Optional[AirportDetail] = None
    arrival: Optional[AirportDetail] = None

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        return {
            'icao24': self.icao24,
            'callsign': self.callsign,
            'departureAirport': self.departure_airport,
            'arrivalAirport': self.arrival_airport,
            'departureTime': self.departure_time,
            'arrivalTime': self.arrival_time,
            'route': list(self.route) if self.route else None,
            'source': self.source.value,
            'departure': self.departure.to_dict() if self.departure else None,
            'arrival': self.arrival.to_dict() if self.arrival else None,
        }
