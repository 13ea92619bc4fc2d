"""
Shared fixtures for SkyTrace tests.

Provides a controllable clock, fake HTTP responses, and stubbed
collaborators so no test touches the network.
"""

from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from skytrace.airports import AirportDirectory, AirportInfo
from skytrace.cache import PersistentRouteCache, TTLCache
from skytrace.upstream.opensky_client import OpenSkyClient


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_response(status: int = 200, json_data: Any = None, text: str = '') -> MagicMock:
    """Minimal stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def airports() -> AirportDirectory:
    return AirportDirectory({
        'EGLL': AirportInfo(code='EGLL', name='London Heathrow', city='London', country='United Kingdom'),
        'KJFK': AirportInfo(code='KJFK', name='John F Kennedy Intl', city='New York', country='United States'),
        'CYYZ': AirportInfo(code='CYYZ', name='Toronto Pearson Intl', city='Toronto', country='Canada'),
    })


@pytest.fixture
def client() -> MagicMock:
    """OpenSky client stub; configure return values per test."""
    stub = MagicMock(spec=OpenSkyClient)
    stub.get_flights_by_aircraft.return_value = []
    stub.get_airport_movements.return_value = []
    stub.get_route.return_value = {'callsign': 'X', 'route': []}
    return stub


@pytest.fixture
def route_cache(clock) -> PersistentRouteCache:
    """Memory-only route cache."""
    return PersistentRouteCache(store=None, ttl_seconds=3600, clock=clock)


@pytest.fixture
def summary_cache(clock) -> TTLCache:
    return TTLCache(120, name='summaries', clock=clock)


def flight(
    icao24: str = 'abc123',
    callsign: Optional[str] = 'BAW117',
    dep: Optional[str] = None,
    arr: Optional[str] = None,
    first_seen: Optional[int] = None,
    last_seen: Optional[int] = None,
) -> dict:
    """Raw OpenSky flight object."""
    return {
        'icao24': icao24,
        'callsign': callsign,
        'estDepartureAirport': dep,
        'estArrivalAirport': arr,
        'firstSeen': first_seen,
        'lastSeen': last_seen,
    }
