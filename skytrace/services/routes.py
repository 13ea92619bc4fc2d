"""
Route resolution - callsign to published itinerary.

Looks up the OpenSky route table and enriches both ends with airport
directory data. Results live in the persistent route cache, including
confirmed negatives, so an unknown callsign costs one upstream call per
TTL rather than one per request.

Upstream failures are NOT cached: a transient 5xx is retried on the next
call.
"""

import logging
from typing import Any, Optional

from skytrace.airports import AirportDirectory
from skytrace.cache import MISSING, PersistentRouteCache
from skytrace.errors import ValidationError
from skytrace.models.records import MAX_CALLSIGN_LENGTH, NO_ROUTE, RouteRecord
from skytrace.upstream.opensky_client import OpenSkyClient

logger = logging.getLogger(__name__)


def normalize_callsign(callsign: Optional[str]) -> str:
    if not callsign or not isinstance(callsign, str):
        return ''
    return callsign.strip().upper()


def parse_route_codes(data: Any) -> Optional[tuple]:
    """Airport codes from a /routes response, or None if empty/malformed."""
    if not isinstance(data, dict):
        return None
    route = data.get('route')
    if not isinstance(route, list) or not route:
        return None

    codes = []
    for code in route:
        if not isinstance(code, str) or not code.strip():
            return None
        codes.append(code.strip().upper())
    return tuple(codes)


class RouteResolver:
    """Resolves callsigns to RouteRecords through the route cache."""

    def __init__(
        self,
        client: OpenSkyClient,
        cache: PersistentRouteCache,
        airports: AirportDirectory,
        timeout: Optional[float] = None,
    ):
        self.client = client
        self.cache = cache
        self.airports = airports
        self.timeout = timeout

    def cached(self, callsign: Optional[str]) -> Optional[RouteRecord]:
        """
        Get route ONLY from cache (no API call).

        Useful for populating lists without burning API quota.
        """
        key = normalize_callsign(callsign)
        if not key or len(key) > MAX_CALLSIGN_LENGTH:
            return None
        value = self.cache.get(key)
        return value if isinstance(value, RouteRecord) else None

    def resolve(self, callsign: Optional[str]) -> Optional[RouteRecord]:
        """
        Route for a callsign, or None if there is none.

        Raises:
            ValidationError if the callsign is longer than 8 characters
            UpstreamError if the route table could not be queried
        """
        key = normalize_callsign(callsign)
        if not key:
            return None
        if len(key) > MAX_CALLSIGN_LENGTH:
            raise ValidationError('Invalid callsign')

        cached = self.cache.get(key, MISSING)
        if cached is not MISSING:
            logger.debug(f'Route cache hit for {key}: {cached!r}')
            return cached if isinstance(cached, RouteRecord) else None

        logger.info(f'Fetching route for {key}')
        data = self.client.get_route(key, timeout=self.timeout)

        codes = parse_route_codes(data)
        if codes is None:
            logger.info(f'No route data found for {key}')
            self.cache.set(key, NO_ROUTE)
            return None

        origin, destination = codes[0], codes[-1]
        record = RouteRecord(
            callsign=key,
            airports=codes,
            origin_code=origin,
            destination_code=destination,
            origin_detail=self.airports.detail(origin),
            destination_detail=self.airports.detail(destination),
        )

        logger.info(f'Got route for {key}: {origin} -> {destination}')
        self.cache.set(key, record)
        return record
