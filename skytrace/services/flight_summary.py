"""
Flight summary resolution - "what flight is this aircraft on right now".

Combines three partial, independently unreliable sources into one record:

1. Flight history for the aircraft (the primary record)
2. The published route for its callsign
3. Airport arrival/departure boards, searched for the aircraft

Pipeline stages:
1. Cache: summaries (and "nothing found") are cached per aircraft
2. Fetch: history and, when a callsign hint is given, the route in parallel
3. Reconstruct or enrich: fill missing endpoints from movement lookups
   seeded with the route's origin/destination
4. Attach airport details and cache the result

Only the history call is on the primary path; its failure propagates.
Route and movement lookups are enrichment: they degrade to None.

"Most recent flight" is the LAST element of the history list. OpenSky
returns flights in chronological order and the resolver relies on that;
it never re-sorts.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from skytrace.airports import AirportDirectory
from skytrace.cache import MISSING, TTLCache
from skytrace.errors import SkyTraceError, ValidationError
from skytrace.models.records import (
    AirportDetail,
    FlightRecord,
    FlightSummary,
    MovementKind,
    RouteRecord,
    SourceTag,
)
from skytrace.services.movements import AirportMovementFinder
from skytrace.services.routes import RouteResolver, normalize_callsign
from skytrace.upstream.opensky_client import OpenSkyClient

logger = logging.getLogger(__name__)

HOUR = 3600


def merge_movement(
    summary: FlightSummary,
    record: FlightRecord,
    kind: MovementKind,
    airport_code: str,
) -> bool:
    """
    Fill the summary's missing fields from a movement record.

    The searched airport stands in for the record's own code on the side
    that was searched. Present values are never overwritten.

    Returns True if any airport code or time was filled.
    """
    filled = False

    departure_code = record.departure_airport
    arrival_code = record.arrival_airport
    if kind is MovementKind.DEPARTURE:
        departure_code = departure_code or airport_code
    else:
        arrival_code = arrival_code or airport_code

    if summary.departure_airport is None and departure_code:
        summary.departure_airport = departure_code
        filled = True
    if summary.departure_time is None and record.first_seen is not None:
        summary.departure_time = record.first_seen
        filled = True
    if summary.arrival_airport is None and arrival_code:
        summary.arrival_airport = arrival_code
        filled = True
    if summary.arrival_time is None and record.last_seen is not None:
        summary.arrival_time = record.last_seen
        filled = True

    if summary.callsign is None and record.callsign:
        summary.callsign = record.callsign

    return filled


class FlightSummaryResolver:
    """
    Orchestrates history, route and movement lookups into a FlightSummary.

    Independent upstream calls fan out on a small thread pool and are
    always joined before the result is composed.
    """

    def __init__(
        self,
        client: OpenSkyClient,
        routes: RouteResolver,
        movements: AirportMovementFinder,
        airports: AirportDirectory,
        cache: TTLCache,
        history_lookback_hours: float = 6,
        max_workers: int = 4,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.routes = routes
        self.movements = movements
        self.airports = airports
        self.cache = cache
        self.history_lookback_seconds = history_lookback_hours * HOUR
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix='summary',
        )

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    def summarize(
        self,
        icao24: Optional[str],
        callsign_hint: Optional[str] = None,
    ) -> Optional[FlightSummary]:
        """
        Summary of the aircraft's current flight, or None.

        Raises:
            ValidationError if icao24 is blank
            UpstreamError if the flight history could not be queried
        """
        key = (icao24 or '').strip().lower()
        if not key:
            raise ValidationError('Missing icao24')

        cached = self.cache.get(key, MISSING)
        if cached is not MISSING:
            logger.debug(f'Summary cache hit for {key}')
            return cached

        hint = normalize_callsign(callsign_hint)

        history_future = self._executor.submit(self._fetch_history, key)
        route_future: Optional[Future] = None
        if hint:
            route_future = self._executor.submit(self._resolve_route, hint)

        # Route branch never raises, so joining it first guarantees both
        # branches finish before a history failure propagates
        hint_route = route_future.result() if route_future else None
        history = history_future.result()

        primary = history[-1] if history else None

        callsign = normalize_callsign(primary.callsign if primary else None) or hint
        if callsign == hint:
            route = hint_route
        else:
            route = self._resolve_route(callsign)

        if primary is None:
            summary = self._reconstruct(key, callsign, route)
        else:
            summary = self._enrich(key, primary, route)

        if summary is not None:
            self._attach_airports(summary, route)
            logger.info(
                f'Summary for {key}: {summary.departure_airport} -> '
                f'{summary.arrival_airport} ({summary.source.value})'
            )
        else:
            logger.info(f'No flight found for {key}')

        self.cache.set(key, summary)
        return summary

    def _fetch_history(self, icao24: str) -> List[FlightRecord]:
        end = int(self._clock())
        begin = int(end - self.history_lookback_seconds)
        return self.client.get_flights_by_aircraft(icao24, begin, end)

    def _resolve_route(self, callsign: Optional[str]) -> Optional[RouteRecord]:
        if not callsign:
            return None
        try:
            return self.routes.resolve(callsign)
        except SkyTraceError as e:
            logger.warning(f'Route lookup for {callsign} failed: {e.message}')
            return None

    def _find_movements(
        self,
        icao24: str,
        departure: Optional[Tuple[str, Optional[int]]],
        arrival: Optional[Tuple[str, Optional[int]]],
    ) -> Tuple[Optional[FlightRecord], Optional[FlightRecord]]:
        """Departure and arrival lookups in parallel; each side optional."""
        futures = {}
        if departure:
            code, ref = departure
            futures[MovementKind.DEPARTURE] = self._executor.submit(
                self.movements.find, MovementKind.DEPARTURE, code, icao24, ref,
            )
        if arrival:
            code, ref = arrival
            futures[MovementKind.ARRIVAL] = self._executor.submit(
                self.movements.find, MovementKind.ARRIVAL, code, icao24, ref,
            )

        results = {kind: future.result() for kind, future in futures.items()}
        return results.get(MovementKind.DEPARTURE), results.get(MovementKind.ARRIVAL)

    def _reconstruct(
        self,
        icao24: str,
        callsign: Optional[str],
        route: Optional[RouteRecord],
    ) -> Optional[FlightSummary]:
        """Build a summary from the route and airport boards alone."""
        if route is None:
            return None

        departure, arrival = self._find_movements(
            icao24,
            (route.origin_code, None),
            (route.destination_code, None),
        )
        if departure is None and arrival is None:
            return None

        summary = FlightSummary(
            icao24=icao24,
            callsign=callsign or None,
            route=route.airports,
            source=SourceTag.RECONSTRUCTED,
        )
        if departure is not None:
            merge_movement(summary, departure, MovementKind.DEPARTURE, route.origin_code)
        if arrival is not None:
            merge_movement(summary, arrival, MovementKind.ARRIVAL, route.destination_code)

        return summary

    def _enrich(
        self,
        icao24: str,
        primary: FlightRecord,
        route: Optional[RouteRecord],
    ) -> FlightSummary:
        """Primary record, with missing endpoints filled from the boards."""
        summary = FlightSummary(
            icao24=icao24,
            callsign=primary.callsign,
            departure_airport=primary.departure_airport,
            arrival_airport=primary.arrival_airport,
            departure_time=primary.first_seen,
            arrival_time=primary.last_seen,
            route=route.airports if route else None,
            source=SourceTag.PRIMARY,
        )
        if route is None:
            return summary

        need_departure = summary.departure_airport is None
        need_arrival = summary.arrival_airport is None
        if not (need_departure or need_arrival):
            return summary

        departure, arrival = self._find_movements(
            icao24,
            (route.origin_code, primary.first_seen) if need_departure else None,
            (route.destination_code, primary.last_seen) if need_arrival else None,
        )

        filled = False
        if departure is not None:
            filled |= merge_movement(summary, departure, MovementKind.DEPARTURE, route.origin_code)
        if arrival is not None:
            filled |= merge_movement(summary, arrival, MovementKind.ARRIVAL, route.destination_code)

        if filled:
            summary.source = SourceTag.ENRICHED
        return summary

    def _attach_airports(self, summary: FlightSummary, route: Optional[RouteRecord]) -> None:
        summary.departure = self._airport_detail(
            summary.departure_airport,
            summary.departure_time,
            route.origin_detail if route else None,
        )
        summary.arrival = self._airport_detail(
            summary.arrival_airport,
            summary.arrival_time,
            route.destination_detail if route else None,
        )

    def _airport_detail(
        self,
        code: Optional[str],
        observed_time: Optional[int],
        prefetched: Optional[AirportDetail],
    ) -> Optional[AirportDetail]:
        if not code:
            return None
        if prefetched is not None and prefetched.code == code:
            # Route details are shared cache values; stamp a copy
            return replace(prefetched, time=observed_time)
        return self.airports.detail(code, observed_time)
