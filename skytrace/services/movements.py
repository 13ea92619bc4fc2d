"""
Airport movement lookups - find one aircraft on an airport's board.

Used only as a fallback when a flight record is missing an endpoint:
given a candidate airport (usually from the published route), search its
arrivals or departures around a reference time for the aircraft.

Strictly best-effort. Anything other than a match yields None; this
module never raises to its caller.
"""

import logging
import time
from typing import Callable, Optional, Tuple

from skytrace.errors import UpstreamError
from skytrace.models.records import FlightRecord, MovementKind
from skytrace.upstream.opensky_client import OpenSkyClient

logger = logging.getLogger(__name__)

HOUR = 3600


class AirportMovementFinder:
    """
    Searches airport arrival/departure boards for a given aircraft.

    Args:
        client: OpenSky client
        lookback_hours: half-width of a window centred on a reference
            time, or the full width of a trailing window ending now
        max_window_hours: hard cap on the window width
        timeout: per-request timeout for the board query
    """

    def __init__(
        self,
        client: OpenSkyClient,
        lookback_hours: float = 3,
        max_window_hours: float = 48,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.lookback_seconds = lookback_hours * HOUR
        self.max_window_seconds = max_window_hours * HOUR
        self.timeout = timeout
        self._clock = clock

    def window(self, reference_time: Optional[int] = None) -> Tuple[int, int]:
        """Search window (begin, end) in epoch seconds."""
        if reference_time is not None:
            half = min(self.lookback_seconds, self.max_window_seconds / 2)
            return int(reference_time - half), int(reference_time + half)

        now = self._clock()
        span = min(self.lookback_seconds, self.max_window_seconds)
        return int(now - span), int(now)

    def find(
        self,
        kind: MovementKind,
        airport_code: Optional[str],
        icao24: Optional[str],
        reference_time: Optional[int] = None,
    ) -> Optional[FlightRecord]:
        """First movement of this aircraft at the airport, or None."""
        if not airport_code or not icao24:
            return None

        kind = MovementKind(kind)
        begin, end = self.window(reference_time)
        target = icao24.strip().lower()

        try:
            movements = self.client.get_airport_movements(
                kind, airport_code, begin, end, timeout=self.timeout,
            )
        except UpstreamError as e:
            logger.warning(f'{kind.value} lookup at {airport_code} failed: {e.message}')
            return None

        for record in movements:
            if record.icao24 and record.icao24.lower() == target:
                logger.debug(f'Found {target} in {kind.value}s at {airport_code}')
                return record

        logger.debug(f'{target} not in {len(movements)} {kind.value}s at {airport_code}')
        return None
