"""
Aircraft track lookups.

OpenSky waypoints are [time, latitude, longitude, baro_altitude,
true_track, on_ground]; the map only needs [latitude, longitude].
"""

import logging
from typing import Any, List

from skytrace.errors import ValidationError
from skytrace.upstream.opensky_client import OpenSkyClient, is_finite_number

logger = logging.getLogger(__name__)


def project_path(raw_path: Any) -> List[List[float]]:
    """[[lat, lon], ...] from raw waypoints, dropping non-finite pairs."""
    if not isinstance(raw_path, list):
        return []

    path = []
    for point in raw_path:
        if not isinstance(point, (list, tuple)) or len(point) < 3:
            continue
        lat, lon = point[1], point[2]
        if is_finite_number(lat) and is_finite_number(lon):
            path.append([lat, lon])
    return path


class TrackService:

    def __init__(self, client: OpenSkyClient):
        self.client = client

    def track(self, icao24: str) -> dict:
        icao24 = (icao24 or '').strip().lower()
        if not icao24:
            raise ValidationError('Missing icao24')

        data = self.client.get_track(icao24)
        if not isinstance(data, dict):
            data = {}

        callsign = data.get('callsign')
        path = project_path(data.get('path'))
        logger.debug(f'Track for {icao24}: {len(path)} waypoints')

        return {
            'icao24': data.get('icao24') or icao24,
            'callsign': callsign.strip() if isinstance(callsign, str) else None,
            'startTime': data.get('startTime'),
            'endTime': data.get('endTime'),
            'path': path,
        }
