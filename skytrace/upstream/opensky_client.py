"""
OpenSky Network API client.

Handles communication with the OpenSky REST API, including:
- Authentication (OAuth bearer token, falling back to basic auth)
- Bounding box state queries
- Flight history, airport movement, route and track lookups
- Error classification into the SkyTrace error taxonomy

OpenSky state vector format (array indices):
0: icao24          - ICAO24 hex address
1: callsign        - Callsign (8 chars max)
2: origin_country  - Country of registration
3: time_position   - Unix timestamp of last position update
4: last_contact    - Unix timestamp of last message
5: longitude       - WGS84 longitude
6: latitude        - WGS84 latitude
7: baro_altitude   - Barometric altitude (meters)
8: on_ground       - Boolean
9: velocity        - Ground speed (m/s)
10: true_track     - Track angle (degrees, 0=north)
11: vertical_rate  - Vertical rate (m/s)
12: sensors        - Sensor IDs (array)
13: geo_altitude   - Geometric altitude (meters)
14: squawk         - Transponder code
15: spi            - Special position indicator
16: position_source - 0=ADS-B, 1=ASTERIX, 2=MLAT, 3=FLARM
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.auth import HTTPBasicAuth

from skytrace.config import config
from skytrace.errors import (
    TokenRenewalError,
    UpstreamUnavailable,
    classify_response,
)
from skytrace.models.records import FlightRecord, MovementKind
from skytrace.upstream.credentials import CredentialProvider

logger = logging.getLogger(__name__)


def is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


@dataclass(frozen=True)
class BoundingBox:
    """
    Geographic bounding box for API queries.

    OpenSky expects: lamin, lomin, lamax, lomax
    (latitude min, longitude min, latitude max, longitude max)
    """
    lat_min: float
    lon_min: float
    lat_max: float
    lon_max: float

    @property
    def area(self) -> float:
        """Area in square degrees (not a geodesic area)."""
        return abs(self.lat_max - self.lat_min) * abs(self.lon_max - self.lon_min)

    @property
    def cache_key(self) -> str:
        return f'bbox:{self.lat_min},{self.lon_min},{self.lat_max},{self.lon_max}'

    def to_params(self) -> dict:
        """Convert to OpenSky API query parameters."""
        return {
            'lamin': self.lat_min,
            'lomin': self.lon_min,
            'lamax': self.lat_max,
            'lomax': self.lon_max,
        }


@dataclass
class StateVector:
    """
    Parsed state vector from OpenSky API.

    Normalizes the raw array format into a typed dataclass.
    All values may be None if not reported by the aircraft.
    """
    icao24: str
    callsign: str
    origin_country: Optional[str]
    time_position: Optional[int]
    last_contact: Optional[int]
    longitude: Optional[float]
    latitude: Optional[float]
    baro_altitude: Optional[float]
    on_ground: bool
    velocity: Optional[float]
    true_track: Optional[float]
    vertical_rate: Optional[float]
    geo_altitude: Optional[float]
    squawk: Optional[str]
    spi: bool
    position_source: Optional[int]

    @classmethod
    def from_array(cls, arr: List[Any]) -> Optional['StateVector']:
        """
        Parse OpenSky state vector array into StateVector object.

        Returns None if the array is malformed or missing required fields.
        """
        if not isinstance(arr, list) or len(arr) < 17:
            return None

        icao24 = arr[0]
        if not icao24 or not isinstance(icao24, str):
            return None

        callsign = arr[1] if isinstance(arr[1], str) else ''

        return cls(
            icao24=icao24,
            callsign=callsign.strip(),
            origin_country=arr[2],
            time_position=arr[3],
            last_contact=arr[4],
            longitude=arr[5],
            latitude=arr[6],
            baro_altitude=arr[7],
            on_ground=bool(arr[8]),
            velocity=arr[9],
            true_track=arr[10],
            vertical_rate=arr[11],
            geo_altitude=arr[13],
            squawk=arr[14],
            spi=bool(arr[15]),
            position_source=arr[16],
        )

    def has_position(self) -> bool:
        """Check if this state has a usable position."""
        return is_finite_number(self.latitude) and is_finite_number(self.longitude)

    def to_dict(self) -> dict:
        """Shape served to map clients."""
        return {
            'icao24': self.icao24,
            'callsign': self.callsign,
            'originCountry': self.origin_country,
            'timePosition': self.time_position,
            'lastContact': self.last_contact,
            'lon': self.longitude,
            'lat': self.latitude,
            'baroAltitude': self.baro_altitude,
            'onGround': self.on_ground,
            'velocity': self.velocity,
            'trueTrack': self.true_track,
            'verticalRate': self.vertical_rate,
            'geoAltitude': self.geo_altitude,
            'squawk': self.squawk,
            'spi': self.spi,
            'positionSource': self.position_source,
        }


class OpenSkyClient:
    """
    Client for OpenSky Network API.

    Handles:
    - GET /states/all (bounding box)
    - GET /flights/aircraft, /flights/arrival, /flights/departure
    - GET /routes (public, never authenticated)
    - GET /tracks/all
    - Bearer auth via CredentialProvider, basic auth as fallback

    Every non-2xx response is raised as UpstreamUnavailable (5xx) or
    UpstreamRejected (4xx). Endpoints where OpenSky answers 404 for
    "nothing found" return an empty result instead.
    """

    def __init__(
        self,
        credentials: Optional[CredentialProvider] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        base_url: str = 'https://opensky-network.org/api',
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.credentials = credentials
        self.timeout = timeout
        self.session = session or requests.Session()

        self.basic_auth = None
        if username and password:
            self.basic_auth = HTTPBasicAuth(username, password)

        if credentials is not None and credentials.is_configured:
            logger.info('OpenSky client initialized with OAuth client credentials')
        elif self.basic_auth:
            logger.info('OpenSky client initialized with basic authentication')
        else:
            logger.warning('OpenSky client running without authentication (lower rate limits)')

        self._request_count = 0
        self._error_count = 0

    @classmethod
    def from_config(cls, session: Optional[requests.Session] = None) -> 'OpenSkyClient':
        """Create client from application configuration."""
        session = session or requests.Session()
        return cls(
            credentials=CredentialProvider.from_config(session=session),
            username=config.opensky.username,
            password=config.opensky.password,
            base_url=config.opensky.base_url,
            timeout=config.opensky.timeout_seconds,
            session=session,
        )

    @property
    def auth_mode(self) -> str:
        if self.credentials is not None and self.credentials.is_configured:
            return 'oauth'
        return 'basic' if self.basic_auth else 'anonymous'

    def _auth_kwargs(self) -> Dict[str, Any]:
        """
        Pick the credentials for one request.

        Bearer token when OAuth is configured and renewal works. A failed
        renewal falls back to basic auth if configured, otherwise the
        renewal error goes to the caller.
        """
        token = None
        if self.credentials is not None:
            try:
                token = self.credentials.get_token()
            except TokenRenewalError as e:
                if not self.basic_auth:
                    raise
                logger.warning(f'OAuth renewal failed ({e.message}); using basic auth')

        if token is not None:
            return {'headers': {'Authorization': f'Bearer {token.value}'}}
        if self.basic_auth:
            return {'auth': self.basic_auth}
        return {}

    def _get_json(
        self,
        path: str,
        params: dict,
        what: str,
        authenticated: bool = True,
        timeout: Optional[float] = None,
        empty_on_404: bool = False,
    ) -> Any:
        """
        GET an endpoint and decode its JSON body.

        Returns None for a 404 when empty_on_404 is set.
        """
        url = f'{self.base_url}{path}'
        kwargs = self._auth_kwargs() if authenticated else {}

        logger.debug(f'Fetching {what}: {url} params={params}')

        try:
            response = self.session.get(
                url,
                params=params,
                timeout=timeout or self.timeout,
                **kwargs,
            )
            self._request_count += 1
        except requests.exceptions.Timeout as e:
            self._error_count += 1
            logger.error(f'OpenSky {what} timeout')
            raise UpstreamUnavailable(f'OpenSky {what} timed out') from e
        except requests.exceptions.RequestException as e:
            self._error_count += 1
            logger.error(f'OpenSky {what} request failed: {e}')
            raise UpstreamUnavailable(f'OpenSky {what} request failed') from e

        if response.status_code == 404 and empty_on_404:
            logger.debug(f'OpenSky {what}: no data (404)')
            return None

        if not response.ok:
            self._error_count += 1
            if response.status_code == 429:
                logger.warning(f'OpenSky rate limit exceeded on {what}')
            else:
                logger.error(f'OpenSky {what} error: {response.status_code}')
            raise classify_response(response, f'OpenSky {what}')

        try:
            return response.json()
        except ValueError as e:
            self._error_count += 1
            raise UpstreamUnavailable(f'OpenSky {what} returned invalid JSON') from e

    def get_states(self, bbox: BoundingBox) -> Tuple[int, List[StateVector]]:
        """
        Fetch current state vectors inside a bounding box.

        Returns:
            Tuple of (api_timestamp, list of StateVectors with positions)
        """
        data = self._get_json('/states/all', bbox.to_params(), 'states/all') or {}

        api_time = data.get('time', int(time.time()))
        states_raw = data.get('states') or []

        logger.info(f'Received {len(states_raw)} state vectors from OpenSky')

        states = []
        for arr in states_raw:
            sv = StateVector.from_array(arr)
            if sv and sv.has_position():
                states.append(sv)

        logger.debug(f'Parsed {len(states)} valid state vectors with positions')

        return api_time, states

    def get_flights_by_aircraft(self, icao24: str, begin: int, end: int) -> List[FlightRecord]:
        """
        Flights flown by one aircraft in [begin, end].

        Order is whatever OpenSky returns; callers that want "the latest"
        take the last element.
        """
        data = self._get_json(
            '/flights/aircraft',
            {'icao24': icao24.lower(), 'begin': int(begin), 'end': int(end)},
            'flights/aircraft',
            empty_on_404=True,
        )
        return _parse_flights(data)

    def get_airport_movements(
        self,
        kind: MovementKind,
        airport: str,
        begin: int,
        end: int,
        timeout: Optional[float] = None,
    ) -> List[FlightRecord]:
        """Arrivals at or departures from an airport in [begin, end]."""
        path = f'/flights/{kind.value}'
        data = self._get_json(
            path,
            {'airport': airport, 'begin': int(begin), 'end': int(end)},
            path.lstrip('/'),
            timeout=timeout,
            empty_on_404=True,
        )
        return _parse_flights(data)

    def get_route(self, callsign: str, timeout: Optional[float] = None) -> Any:
        """
        Published route for a callsign, raw JSON.

        The route table is public, so no credentials are sent.
        """
        return self._get_json(
            '/routes',
            {'callsign': callsign},
            'routes',
            authenticated=False,
            timeout=timeout,
        )

    def get_track(self, icao24: str) -> Any:
        """Current track for an aircraft (time=0 means live), raw JSON."""
        return self._get_json(
            '/tracks/all',
            {'icao24': icao24.lower(), 'time': 0},
            'tracks/all',
        )

    @property
    def stats(self) -> dict:
        return {
            'auth_mode': self.auth_mode,
            'requests': self._request_count,
            'errors': self._error_count,
        }


def _parse_flights(data: Any) -> List[FlightRecord]:
    if not isinstance(data, list):
        return []
    return [FlightRecord.from_api(item) for item in data if isinstance(item, dict)]
