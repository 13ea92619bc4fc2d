"""
Airspace queries - live aircraft inside a bounding box.

The map polls this on every pan and zoom, so identical boxes inside the
cache TTL are served from memory. Oversized boxes are rejected before
any upstream call to keep accidental "whole world" queries off OpenSky.
"""

import logging
import math
from typing import Any, Optional

from skytrace.cache import TTLCache
from skytrace.errors import ValidationError
from skytrace.upstream.opensky_client import BoundingBox, OpenSkyClient

logger = logging.getLogger(__name__)


def parse_coordinate(value: Any, name: str) -> float:
    """Parse a query parameter as a finite float."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid {name}')
    if not math.isfinite(number):
        raise ValidationError(f'Invalid {name}')
    return number


class AirspaceService:
    """Validated, cached bounding box state queries."""

    def __init__(
        self,
        client: OpenSkyClient,
        cache: TTLCache,
        max_area: float = 400.0,
    ):
        self.client = client
        self.cache = cache
        self.max_area = max_area

    def build_bbox(
        self,
        lamin: Any,
        lomin: Any,
        lamax: Any,
        lomax: Any,
    ) -> BoundingBox:
        bbox = BoundingBox(
            lat_min=parse_coordinate(lamin, 'lamin'),
            lon_min=parse_coordinate(lomin, 'lomin'),
            lat_max=parse_coordinate(lamax, 'lamax'),
            lon_max=parse_coordinate(lomax, 'lomax'),
        )
        if bbox.area > self.max_area:
            raise ValidationError('BBox too large')
        return bbox

    def query(
        self,
        lamin: Any,
        lomin: Any,
        lamax: Any,
        lomax: Any,
    ) -> dict:
        """
        Aircraft inside the box as {time, aircraft}.

        Raises:
            ValidationError for bad or oversized boxes
            UpstreamError if OpenSky (or token renewal) failed
        """
        bbox = self.build_bbox(lamin, lomin, lamax, lomax)
        logger.debug(f'Incoming bbox {bbox.to_params()}')

        cached: Optional[dict] = self.cache.get(bbox.cache_key)
        if cached is not None:
            logger.debug(f'Airspace cache hit {bbox.cache_key}')
            return cached

        api_time, states = self.client.get_states(bbox)
        payload = {
            'time': api_time,
            'aircraft': [sv.to_dict() for sv in states],
        }

        self.cache.set(bbox.cache_key, payload)
        return payload
