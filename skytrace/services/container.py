"""
Service wiring.

Builds every cache, client and resolver once, from configuration, and
hands them to the Flask app as one explicit object. Nothing here is a
module-level singleton, so tests can build a container from stubs.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from skytrace.airports import AirportDirectory
from skytrace.cache import PersistentRouteCache, TTLCache
from skytrace.config import AppConfig
from skytrace.models.base import make_engine
from skytrace.models.route_snapshot import RouteSnapshotStore
from skytrace.services.airspace import AirspaceService
from skytrace.services.flight_summary import FlightSummaryResolver
from skytrace.services.movements import AirportMovementFinder
from skytrace.services.routes import RouteResolver
from skytrace.services.track import TrackService
from skytrace.upstream.opensky_client import OpenSkyClient

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the API layer talks to."""
    client: OpenSkyClient
    airports: AirportDirectory
    airspace: AirspaceService
    routes: RouteResolver
    summaries: FlightSummaryResolver
    tracks: TrackService
    route_cache: PersistentRouteCache

    @property
    def stats(self) -> dict:
        credentials = self.client.credentials
        return {
            'upstream': self.client.stats,
            'oauth': credentials.stats if credentials is not None else None,
            'caches': {
                'airspace': self.airspace.cache.stats,
                'summaries': self.summaries.cache.stats,
                'routes': self.route_cache.stats,
            },
            'airports': len(self.airports),
        }

    def close(self) -> None:
        self.summaries.close()


def _open_route_store(url: str) -> Optional[RouteSnapshotStore]:
    try:
        return RouteSnapshotStore(make_engine(url))
    except (SQLAlchemyError, ValueError) as e:
        logger.warning(f'Route cache storage unavailable ({e}); routes are memory-only')
        return None


def build_services(cfg: AppConfig, client: Optional[OpenSkyClient] = None) -> Services:
    """Create and wire all services; rehydrates the route cache from disk."""
    client = client or OpenSkyClient.from_config()
    airports = AirportDirectory.from_config(cfg.airports.csv_path)

    route_cache = PersistentRouteCache(
        _open_route_store(cfg.cache.route_cache_url),
        ttl_seconds=cfg.cache.route_ttl_seconds,
    )
    route_cache.load_from_disk()

    enrichment_timeout = cfg.opensky.enrichment_timeout_seconds
    routes = RouteResolver(client, route_cache, airports, timeout=enrichment_timeout)
    movements = AirportMovementFinder(
        client,
        lookback_hours=cfg.lookup.movement_lookback_hours,
        max_window_hours=cfg.lookup.movement_max_window_hours,
        timeout=enrichment_timeout,
    )

    summaries = FlightSummaryResolver(
        client,
        routes,
        movements,
        airports,
        cache=TTLCache(cfg.cache.summary_ttl_seconds, name='summaries'),
        history_lookback_hours=cfg.lookup.history_lookback_hours,
        max_workers=cfg.lookup.fanout_workers,
    )

    airspace = AirspaceService(
        client,
        cache=TTLCache(cfg.cache.airspace_ttl_seconds, name='airspace'),
        max_area=cfg.lookup.max_bbox_area,
    )

    return Services(
        client=client,
        airports=airports,
        airspace=airspace,
        routes=routes,
        summaries=summaries,
        tracks=TrackService(client),
        route_cache=route_cache,
    )
