"""
Data models for SkyTrace.

- records: plain dataclasses passed between clients, services and the API
- route_snapshot: the SQLAlchemy table mirroring the route cache to disk
"""

from skytrace.models.base import Base, init_db, make_engine, make_session_factory
from skytrace.models.records import (
    NO_ROUTE,
    AirportDetail,
    FlightRecord,
    FlightSummary,
    MovementKind,
    NoRoute,
    RouteRecord,
    SourceTag,
)
from skytrace.models.route_snapshot import RouteCacheEntry, RouteSnapshotStore

__all__ = [
    'Base',
    'init_db',
    'make_engine',
    'make_session_factory',
    'NO_ROUTE',
    'AirportDetail',
    'FlightRecord',
    'FlightSummary',
    'MovementKind',
    'NoRoute',
    'RouteRecord',
    'SourceTag',
    'RouteCacheEntry',
    'RouteSnapshotStore',
]
