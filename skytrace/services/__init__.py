"""
Lookup and aggregation services.

Handles third-party API calls with caching and graceful degradation when
enrichment sources are unavailable.
"""

from skytrace.services.airspace import AirspaceService
from skytrace.services.container import Services, build_services
from skytrace.services.flight_summary import FlightSummaryResolver
from skytrace.services.movements import AirportMovementFinder
from skytrace.services.routes import RouteResolver
from skytrace.services.track import TrackService

__all__ = [
    'AirspaceService',
    'AirportMovementFinder',
    'FlightSummaryResolver',
    'RouteResolver',
    'Services',
    'TrackService',
    'build_services',
]
