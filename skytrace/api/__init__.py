"""
API module for SkyTrace.

Provides REST endpoints for:
- Airspace queries (aircraft in a bounding box)
- Flight summaries, tracks and routes
- System status
"""

from skytrace.api.airspace import airspace_bp
from skytrace.api.flights import flights_bp
from skytrace.api.metrics import metrics_bp

__all__ = ['airspace_bp', 'flights_bp', 'metrics_bp']
