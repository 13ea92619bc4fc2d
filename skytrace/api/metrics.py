"""
Status API endpoint.

- GET /api/status - Cache statistics, upstream auth mode and counters
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

logger = logging.getLogger(__name__)

metrics_bp = Blueprint('metrics', __name__, url_prefix='/api')


@metrics_bp.route('/status', methods=['GET'])
def get_system_status():
    """
    Get system health and status information.

    Returns:
    - Upstream auth mode and request/error counters
    - OAuth token state
    - Per-cache statistics, including route persistence state
    """
    services = current_app.config['SERVICES']
    stats = services.stats

    route_stats = stats['caches']['routes']
    degraded = route_stats.get('last_persistence_error') is not None

    return jsonify({
        'status': 'degraded' if degraded else 'healthy',
        **stats,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })
