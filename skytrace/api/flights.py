"""
Flight data API endpoints.

Provides endpoints for:
- GET /api/flight/summary - Current flight for an aircraft (or null)
- GET /api/flight/track - Flown path for an aircraft
- GET /api/routes/<callsign> - Published route for a callsign
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from skytrace.errors import ValidationError

logger = logging.getLogger(__name__)

flights_bp = Blueprint('flights', __name__, url_prefix='/api')


def _services():
    return current_app.config['SERVICES']


def _required_arg(name: str) -> str:
    value = (request.args.get(name) or '').strip()
    if not value:
        raise ValidationError(f'Missing {name}')
    return value


@flights_bp.route('/flight/summary', methods=['GET'])
def get_flight_summary():
    """
    Get the reconciled flight summary for one aircraft.

    Query parameters:
    - icao24: required, transponder address
    - callsign: optional, used for the route lookup when history has none

    Responds with JSON null when no flight could be determined.
    """
    icao24 = _required_arg('icao24')
    callsign = request.args.get('callsign')

    summary = _services().summaries.summarize(icao24, callsign)

    return jsonify(summary.to_dict() if summary else None)


@flights_bp.route('/flight/track', methods=['GET'])
def get_flight_track():
    """Get the current track for one aircraft as [[lat, lon], ...]."""
    icao24 = _required_arg('icao24')
    return jsonify(_services().tracks.track(icao24))


@flights_bp.route('/routes/<callsign>', methods=['GET'])
def get_route(callsign: str):
    """
    Get the published route for a callsign.

    Every field is null when the route table has no entry.
    """
    route = _services().routes.resolve(callsign)

    if route is None:
        return jsonify({
            'callsign': callsign.strip().upper() or None,
            'from': None,
            'to': None,
            'route': None,
            'fromAirport': None,
            'toAirport': None,
        })

    return jsonify(route.to_dict())
