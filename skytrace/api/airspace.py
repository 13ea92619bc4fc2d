"""
Airspace API endpoint.

- GET /api/airspace?lamin&lomin&lamax&lomax - Aircraft inside a bounding box
"""

import logging

from flask import Blueprint, current_app, jsonify, request

logger = logging.getLogger(__name__)

airspace_bp = Blueprint('airspace', __name__, url_prefix='/api')


@airspace_bp.route('/airspace', methods=['GET'])
def get_airspace():
    """
    List aircraft with a known position inside the box.

    Boxes larger than 400 square degrees are rejected with 400.
    """
    services = current_app.config['SERVICES']
    payload = services.airspace.query(
        request.args.get('lamin'),
        request.args.get('lomin'),
        request.args.get('lamax'),
        request.args.get('lomax'),
    )
    return jsonify(payload)
