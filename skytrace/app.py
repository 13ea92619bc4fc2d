"""
SkyTrace Flask Application.

Main entry point for the web application. Initializes:
- Upstream client, caches and resolvers
- Route cache rehydration from disk
- API routes and JSON error handlers

Usage:
    python -m skytrace.app

Or with gunicorn:
    gunicorn 'skytrace.app:create_app()'
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from skytrace.api import airspace_bp, flights_bp, metrics_bp
from skytrace.config import config
from skytrace.errors import SkyTraceError
from skytrace.services import Services, build_services

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(services: Optional[Services] = None) -> Flask:
    """
    Application factory for Flask.

    Args:
        services: Pre-built service container. Built from configuration
                  when None; tests pass one wired with stubs.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    if services is None:
        logger.info('Building services from configuration...')
        services = build_services(config)
    app.config['SERVICES'] = services

    # Register API blueprints
    app.register_blueprint(airspace_bp)
    app.register_blueprint(flights_bp)
    app.register_blueprint(metrics_bp)

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(SkyTraceError)
    def skytrace_error(e: SkyTraceError):
        if e.status_code >= 500:
            logger.error(f'Request failed: {e.message}')
        else:
            logger.info(f'Request rejected ({e.status_code}): {e.message}')
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    logger.info(f'Starting SkyTrace on http://localhost:{config.port}')

    app.run(
        host='0.0.0.0',
        port=config.port,
        debug=config.debug,
        use_reloader=False,  # Disable reloader to avoid loading the route cache twice
    )


if __name__ == '__main__':
    run_development_server()
