"""
SkyTrace Backend Package.

Flight lookup API that aggregates OpenSky live state, flight history,
route tables and airport movement boards, built with Flask, requests and
SQLAlchemy.

Modules:
    api/         REST endpoints for airspace, flight summaries, tracks, routes
    models/      Domain records and the SQLAlchemy route snapshot table
    upstream/    OpenSky HTTP client and OAuth token management
    services/    Route, movement and summary resolvers plus service wiring
    airports.py  Static airport name/city/country directory
    cache.py     Thread-safe TTL caches, including the disk-mirrored route cache
    config.py    Centralized configuration from environment variables
    errors.py    Error taxonomy mapped onto HTTP statuses
"""

__version__ = '1.0.0'
