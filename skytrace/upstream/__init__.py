"""
Upstream integration for SkyTrace.

Wraps the OpenSky REST API and its OAuth token endpoint behind typed
clients that raise SkyTrace errors instead of raw HTTP failures.
"""

from skytrace.upstream.credentials import CredentialProvider, Token
from skytrace.upstream.opensky_client import BoundingBox, OpenSkyClient, StateVector

__all__ = ['CredentialProvider', 'Token', 'BoundingBox', 'OpenSkyClient', 'StateVector']
