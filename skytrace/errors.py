"""
Error taxonomy shared by the API layer and the upstream clients.

Every error carries the HTTP status it should surface with, so the Flask
error handler can translate it without knowing where it was raised.

- ValidationError      bad client input, 400, never retried
- UpstreamUnavailable  dependency returned 5xx or was unreachable, 502
- UpstreamRejected     dependency returned 4xx, status passed through
- TokenRenewalError    OAuth renewal failed, classified like the above
- PersistenceError     route snapshot could not be read or written
"""

from typing import Optional

import requests


class SkyTraceError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {'error': self.message}


class ValidationError(SkyTraceError):
    status_code = 400


class UpstreamError(SkyTraceError):
    """A third-party dependency failed."""
    status_code = 502


class UpstreamUnavailable(UpstreamError):
    status_code = 502


class UpstreamRejected(UpstreamError):
    """4xx from a dependency; the status is surfaced verbatim."""


class TokenRenewalError(UpstreamError):
    """Every configured token endpoint failed."""


class PersistenceError(SkyTraceError):
    """Route snapshot storage failure. Logged, never fatal."""


def upstream_status(status: int) -> int:
    """Map an upstream status onto the status we surface (5xx -> 502)."""
    return 502 if status >= 500 else status


def classify_response(response: requests.Response, what: str) -> UpstreamError:
    """Build the error matching a non-2xx upstream response."""
    text = (response.text or '').strip()[:200]
    message = f'{what} error {response.status_code}'
    if text:
        message = f'{message}: {text}'

    if response.status_code >= 500:
        return UpstreamUnavailable(message)
    return UpstreamRejected(message, status_code=response.status_code)
