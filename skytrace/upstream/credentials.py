"""
OAuth client-credentials token management for OpenSky.

OpenSky's authenticated endpoints accept a bearer token from its
Keycloak realm. Tokens are short-lived, so the provider keeps exactly one
in memory and renews it shortly before it expires:

    lifetime = max(expires_in - 30, 1) seconds from issuance

The 30 second margin covers clock skew and request latency; the 1 second
floor keeps a server that reports tiny lifetimes from triggering a
renewal on every call.

Renewal walks the configured token URLs in order and stops at the first
success. Failures are collected for the log; when every URL fails the
last failure is raised as TokenRenewalError.

A failed renewal is remembered for a short cooldown. Callers that were
queued behind the failed attempt, or that arrive during the cooldown,
get the same error instead of walking every token URL again.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import requests

from skytrace.config import config
from skytrace.errors import TokenRenewalError, upstream_status

logger = logging.getLogger(__name__)

EXPIRY_MARGIN_SECONDS = 30
MIN_LIFETIME_SECONDS = 1
DEFAULT_EXPIRES_IN = 300
RENEWAL_RETRY_SECONDS = 5


@dataclass(frozen=True)
class Token:
    """Bearer token and the clock time after which it must not be used."""
    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now <= self.expires_at


def token_lifetime(expires_in) -> float:
    """Seconds a freshly issued token may be used for."""
    try:
        seconds = float(expires_in)
    except (TypeError, ValueError):
        seconds = 0
    if not math.isfinite(seconds) or seconds <= 0:
        seconds = DEFAULT_EXPIRES_IN
    return max(seconds - EXPIRY_MARGIN_SECONDS, MIN_LIFETIME_SECONDS)


class CredentialProvider:
    """
    Holds the single shared OAuth token.

    get_token() is safe to call from any request thread: the token slot
    is guarded by a lock, and callers arriving during a renewal wait for
    it instead of starting their own.
    """

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        token_urls: Sequence[str],
        scope: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_urls = list(token_urls)
        self.scope = scope
        self.session = session or requests.Session()
        self.timeout = timeout
        self._clock = clock

        self._token: Optional[Token] = None
        self._lock = threading.Lock()
        self._renewals = 0
        self._attempts = 0
        self._failure: Optional[TokenRenewalError] = None
        self._failed_at = 0.0

        if not self.is_configured:
            logger.warning('OpenSky client credentials not configured - OAuth disabled')

    @classmethod
    def from_config(cls, session: Optional[requests.Session] = None) -> 'CredentialProvider':
        """Create provider from application configuration."""
        return cls(
            client_id=config.opensky.client_id,
            client_secret=config.opensky.client_secret,
            token_urls=config.opensky.token_urls,
            scope=config.opensky.scope,
            session=session,
            timeout=config.opensky.timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def get_token(self) -> Optional[Token]:
        """
        Return a valid token, renewing it if needed.

        Returns None when no client credentials are configured.

        Raises:
            TokenRenewalError if every token URL failed
        """
        if not self.is_configured:
            return None

        # Read before queueing on the lock to detect attempts made meanwhile
        attempt = self._attempts
        with self._lock:
            now = self._clock()
            token = self._token
            if token is not None and token.is_valid(now):
                return token

            failure = self._failure
            if failure is not None and (
                self._attempts != attempt
                or now - self._failed_at < RENEWAL_RETRY_SECONDS
            ):
                raise TokenRenewalError(failure.message, status_code=failure.status_code)

            self._attempts += 1
            try:
                self._token = self._renew()
            except TokenRenewalError as e:
                self._failure = e
                self._failed_at = self._clock()
                raise

            self._failure = None
            return self._token

    def invalidate(self) -> None:
        """Forget the cached token; the next call renews."""
        with self._lock:
            self._token = None
            self._failure = None

    def _renew(self) -> Token:
        failures: List[TokenRenewalError] = []

        for url in self.token_urls:
            try:
                return self._request_token(url)
            except TokenRenewalError as e:
                logger.warning(f'Token request to {url} failed: {e.message}')
                failures.append(e)

        if failures:
            logger.error(f'OAuth renewal failed on all {len(failures)} token URLs')
            raise failures[-1]
        raise TokenRenewalError('No OpenSky token URL configured')

    def _request_token(self, url: str) -> Token:
        issued_at = self._clock()
        params = {
            'grant_type': 'client_credentials',
            'client_id': self.client_id,
            'client_secret': self.client_secret,
        }
        if self.scope:
            params['scope'] = self.scope

        logger.info(f'Requesting OAuth token from {url}')

        try:
            response = self.session.post(
                url,
                data=params,
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TokenRenewalError(f'OpenSky token request failed: {e}') from e

        if not response.ok:
            text = (response.text or '').strip()[:200]
            raise TokenRenewalError(
                f'OpenSky token error {response.status_code}: {text}',
                status_code=upstream_status(response.status_code),
            )

        try:
            data = response.json()
        except ValueError:
            data = None

        access_token = data.get('access_token') if isinstance(data, dict) else None
        if not access_token:
            raise TokenRenewalError('OpenSky token response missing access_token')

        lifetime = token_lifetime(data.get('expires_in'))
        self._renewals += 1
        logger.info(f'Obtained OAuth token; usable for {lifetime:.0f} seconds')

        return Token(value=access_token, expires_at=issued_at + lifetime)

    @property
    def stats(self) -> dict:
        token = self._token
        return {
            'configured': self.is_configured,
            'renewals': self._renewals,
            'token_valid': bool(token and token.is_valid(self._clock())),
        }
