"""
Configuration management for SkyTrace.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

DEFAULT_TOKEN_URL = (
    'https://auth.opensky-network.org/auth/realms/opensky-network'
    '/protocol/openid-connect/token'
)


def _parse_url_list(value: str) -> Tuple[str, ...]:
    """Parse comma-separated URLs, ignoring blanks."""
    urls = tuple(u.strip() for u in (value or '').split(',') if u.strip())
    return urls or (DEFAULT_TOKEN_URL,)


@dataclass(frozen=True)
class OpenSkyConfig:
    """OpenSky API and authentication configuration."""
    client_id: Optional[str] = os.getenv('OPENSKY_CLIENT_ID') or None
    client_secret: Optional[str] = os.getenv('OPENSKY_CLIENT_SECRET') or None
    scope: Optional[str] = os.getenv('OPENSKY_SCOPE') or None
    token_urls: Tuple[str, ...] = _parse_url_list(os.getenv('OPENSKY_TOKEN_URL', ''))
    username: Optional[str] = os.getenv('OPENSKY_USERNAME') or None
    password: Optional[str] = os.getenv('OPENSKY_PASSWORD') or None
    base_url: str = os.getenv('OPENSKY_BASE_URL', 'https://opensky-network.org/api')
    timeout_seconds: float = float(os.getenv('OPENSKY_TIMEOUT_SECONDS', '30'))
    # Best-effort lookups must never stall a response for long
    enrichment_timeout_seconds: float = float(os.getenv('ENRICHMENT_TIMEOUT_SECONDS', '10'))


@dataclass(frozen=True)
class CacheConfig:
    """In-memory and persisted cache settings."""
    airspace_ttl_seconds: int = int(os.getenv('CACHE_SECONDS', '5'))
    summary_ttl_seconds: int = int(os.getenv('SUMMARY_CACHE_SECONDS', '120'))
    route_ttl_seconds: int = int(os.getenv('ROUTE_CACHE_SECONDS', '21600'))
    route_cache_url: str = os.getenv('ROUTE_CACHE_URL', 'sqlite:///route_cache.db')


@dataclass(frozen=True)
class LookupConfig:
    """Search windows and request limits."""
    history_lookback_hours: float = float(os.getenv('HISTORY_LOOKBACK_HOURS', '6'))
    movement_lookback_hours: float = float(os.getenv('MOVEMENT_LOOKBACK_HOURS', '3'))
    movement_max_window_hours: float = 48.0  # hard cap, not configurable
    max_bbox_area: float = 400.0  # square degrees
    fanout_workers: int = int(os.getenv('FANOUT_WORKERS', '4'))


@dataclass(frozen=True)
class AirportConfig:
    """Static airport dataset location."""
    csv_path: Optional[str] = os.getenv('AIRPORTS_CSV') or None


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    opensky: OpenSkyConfig
    cache: CacheConfig
    lookup: LookupConfig
    airports: AirportConfig

    # Flask settings
    port: int
    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        opensky=OpenSkyConfig(),
        cache=CacheConfig(),
        lookup=LookupConfig(),
        airports=AirportConfig(),
        port=int(os.getenv('PORT', '8080')),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
