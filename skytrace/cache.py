"""
In-memory caches for upstream lookups.

Every upstream SkyTrace talks to is rate limited, so each kind of lookup
sits behind its own TTL cache:

- bbox state queries: a few seconds, absorbs map pan/zoom polling bursts
- flight summaries: a couple of minutes, including "no flight found"
- routes: hours, and mirrored to disk so a restart starts warm

Entries expire independently. An expired entry is never returned; it is
dropped the next time it is touched (or on purge_expired()). There is no
LRU ordering and no capacity cap beyond natural TTL turnover.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple, Union

from skytrace.errors import PersistenceError
from skytrace.models.records import NO_ROUTE, NoRoute, RouteRecord
from skytrace.models.route_snapshot import RouteSnapshotStore

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class _Missing:
    def __repr__(self) -> str:
        return 'MISSING'


# Returned by get() when asked to tell a miss apart from a cached None
MISSING = _Missing()


@dataclass(frozen=True)
class CacheEntry:
    """Cached value with its absolute expiry (clock seconds)."""
    value: Any
    expires_at: float


class TTLCache:
    """
    Thread-safe cache with a per-entry time to live.

    Args:
        ttl_seconds: default lifetime for set() without an explicit ttl
        name: label used in logs and stats
        clock: time source, injectable for tests
    """

    def __init__(
        self,
        ttl_seconds: float,
        name: str = 'cache',
        clock: Clock = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock

        self._entries: Dict[Hashable, CacheEntry] = {}
        self._lock = threading.RLock()

        # Statistics
        self._hits = 0
        self._misses = 0

    def now(self) -> float:
        return self._clock()

    def get(self, key: Hashable, default: Any = None) -> Any:
        """
        Return the cached value, or default if absent or expired.

        Pass default=MISSING when None is itself a cacheable value.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if self._clock() < entry.expires_at:
                    self._hits += 1
                    return entry.value
                # Expired
                del self._entries[key]

            self._misses += 1
            return default

    def set(self, key: Hashable, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self.set_until(key, value, self._clock() + ttl)

    def set_until(self, key: Hashable, value: Any, expires_at: float) -> None:
        """Store a value that expires at an absolute clock time."""
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    def items(self) -> List[Tuple[Hashable, CacheEntry]]:
        """Snapshot of live (unexpired) entries."""
        now = self._clock()
        with self._lock:
            return [(k, e) for k, e in self._entries.items() if now < e.expires_at]

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns count removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if now >= e.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self.items())

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            return {
                'name': self.name,
                'entries': len(self._entries),
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / total if total > 0 else 0,
                'ttl_seconds': self.ttl_seconds,
            }


RouteValue = Union[RouteRecord, NoRoute]


def encode_route_value(value: RouteValue) -> dict:
    """Serialize a route cache value for the snapshot."""
    if value is NO_ROUTE:
        return {'noRoute': True}
    return value.to_dict()


def decode_route_value(data: dict) -> RouteValue:
    if data.get('noRoute'):
        return NO_ROUTE
    return RouteRecord.from_dict(data)


class PersistentRouteCache:
    """
    Route cache whose contents survive a restart.

    Wraps a TTLCache: reads only ever hit memory, every write is followed
    by a full snapshot rewrite through the store, and load_from_disk()
    rehydrates memory once at startup.

    A store failure is logged and turns persistence off for the rest of
    the run; the in-memory cache keeps working.
    """

    def __init__(
        self,
        store: Optional[RouteSnapshotStore],
        ttl_seconds: float,
        clock: Clock = time.time,
    ):
        self._memory = TTLCache(ttl_seconds, name='routes', clock=clock)
        self._store = store
        self._persist_enabled = store is not None
        self._write_lock = threading.Lock()
        self._last_error: Optional[str] = None

    @property
    def ttl_seconds(self) -> float:
        return self._memory.ttl_seconds

    def get(self, key: str, default: Any = None) -> Any:
        return self._memory.get(key, default)

    def set(self, key: str, value: RouteValue, ttl_seconds: Optional[float] = None) -> None:
        # Serialized so two snapshots never interleave on the store
        with self._write_lock:
            self._memory.set(key, value, ttl_seconds)
            self._write_snapshot()

    def _write_snapshot(self) -> None:
        if not self._persist_enabled:
            return

        rows = [
            (key, encode_route_value(entry.value), int(entry.expires_at * 1000))
            for key, entry in self._memory.items()
        ]
        try:
            self._store.replace_all(rows)
        except PersistenceError as e:
            self._persist_enabled = False
            self._last_error = e.message
            logger.warning(f'{e.message}; route cache continues memory-only')

    def load_from_disk(self) -> int:
        """
        Re-admit unexpired snapshot entries into memory.

        Corrupt or unreadable storage admits nothing. Returns count loaded.
        """
        if self._store is None:
            return 0

        try:
            rows = self._store.load_all()
            now = self._memory.now()
            admitted = []
            for key, data, expires_ms in rows:
                expires_at = expires_ms / 1000.0
                if expires_at <= now:
                    continue
                admitted.append((key, decode_route_value(data), expires_at))
        except PersistenceError as e:
            self._last_error = e.message
            logger.warning(f'{e.message}; starting with an empty route cache')
            return 0
        except (KeyError, TypeError, ValueError) as e:
            self._last_error = str(e)
            logger.warning(f'Route snapshot is corrupt ({e}); starting with an empty route cache')
            return 0

        for key, value, expires_at in admitted:
            self._memory.set_until(key, value, expires_at)

        logger.info(f'Loaded {len(admitted)} of {len(rows)} cached routes from disk')
        return len(admitted)

    def items(self) -> List[Tuple[Hashable, CacheEntry]]:
        return self._memory.items()

    @property
    def stats(self) -> dict:
        stats = self._memory.stats
        stats['persistent'] = self._persist_enabled
        stats['last_persistence_error'] = self._last_error
        return stats
