"""
RouteCacheEntry model - durable mirror of the route cache.

The in-memory route cache is the source of truth for reads. This table
only exists so a restart does not cold-start every route lookup:

- Rewritten in full on every cache update (snapshot, not a live index)
- Read once at startup
- Expiry stored as absolute epoch milliseconds so it survives restarts
"""

import json
import logging
from contextlib import contextmanager
from typing import Generator, Iterable, List, Tuple

from sqlalchemy import BigInteger, String, Text, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, Session, mapped_column

from skytrace.errors import PersistenceError
from skytrace.models.base import Base, init_db, make_session_factory
from skytrace.models.records import MAX_CALLSIGN_LENGTH

logger = logging.getLogger(__name__)

# (key, JSON-compatible value, absolute expiry in epoch ms)
SnapshotRow = Tuple[str, dict, int]


class RouteCacheEntry(Base):
    """One cached route lookup, positive or negative."""

    __tablename__ = 'route_cache_entries'

    cache_key: Mapped[str] = mapped_column(
        String(MAX_CALLSIGN_LENGTH),
        primary_key=True,
        comment='Normalized callsign'
    )

    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment='JSON-encoded route record or no-route marker'
    )

    expires_at: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment='Absolute expiry, epoch milliseconds'
    )

    def __repr__(self) -> str:
        return f'<RouteCacheEntry {self.cache_key} expires={self.expires_at}>'


class RouteSnapshotStore:
    """
    Reads and rewrites the route cache snapshot.

    All failures surface as PersistenceError; deciding whether that is
    fatal is the caller's business.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = make_session_factory(engine)
        self._initialized = False

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _ensure_schema(self) -> None:
        if not self._initialized:
            init_db(self.engine)
            self._initialized = True

    def replace_all(self, rows: Iterable[SnapshotRow]) -> int:
        """Overwrite the snapshot with exactly these rows."""
        try:
            self._ensure_schema()
            records = [
                {'cache_key': key, 'value': json.dumps(value), 'expires_at': int(expires_at)}
                for key, value, expires_at in rows
            ]
            with self._session() as session:
                session.execute(delete(RouteCacheEntry))
                if records:
                    session.execute(RouteCacheEntry.__table__.insert(), records)
        except (SQLAlchemyError, TypeError, ValueError) as e:
            raise PersistenceError(f'Route snapshot write failed: {e}') from e

        return len(records)

    def load_all(self) -> List[SnapshotRow]:
        """Read every row of the snapshot, decoding values."""
        try:
            self._ensure_schema()
            with self._session() as session:
                entries = session.execute(select(RouteCacheEntry)).scalars().all()
                rows = []
                for entry in entries:
                    value = json.loads(entry.value)
                    if not isinstance(value, dict):
                        raise ValueError(f'bad value for {entry.cache_key!r}')
                    rows.append((entry.cache_key, value, int(entry.expires_at)))
        except (SQLAlchemyError, TypeError, ValueError) as e:
            raise PersistenceError(f'Route snapshot read failed: {e}') from e

        logger.debug(f'Read {len(rows)} route snapshot rows')
        return rows
