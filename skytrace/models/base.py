"""
SQLAlchemy base configuration and engine factory.

Uses SQLAlchemy 2.0 style with type hints and declarative base.
The only persisted state is the route cache snapshot, so engines are
created on demand for whichever URL the cache is configured with.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def make_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine with settings appropriate for the database type.

    SQLite gets WAL mode so a snapshot rewrite does not block a
    concurrent read of the same file.
    """
    engine_kwargs = {'echo': echo}

    is_sqlite = url.startswith('sqlite')
    if is_sqlite:
        engine_kwargs['connect_args'] = {'check_same_thread': False}

    engine = create_engine(url, **engine_kwargs)

    if is_sqlite:
        @event.listens_for(engine, 'connect')
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            # Write-Ahead Logging for concurrent access
            cursor.execute('PRAGMA journal_mode=WAL')
            cursor.execute('PRAGMA synchronous=NORMAL')
            cursor.close()

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,  # Avoid lazy loading issues
    )


def init_db(engine: Engine) -> None:
    """
    Initialize database schema.

    Creates all tables if they don't exist.
    """
    Base.metadata.create_all(bind=engine)
