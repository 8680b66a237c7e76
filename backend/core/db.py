"""
ShopDesk — Core database layer.

Provides the SQLAlchemy engine, session factory, declarative base,
and the FastAPI get_db dependency.
"""

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from core.config import settings
from core.base import Base  # Single Base instance shared across all models  # noqa: F401


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def build_engine(database_url: str, **kwargs):
    """Create an engine with the SQLite pragmas the app relies on.

    Foreign keys are switched on for SQLite so ondelete rules hold the same
    way they do on Postgres.
    """
    if _is_sqlite(database_url):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if ":memory:" not in database_url:
            kwargs.setdefault("poolclass", NullPool)
    engine = create_engine(database_url, echo=settings.debug, **kwargs)

    if _is_sqlite(database_url):
        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.execute("PRAGMA busy_timeout=5000")
            if ":memory:" not in database_url:
                cur.execute("PRAGMA journal_mode=WAL")
            cur.close()

    return engine


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency for database sessions."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping(session_factory=None) -> bool:
    """Return True when the database answers a trivial query."""
    factory = session_factory or SessionLocal
    db = factory()
    try:
        db.execute(text("SELECT 1"))
        return True
    finally:
        db.close()
