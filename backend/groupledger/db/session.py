"""
Database session management.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from groupledger.core.config import settings
from groupledger.db.base import Base


def make_engine(url: str, echo: bool = False, **kwargs) -> Engine:
    """Create an engine; SQLite gets foreign keys switched on per connection."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        sqlite_engine = create_engine(url, echo=echo, **kwargs)
        event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine
    return create_engine(url, echo=echo, pool_pre_ping=True, pool_recycle=3600, **kwargs)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = make_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None):
    """Initialize database tables."""
    import groupledger.models  # noqa: F401  registers all mappers
    Base.metadata.create_all(bind=bind or engine)
