"""Database engine and session management."""

from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from conduit.core.config import settings
from conduit.core.logging import get_logger
from conduit.models import Base

logger = get_logger(__name__)


def _configure_sqlite(engine: Engine, foreign_keys: bool) -> None:
    """Make pysqlite honour foreign keys and serialize writers."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Disable the driver's own BEGIN handling; "begin" below emits it
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute(f"PRAGMA foreign_keys = {'ON' if foreign_keys else 'OFF'}")
        cursor.close()

    # Take the write lock at BEGIN; concurrent writers queue on the busy timeout
    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(
    url: Optional[str] = None,
    echo: Optional[bool] = None,
    foreign_keys: Optional[bool] = None,
) -> Engine:
    """Create an engine for ``url`` (defaults to the configured database)."""
    url = url or settings.get_database_url()
    echo = settings.database.echo if echo is None else echo
    foreign_keys = settings.database.foreign_keys if foreign_keys is None else foreign_keys

    kwargs: Dict[str, Any] = {"echo": echo}
    backend = make_url(url).get_backend_name()
    if backend == "sqlite":
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.database.busy_timeout,
        }
    else:
        kwargs["pool_size"] = settings.database.pool_size
        kwargs["max_overflow"] = settings.database.max_overflow
        kwargs["pool_pre_ping"] = True

    new_engine = create_engine(url, **kwargs)
    if backend == "sqlite":
        _configure_sqlite(new_engine, foreign_keys)

    logger.debug("Database engine created", backend=backend, echo=echo)
    return new_engine


def create_session_factory(bind: Engine) -> sessionmaker:
    """Session factory used by the store; objects stay readable after commit."""
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = create_db_engine()
SessionLocal = create_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """Get a database session."""
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Database session error", error=str(e))
        db.rollback()
        raise
    finally:
        db.close()


def create_tables(bind: Optional[Engine] = None) -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created successfully")


def drop_tables(bind: Optional[Engine] = None) -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=bind or engine)
    logger.info("Database tables dropped successfully")


def init_db(bind: Optional[Engine] = None) -> None:
    """Initialize the database."""
    try:
        create_tables(bind)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise


def close_db() -> None:
    """Close database connections."""
    engine.dispose()
    logger.info("Database connections closed")
