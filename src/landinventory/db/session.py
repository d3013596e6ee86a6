"""
Database Session Management

Provides database connection pooling and session management.
"""
from contextlib import contextmanager
from functools import lru_cache
from typing import Generator, Optional

from sqlalchemy import create_engine, event, exc, pool, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config.settings import settings
from src.landinventory.utils.logger import get_logger

logger = get_logger(__name__)


def configure_sqlite_engine(engine: Engine) -> Engine:
    """
    Make a SQLite engine behave like the production database.

    Enables foreign key enforcement (ON DELETE CASCADE / SET NULL) and takes
    over transaction control from pysqlite so SAVEPOINTs work.

    Args:
        engine: SQLite engine

    Returns:
        The same engine
    """
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """
    Create the application engine from settings (once).

    Pool sizing only applies to server databases.

    Returns:
        SQLAlchemy engine
    """
    if settings.database_url.startswith("sqlite"):
        engine = create_engine(
            settings.database_url,
            echo=settings.database_echo,
            connect_args={"check_same_thread": False},
        )
        return configure_sqlite_engine(engine)

    engine = create_engine(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
        pool_recycle=settings.database_pool_recycle,
        pool_pre_ping=True,  # Verify connections before using
        echo=settings.database_echo,  # Log SQL queries if enabled
    )
    logger.info("database_engine_created", dialect=engine.dialect.name)
    return engine


@event.listens_for(pool.Pool, "invalidate")
def receive_invalidate(dbapi_conn, connection_record, exception):
    """
    Event listener for connection invalidation.

    Logs when a connection is marked as invalid and removed from pool.
    """
    logger.warning(
        "database_connection_invalidated",
        exception=str(exception) if exception else None
    )


def create_session_factory(engine: Optional[Engine] = None) -> sessionmaker:
    """
    Build a session factory bound to an engine.

    Args:
        engine: Engine to bind (defaults to the application engine)

    Returns:
        Configured sessionmaker
    """
    return sessionmaker(
        bind=engine or get_engine(),
        autocommit=False,
        autoflush=False,
        expire_on_commit=False
    )


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    """Application-wide session factory (SessionLocal)."""
    return create_session_factory()


@contextmanager
def get_db_session(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """
    Get database session with automatic cleanup.

    The whole block is one transaction: committed on success, rolled back on
    any exception (including cancellation), always closed.

    Usage:
        with get_db_session() as session:
            # Perform database operations
            result = session.execute(select(Block)).scalars().all()

    Args:
        factory: Session factory (defaults to the application factory)

    Yields:
        Database session

    Raises:
        Exception: Re-raises any exception after rollback
    """
    session = (factory or get_session_factory())()
    try:
        logger.debug("database_session_created")
        yield session
        session.commit()
        logger.debug("database_session_committed")
    except exc.SQLAlchemyError as e:
        session.rollback()
        logger.error(
            "database_session_rollback",
            error=str(e),
            error_type=type(e).__name__
        )
        raise
    except BaseException as e:
        session.rollback()
        logger.warning(
            "database_session_aborted",
            error=str(e),
            error_type=type(e).__name__
        )
        raise
    finally:
        session.close()
        logger.debug("database_session_closed")


def health_check(factory: Optional[sessionmaker] = None) -> bool:
    """
    Check database connection health.

    Returns:
        True if database is accessible, False otherwise
    """
    try:
        with get_db_session(factory) as session:
            session.execute(text("SELECT 1"))
            logger.info("database_health_check_success")
            return True
    except exc.SQLAlchemyError as e:
        logger.error(
            "database_health_check_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        return False


def close_connections():
    """
    Close all database connections and dispose of the engine.

    Called on application shutdown. Does nothing if no engine was created.
    """
    if get_engine.cache_info().currsize == 0:
        return
    logger.info("closing_database_connections")
    get_engine().dispose()
    logger.info("database_connections_closed")


def create_all_tables(engine: Optional[Engine] = None):
    """
    Create all database tables defined in models.

    WARNING: Use Alembic migrations instead in production.
    This is only for testing and initial setup.
    """
    from src.landinventory.db.base import Base, import_all_models

    logger.info("creating_database_tables")
    import_all_models()
    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("database_tables_created")


def drop_all_tables(engine: Optional[Engine] = None):
    """
    Drop all database tables.

    WARNING: This will delete all data! Only use in development/testing.
    """
    from src.landinventory.db.base import Base, import_all_models

    logger.warning("dropping_all_database_tables")
    import_all_models()
    Base.metadata.drop_all(bind=engine or get_engine())
    logger.warning("all_database_tables_dropped")
