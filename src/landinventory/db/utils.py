"""
Database Utilities

Helper functions for locking, error translation and table inspection.
"""
from typing import Any, Dict, Iterable, Optional, Type, Union

from sqlalchemy import func, inspect, select, text
from sqlalchemy.exc import DataError, DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from src.landinventory.exceptions import ConflictError, ValidationError
from src.landinventory.utils.logger import get_logger

logger = get_logger(__name__)

# SQLSTATE codes that mean "another transaction got there first"
_RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03"}


def lock_row(session: Session, model: Type[Any], id_value: Any) -> Optional[Any]:
    """
    Load a row with SELECT ... FOR UPDATE.

    Serializes writers on the same row for the rest of the transaction.
    Dialects without row locks (SQLite) ignore the FOR UPDATE clause.

    Args:
        session: Database session
        model: SQLAlchemy model class
        id_value: Primary key value

    Returns:
        Model instance or None
    """
    query = select(model).where(model.id == id_value).with_for_update()
    instance = session.execute(query).scalar_one_or_none()
    logger.debug(
        "row_locked",
        model=model.__name__,
        id=id_value,
        found=instance is not None
    )
    return instance


def translate_integrity_error(error: Union[IntegrityError, DataError], message: str) -> ValidationError:
    """
    Convert a constraint violation or out-of-range value into a ValidationError.

    The driver message (constraint name etc.) is kept as debug detail only.

    Args:
        error: IntegrityError or DataError raised by the database
        message: Human-readable message for the caller

    Returns:
        ValidationError to raise
    """
    detail = str(error.orig) if error.orig is not None else str(error)
    logger.warning("integrity_error_translated", message=message, detail=detail)
    return ValidationError(message, detail=detail)


def is_retryable_error(error: DBAPIError) -> bool:
    """
    Check whether a database error is a lock/serialization conflict.

    Args:
        error: DBAPIError raised by the database

    Returns:
        True if the operation can be retried
    """
    sqlstate = getattr(error.orig, "pgcode", None) or getattr(error.orig, "sqlstate", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    return isinstance(error, OperationalError) and "locked" in str(error.orig).lower()


def translate_conflict_error(error: DBAPIError, message: str) -> ConflictError:
    """
    Convert a lock/serialization failure into a ConflictError.

    Args:
        error: DBAPIError raised by the database
        message: Human-readable message for the caller

    Returns:
        ConflictError to raise
    """
    detail = str(error.orig) if error.orig is not None else str(error)
    logger.warning("conflict_error_translated", message=message, detail=detail)
    return ConflictError(message, detail=detail)


def table_has_columns(session: Session, table_name: str, columns: Iterable[str]) -> bool:
    """
    Check the live schema for a table and a set of columns.

    Args:
        session: Database session
        table_name: Table name
        columns: Column names that must exist

    Returns:
        True if the table exists with every column
    """
    inspector = inspect(session.connection())
    if not inspector.has_table(table_name):
        return False
    existing = {column["name"] for column in inspector.get_columns(table_name)}
    missing = set(columns) - existing
    if missing:
        logger.warning("table_columns_missing", table=table_name, missing=sorted(missing))
        return False
    return True


def get_table_row_count(session: Session, table_name: str) -> int:
    """
    Get row count for a table.

    Args:
        session: Database session
        table_name: Table name

    Returns:
        Row count
    """
    count = session.execute(
        select(func.count()).select_from(text(table_name))
    ).scalar()
    logger.debug("table_row_count", table=table_name, count=count)
    return count


def get_database_stats(session: Session) -> Dict[str, int]:
    """
    Get row counts for every land inventory table.

    Args:
        session: Database session

    Returns:
        Dict with table row counts
    """
    tables = [
        'properties',
        'land_blocks',
        'land_plots',
        'land_plot_status_history',
        'property_land_configurations',
    ]

    stats = {}
    for table in tables:
        stats[table] = get_table_row_count(session, table)

    logger.info("database_stats_retrieved", stats=stats)
    return stats
