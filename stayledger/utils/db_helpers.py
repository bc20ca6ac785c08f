"""
Database Helper Utilities for Concurrency Control

Provides:
- Database dialect detection (PostgreSQL vs SQLite)
- Row locking helpers
- Translation of transient driver errors into domain errors
"""

import logging
from contextlib import contextmanager
from typing import Optional, TypeVar, Type

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, OperationalError

from ..errors import StorageUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def is_postgres(db: Session) -> bool:
    """Check if the database is PostgreSQL"""
    try:
        return db.bind.dialect.name == 'postgresql'
    except AttributeError:
        return False


def is_sqlite(db: Session) -> bool:
    """Check if the database is SQLite"""
    try:
        return db.bind.dialect.name == 'sqlite'
    except AttributeError:
        return True  # Default to SQLite for safety


def acquire_row_lock(
    db: Session,
    model: Type[T],
    filter_condition,
    nowait: bool = False
) -> Optional[T]:
    """
    Acquire a row-level lock on a database record.

    Args:
        db: Database session
        model: SQLAlchemy model class
        filter_condition: Filter to find the row
        nowait: If True, raise immediately if the lock is unavailable (PostgreSQL only)

    Returns:
        The locked model instance, or None if not found

    Example:
        reservation = acquire_row_lock(db, Reservation, Reservation.id == reservation_id)
    """
    query = db.query(model).filter(filter_condition)

    # Only apply locking on PostgreSQL
    if is_postgres(db):
        query = query.with_for_update(nowait=nowait)

    return query.first()


def is_unique_violation(error: IntegrityError) -> bool:
    """True when an IntegrityError comes from a unique constraint/index."""
    text = str(error.orig).lower() if error.orig is not None else str(error).lower()
    return "unique" in text or "duplicate" in text


@contextmanager
def translate_storage_errors(db: Session):
    """
    Roll back and re-raise driver connectivity failures as StorageUnavailableError.

    Business errors pass through untouched; only OperationalError is
    considered transient.
    """
    try:
        yield
    except OperationalError as e:
        db.rollback()
        logger.error(f"Storage operation failed: {e}")
        raise StorageUnavailableError() from e
