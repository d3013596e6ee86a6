"""
SQLAlchemy Base and Mixins

Provides declarative base and reusable mixins for database models.
"""
import uuid
from datetime import datetime

from sqlalchemy import DateTime, JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def generate_uuid() -> str:
    """Generate a new string identifier for a row."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """
    Base class for all database models.

    Every land inventory table registers its metadata here.
    """


class UUIDPrimaryKeyMixin:
    """
    Mixin to add a UUID string primary key.

    Identifiers are generated application-side so they are available
    immediately after flush on every backend.
    """

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        comment="UUID identifier"
    )


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamp columns.

    Automatically tracks when records are created and last updated.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Timestamp when record was created"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Timestamp when record was last updated"
    )


# Import all models to ensure they're registered with Base
# This is used by Alembic for auto-generating migrations
def import_all_models():
    """
    Import all models to register them with SQLAlchemy Base.

    This function should be called before running Alembic migrations
    to ensure all models are discovered.
    """
    from src.landinventory.db import models  # noqa: F401
