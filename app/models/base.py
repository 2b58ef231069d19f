"""
Base configurations and mixins for database models.

This module provides the foundation for all database models in the task
tracker: the declarative base, timestamp and UUID mixins, and schema-aware
foreign key targets.
"""

import uuid

from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql.functions import now as db_now

from app.config import settings

# Create the base class for all models
Base = declarative_base()


class TimestampMixin:
    """
    Mixin class that adds automatic timestamp management to models.

    ``created_at`` is set on insert and ``updated_at`` on every update, both by
    the database. Server-generated values are fetched back in the same flush so
    they never need a lazy reload.
    """

    __mapper_args__ = {"eager_defaults": True}

    created_at = Column(
        DateTime(timezone=True),
        server_default=db_now(),
        nullable=False,
        comment="Timestamp when the record was created",
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=db_now(),
        onupdate=db_now(),
        nullable=False,
        comment="Timestamp when the record was last updated",
    )


class UUIDMixin:
    """
    Mixin class that adds a UUID4 primary key to models.
    """

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
        comment="Primary key using UUID4 format",
    )


SCHEMA_NAME = settings.schema_name


def schema_table_args(*args) -> tuple:
    """Build ``__table_args__`` that place the table in the configured schema."""
    return (*args, {"schema": SCHEMA_NAME})


def fk_target(table_column: str) -> str:
    """Qualify a ``table.column`` foreign key target with the configured schema."""
    if SCHEMA_NAME:
        return f"{SCHEMA_NAME}.{table_column}"
    return table_column


__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "SCHEMA_NAME",
    "schema_table_args",
    "fk_target",
]
