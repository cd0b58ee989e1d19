"""
SQLAlchemy Declarative Base
All ORM models inherit from this
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from shared.utils.clock import utcnow

# JSONB on PostgreSQL, plain JSON text elsewhere (SQLite in local/test runs)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Provides common columns:
    - id (integer, autoincrement primary key)
    - created_at (timestamptz, server default NOW())

    Tables that are mutated after insert add their own updated_at.
    """

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation showing table name and id."""
        return f"<{self.__class__.__name__}(id={self.id})>"
