"""
Base ORM Model and Mixins.

============================================================
PURPOSE
============================================================
Provides the declarative base and common mixins used by all
series tables.

============================================================
COMPONENTS
============================================================
- Base: SQLAlchemy declarative base for all models
- CreatedTimeMixin: Provenance timestamp set at write time
- SeriesRowMixin: Shared helpers for timestamp-keyed rows

============================================================
"""

from datetime import datetime
from typing import Any, ClassVar

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all ORM models.

    All series tables inherit from this base, so a single
    create_all() builds the whole schema.
    """

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class CreatedTimeMixin:
    """
    Mixin providing the provenance column.

    created_time is not part of the logical key and is never
    read back into canonical records.
    """

    created_time: Mapped[datetime] = mapped_column(
        "created_time",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Row write timestamp (UTC)"
    )


class SeriesRowMixin:
    """
    Shared contract of every timestamp-keyed series row.

    Subclasses declare which attributes find_range_minimum may
    order by and how a row becomes a canonical record.
    """

    MINIMIZABLE_COLUMNS: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def from_record(cls, record: Any) -> dict[str, Any]:
        """Column values for an insert statement."""
        raise NotImplementedError

    def to_record(self) -> Any:
        raise NotImplementedError
