"""
Module: cashflow_kernel.db.base
Responsibility: Declarative base shared by every cashflow table.
Architecture position: Kernel > DB.  Model modules in cashflow_schedule
    import from here; this module imports nothing from the cashflow packages.

Conventions:
    - Primary keys are uuid4 values stored as 36-character strings, so the
      same schema runs on PostgreSQL and on SQLite in tests.
    - ``Decimal`` annotations become Numeric(38, 9); money is never a float.
    - ``datetime`` annotations are timezone-aware.
    - TrackedBase adds server-set created_at / updated_at columns.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID column persisted as String(36).

    Accepts a UUID or its string form on the way in and always hands a
    ``uuid.UUID`` back on the way out.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value if isinstance(value, PyUUID) else PyUUID(str(value)))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value if isinstance(value, PyUUID) else PyUUID(value)


class Base(DeclarativeBase):
    """Root of the ORM hierarchy; contributes the ``id`` primary key."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Abstract base for rows that record when they were written.

    ``created_at`` is set once on INSERT; ``updated_at`` is refreshed on
    every UPDATE.  Both come from the database clock.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


UUID = PyUUID
