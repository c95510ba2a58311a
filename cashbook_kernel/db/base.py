"""
cashbook_kernel.db.base -- Declarative base shared by every ORM model.

Responsibility:
    Integer primary keys, the column type map and the TrackedBase
    timestamp mixin.

Architecture position:
    Kernel > DB.  Imported by every model file; imports nothing from
    models, selectors, services or engines.

Invariants enforced:
    - Integer primary keys: ids are small, sequential and shown to users
      (supplier numbers, ledger row ids).  The supplier ledger's synthetic
      opening entry uses -1, which no stored row can have.
    - Decimal columns are DecimalString, so amounts come back exactly as
      written.  Money is never stored as float.
    - TrackedBase tables carry created_at and updated_at.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from cashbook_kernel.db.types import DecimalString


class Base(DeclarativeBase):
    """
    Root of the model hierarchy.

    Contract:
        Every ORM model inherits from Base (or TrackedBase).  Base provides
        an autoincrement integer primary key and a type_annotation_map that
        enforces consistent column types across the schema.

    Guarantees:
        - id is an autoincrementing integer.
        - Decimal maps to DecimalString -- exact storage.
        - datetime maps to naive DateTime.  Stored values are UTC.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: DecimalString(),
        datetime: DateTime(),
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class TrackedBase(Base):
    """
    Abstract base with creation and modification timestamps.

    Guarantees:
        - created_at is set on INSERT and never changes.  The application
          sets it from its clock when ordering depends on it (supplier
          transactions); otherwise the server default applies.
        - updated_at auto-updates on every UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
