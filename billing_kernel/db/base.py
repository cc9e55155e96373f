"""
Module: billing_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models, with the
    type annotation map that keeps column types consistent across the schema.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel; ALL model files import from here.  MUST NOT import from models/,
    selectors/ or outer layers.

Invariants enforced:
    - Decimal maps to Numeric(38, 2).  NEVER use float for monetary amounts.
    - datetime maps to a naive DateTime: exports carry wall-clock times with
      no zone, and they are stored as read.
    - Primary keys are NOT declared here.  Every table names its own
      datastore-generated surrogate key column (``id_<entity>_int``).
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import DateTime, MetaData, Numeric, String
from sqlalchemy.orm import DeclarativeBase

# Deterministic constraint names (unique keys and FKs show up in error messages)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """
    Declarative base for all billing models.

    Guarantees:
        - Decimal maps to Numeric(38, 2).
        - datetime maps to DateTime(timezone=False).
        - str maps to String(255) unless a column narrows it.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 2),
        datetime: DateTime(timezone=False),
        str: String(255),
    }
