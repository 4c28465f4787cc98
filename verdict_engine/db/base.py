"""SQLAlchemy Declarative Base — shared base class for verdict and prediction models.

Invariants:
    - All models inherit from Base
    - Base is the single source of truth for table metadata
    - Constraint names follow NAMING_CONVENTION so migrations can drop them by name

Design Decisions:
    - Separate file for Base: avoids circular imports between models
    - Explicit naming convention: the unique constraint on verdicts.date is referenced
      by name in migrations and error logs
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all Verdict Engine ORM models."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
