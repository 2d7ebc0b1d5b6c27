"""
db/base.py

Declarative base owning the metadata every destination table registers on.
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Primary key names match the Alembic migration on every backend.
NAMING_CONVENTION = {
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """
    Project-wide declarative base.
    Destination tables are Core tables bound to Base.metadata.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
