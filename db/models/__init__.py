"""
Model package exports.

Import all destination tables here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from sqlalchemy import Table

from db.models.customer import customers_table
from db.models.organization import organizations_table

DESTINATION_TABLES: dict[str, Table] = {
    customers_table.name: customers_table,
    organizations_table.name: organizations_table,
}

__all__ = [
    "DESTINATION_TABLES",
    "customers_table",
    "organizations_table",
]
