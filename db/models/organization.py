"""
db/models/organization.py

Destination table for the `organizations.csv` dump file.
"""

from sqlalchemy import Column, Integer, String, Table

from db.base import Base

organizations_table = Table(
    "organizations",
    Base.metadata,
    Column("Index", Integer, primary_key=True, autoincrement=True),
    Column("Organization Id", String(255), nullable=False),
    Column("Name", String(255), nullable=False),
    Column("Website", String(255), nullable=False),
    Column("Country", String(255), nullable=False),
    Column("Description", String(255), nullable=False),
    Column("Founded", Integer, nullable=False),
    Column("Industry", String(255), nullable=False),
    Column("Number of employees", Integer, nullable=False),
)
