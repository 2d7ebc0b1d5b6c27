"""
db/models/customer.py

Destination table for the `customers.csv` dump file.

Column names match the dump header verbatim, so record field names are used
as insert keys without a mapping step.
"""

from sqlalchemy import Column, Date, Integer, String, Table

from db.base import Base

customers_table = Table(
    "customers",
    Base.metadata,
    Column("Index", Integer, primary_key=True, autoincrement=True),
    Column("Customer Id", String(255), nullable=False),
    Column("First Name", String(255), nullable=False),
    Column("Last Name", String(255), nullable=False),
    Column("Company", String(255), nullable=False),
    Column("City", String(255), nullable=False),
    Column("Country", String(255), nullable=False),
    Column("Phone 1", String(255), nullable=False),
    Column("Phone 2", String(255), nullable=True),
    Column("Email", String(255), nullable=False),
    Column("Subscription Date", Date, nullable=False),
    Column("Website", String(255), nullable=False),
)
