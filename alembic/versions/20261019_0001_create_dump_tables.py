"""create customers and organizations tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("Index", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("Customer Id", sa.String(length=255), nullable=False),
        sa.Column("First Name", sa.String(length=255), nullable=False),
        sa.Column("Last Name", sa.String(length=255), nullable=False),
        sa.Column("Company", sa.String(length=255), nullable=False),
        sa.Column("City", sa.String(length=255), nullable=False),
        sa.Column("Country", sa.String(length=255), nullable=False),
        sa.Column("Phone 1", sa.String(length=255), nullable=False),
        sa.Column("Phone 2", sa.String(length=255), nullable=True),
        sa.Column("Email", sa.String(length=255), nullable=False),
        sa.Column("Subscription Date", sa.Date(), nullable=False),
        sa.Column("Website", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("Index", name="pk_customers"),
    )
    op.create_table(
        "organizations",
        sa.Column("Index", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("Organization Id", sa.String(length=255), nullable=False),
        sa.Column("Name", sa.String(length=255), nullable=False),
        sa.Column("Website", sa.String(length=255), nullable=False),
        sa.Column("Country", sa.String(length=255), nullable=False),
        sa.Column("Description", sa.String(length=255), nullable=False),
        sa.Column("Founded", sa.Integer(), nullable=False),
        sa.Column("Industry", sa.String(length=255), nullable=False),
        sa.Column("Number of employees", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("Index", name="pk_organizations"),
    )


def downgrade() -> None:
    op.drop_table("organizations")
    op.drop_table("customers")
