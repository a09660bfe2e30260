"""Compliance ledger tables.

Revision ID: 001_compliance
Revises:
Create Date: 2026-10-18

Creates ship_compliance, bank_entries, pools, pool_members and routes.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001_compliance"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "ship_compliance",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("ship_id", sa.String(100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("cb_gco2eq", sa.Float(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("ship_id", "year", name="uq_ship_compliance_ship_year"),
    )
    op.create_index("ix_ship_compliance_ship_id", "ship_compliance", ["ship_id"])
    op.create_index("ix_ship_compliance_year", "ship_compliance", ["year"])

    op.create_table(
        "bank_entries",
        sa.Column("seq", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(64), nullable=False, unique=True),
        sa.Column("ship_id", sa.String(100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("amount_gco2eq", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_bank_entries_ship_id", "bank_entries", ["ship_id"])
    op.create_index("ix_bank_entries_ship_year", "bank_entries", ["ship_id", "year"])

    op.create_table(
        "pools",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_pools_year", "pools", ["year"])

    op.create_table(
        "pool_members",
        sa.Column("seq", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("pool_id", sa.String(64), sa.ForeignKey("pools.id"), nullable=False),
        sa.Column("ship_id", sa.String(100), nullable=False),
        sa.Column("cb_before", sa.Float(), nullable=False),
        sa.Column("cb_after", sa.Float(), nullable=False),
        sa.UniqueConstraint("pool_id", "ship_id", name="uq_pool_members_pool_ship"),
    )
    op.create_index("ix_pool_members_pool_id", "pool_members", ["pool_id"])

    op.create_table(
        "routes",
        sa.Column("route_id", sa.String(64), primary_key=True),
        sa.Column("vessel_type", sa.String(100), nullable=False),
        sa.Column("fuel_type", sa.String(100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("ghg_intensity", sa.Float(), nullable=False),
        sa.Column("fuel_consumption", sa.Float(), nullable=False),
        sa.Column("distance", sa.Float(), nullable=False),
        sa.Column("total_emissions", sa.Float(), nullable=False),
        sa.Column("is_baseline", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_routes_year", "routes", ["year"])
    op.create_index("ix_routes_is_baseline", "routes", ["is_baseline"])


def downgrade() -> None:
    op.drop_table("routes")
    op.drop_table("pool_members")
    op.drop_table("pools")
    op.drop_table("bank_entries")
    op.drop_table("ship_compliance")
