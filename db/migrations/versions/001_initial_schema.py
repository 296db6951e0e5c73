"""Initial schema: event sources, side collections, notifier bookkeeping.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

from app_config import load_database_config

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

SCHEMA = load_database_config().name

_INDEXES = [
    ("sales", "tx_id"),
    ("sales", "meta_id"),
    ("auto_renew_updates", "tx_id"),
    ("auto_renew_updates", "meta_id"),
    ("metadata", "meta_id"),
    ("email_groups", "tx_id"),
    ("processed", "meta_id"),
    ("ar_processed", "tx_id"),
]


def upgrade() -> None:
    # ─── Event sources ───────────────────────────────────────────────────────

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tx_id", sa.Text, nullable=True),
        sa.Column("meta_id", sa.Text, nullable=True),
        sa.Column("domain", sa.Text, nullable=True),
        sa.Column("price", sa.Float, nullable=True),
        sa.Column("payer", sa.Text, nullable=True),
        sa.Column("timestamp", sa.BigInteger, nullable=True),
        sa.Column("expiry", sa.BigInteger, nullable=True),
        sa.Column("auto", sa.Boolean, nullable=True),
        sa.Column("sponsor", sa.Text, nullable=True),
        sa.Column("sponsor_commission", sa.Float, nullable=True),
        schema=SCHEMA,
    )

    op.create_table(
        "auto_renew_updates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tx_id", sa.Text, nullable=True),
        sa.Column("meta_id", sa.Text, nullable=True),
        sa.Column("domain", sa.Text, nullable=True),
        sa.Column("renewer", sa.Text, nullable=True),
        sa.Column("allowance", sa.Text, nullable=True),
        schema=SCHEMA,
    )

    # ─── Side collections ────────────────────────────────────────────────────

    op.create_table(
        "metadata",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("meta_id", sa.Text, nullable=True),
        sa.Column("email", sa.Text, nullable=True),
        sa.Column("tax_state", sa.Text, nullable=True),
        sa.Column("salt", sa.Text, nullable=True),
        schema=SCHEMA,
    )

    op.create_table(
        "email_groups",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tx_id", sa.Text, nullable=True),
        sa.Column("group", sa.Text, nullable=True),
        schema=SCHEMA,
    )

    # ─── Notifier bookkeeping ────────────────────────────────────────────────

    op.create_table(
        "processed",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("meta_id", sa.Text, nullable=False),
        schema=SCHEMA,
    )

    op.create_table(
        "ar_processed",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tx_id", sa.Text, nullable=False),
        schema=SCHEMA,
    )

    op.create_table(
        "pass_leases",
        sa.Column("name", sa.Text, primary_key=True),
        sa.Column("holder", sa.Text, nullable=False),
        sa.Column("acquired_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        schema=SCHEMA,
    )

    for table, column in _INDEXES:
        op.create_index(f"ix_{table}_{column}", table, [column], schema=SCHEMA)


def downgrade() -> None:
    for table, column in reversed(_INDEXES):
        op.drop_index(f"ix_{table}_{column}", table_name=table, schema=SCHEMA)
    op.drop_table("pass_leases", schema=SCHEMA)
    op.drop_table("ar_processed", schema=SCHEMA)
    op.drop_table("processed", schema=SCHEMA)
    op.drop_table("email_groups", schema=SCHEMA)
    op.drop_table("metadata", schema=SCHEMA)
    op.drop_table("auto_renew_updates", schema=SCHEMA)
    op.drop_table("sales", schema=SCHEMA)
