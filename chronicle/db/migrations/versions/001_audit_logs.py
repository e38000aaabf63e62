"""Create audit_logs table.

Revision ID: 001
Revises:
Create Date: 2026-10-18

Tables: audit_logs
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create audit_logs table."""
    op.create_table(
        "audit_logs",
        sa.Column(
            "id",
            sa.Text,
            primary_key=True,
            server_default=sa.text("gen_random_uuid()::text"),
        ),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("operation", sa.Text, nullable=False, server_default="CUSTOM"),
        sa.Column("table", sa.Text),
        sa.Column("entity_id", sa.Text),
        sa.Column("old_values", JSONB),
        sa.Column("new_values", JSONB),
        sa.Column("payload", JSONB),
        sa.Column(
            "timestamp",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("actor_id", sa.Text),
        sa.Column("actor_type", sa.Text),
        sa.Column("actor_data", JSONB),
        sa.Column("metadata", JSONB),
    )
    op.create_index("idx_audit_logs_type", "audit_logs", ["type"])
    op.create_index("idx_audit_logs_entity", "audit_logs", ["table", "entity_id"])
    op.create_index(
        "idx_audit_logs_actor",
        "audit_logs",
        ["actor_id"],
        postgresql_where=sa.text("actor_id IS NOT NULL"),
    )
    op.create_index(
        "idx_audit_logs_timestamp",
        "audit_logs",
        [sa.text('"timestamp" DESC')],
    )


def downgrade() -> None:
    """Drop audit_logs table."""
    op.drop_table("audit_logs")
