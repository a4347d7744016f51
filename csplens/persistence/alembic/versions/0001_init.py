"""init

Revision ID: 0001_init
Revises: 
Create Date: 2026-10-18 09:00:00.000000
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "violations",
        sa.Column("id", sa.String(), primary_key=True),
        # No foreign key; ingestion checks the tenant before writing.
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("document_uri", sa.Text(), nullable=False),
        sa.Column("violated_directive", sa.Text(), nullable=False),
        sa.Column("blocked_uri", sa.Text(), nullable=False),
        sa.Column("source_file", sa.Text(), nullable=True),
        sa.Column("line_number", sa.Integer(), nullable=True),
        sa.Column("column_number", sa.Integer(), nullable=True),
        sa.Column("effective_directive", sa.Text(), nullable=True),
        sa.Column("original_report", sa.Text(), nullable=True),
        sa.Column("extra_json", postgresql.JSONB(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("source_ip", sa.String(), nullable=True),
        sa.Column("observed_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_violations_tenant_id", "violations", ["tenant_id"])
    op.create_index("ix_violations_observed_at", "violations", ["observed_at"])
    # Statistics windows filter on tenant then time range.
    op.create_index("ix_violations_tenant_observed_at", "violations", ["tenant_id", "observed_at"])


def downgrade() -> None:
    op.drop_index("ix_violations_tenant_observed_at", table_name="violations")
    op.drop_index("ix_violations_observed_at", table_name="violations")
    op.drop_index("ix_violations_tenant_id", table_name="violations")
    op.drop_table("violations")
    op.drop_table("tenants")
