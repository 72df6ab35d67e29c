"""Create assets table.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "assets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("webstrate_id", sa.String(length=255), nullable=False),
        sa.Column("v", sa.Integer(), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("original_file_name", sa.String(length=255), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column("file_hash", sa.String(length=128), nullable=False),
        sa.Column("deleted_at", sa.Integer(), nullable=True),
        sa.Column("original_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_assets_id"), "assets", ["id"], unique=False)
    op.create_index(op.f("ix_assets_webstrate_id"), "assets", ["webstrate_id"], unique=False)
    op.create_index(op.f("ix_assets_file_name"), "assets", ["file_name"], unique=False)
    # "Current as of version V" lookups.
    op.create_index(
        "ix_assets_webstrate_name_v", "assets", ["webstrate_id", "original_file_name", "v"], unique=False
    )
    # Duplicate detection.
    op.create_index("ix_assets_size_hash", "assets", ["file_size", "file_hash"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_assets_size_hash", table_name="assets")
    op.drop_index("ix_assets_webstrate_name_v", table_name="assets")
    op.drop_index(op.f("ix_assets_file_name"), table_name="assets")
    op.drop_index(op.f("ix_assets_webstrate_id"), table_name="assets")
    op.drop_index(op.f("ix_assets_id"), table_name="assets")
    op.drop_table("assets")
