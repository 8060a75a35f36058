"""track and platform identity tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "track",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_track")),
    )
    op.create_table(
        "track_platform_identity",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("track_id", sa.Integer(), nullable=False),
        sa.Column("platform", sa.String(length=32), nullable=False),
        sa.Column("platform_id", sa.String(), nullable=False),
        sa.Column("platform_url", sa.String(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["track_id"],
            ["track.id"],
            name=op.f("fk_track_platform_identity_track_id_track"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_track_platform_identity")),
        sa.UniqueConstraint(
            "track_id", "platform", name="uq_track_platform_identity_track_platform"
        ),
    )
    op.create_index(
        "ix_track_platform_identity_platform",
        "track_platform_identity",
        ["platform"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_track_platform_identity_platform", table_name="track_platform_identity")
    op.drop_table("track_platform_identity")
    op.drop_table("track")
