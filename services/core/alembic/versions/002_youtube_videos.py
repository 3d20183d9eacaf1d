"""YouTube video tracker

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

Adds the youtube_videos table holding videos assigned to users.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "youtube_videos",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column(
            "assigned_to_user_id",
            sa.String(32),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("thumbnail_url", sa.String(512), nullable=False),
        sa.Column("like_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("comment_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("share_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("channel_title", sa.String(255), nullable=False),
        sa.Column(
            "created_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index(
        "idx_youtube_videos_user_created",
        "youtube_videos",
        ["assigned_to_user_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("youtube_videos")
