"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates all tables for Insight Stream:
- users
- sessions
- global_mentions
- analyzed_reddit_profiles
- api_keys
- otp_requests
- password_reset_tokens
- audit_log
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column(
            "role",
            sa.Enum("admin", "user", name="user_role_enum"),
            nullable=False,
            server_default="user",
        ),
        sa.Column("assigned_keywords", sa.JSON, nullable=False),
        sa.Column("assigned_youtube_urls", sa.JSON, nullable=False),
        sa.Column("assigned_rss_feed_urls", sa.JSON, nullable=False),
        sa.Column("profile_picture_url", sa.String(512), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column(
            "created_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.Column("password_last_reset_at", sa.DateTime, nullable=True),
        sa.Column("last_login_at", sa.DateTime, nullable=True),
    )

    # Sessions table
    op.create_table(
        "sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
        sa.Column(
            "created_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.Column("expires_at", sa.DateTime, nullable=False),
    )
    op.create_index("idx_sessions_user", "sessions", ["user_id"])

    # Mentions table
    op.create_table(
        "global_mentions",
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id"),
            primary_key=True,
        ),
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("platform", sa.String(32), nullable=False),
        sa.Column("source", sa.String(255), nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("excerpt", sa.Text, nullable=False),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("timestamp", sa.DateTime, nullable=False),
        sa.Column("matched_keyword", sa.String(255), nullable=False),
        sa.Column(
            "sentiment", sa.String(16), nullable=False, server_default="unknown"
        ),
        sa.Column(
            "fetched_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_mentions_user_ts", "global_mentions", ["user_id", "timestamp"])

    # Analyzed external Reddit profiles
    op.create_table(
        "analyzed_reddit_profiles",
        sa.Column(
            "app_user_id",
            sa.String(32),
            sa.ForeignKey("users.id"),
            primary_key=True,
        ),
        sa.Column("username", sa.String(64), primary_key=True),
        sa.Column("account_created", sa.DateTime, nullable=True),
        sa.Column("total_post_karma", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "total_comment_karma", sa.Integer, nullable=False, server_default="0"
        ),
        sa.Column("subreddits_posted_in", sa.JSON, nullable=False),
        sa.Column(
            "total_posts_fetched_this_run",
            sa.Integer,
            nullable=False,
            server_default="0",
        ),
        sa.Column(
            "total_comments_fetched_this_run",
            sa.Integer,
            nullable=False,
            server_default="0",
        ),
        sa.Column("fetched_posts_details", sa.JSON, nullable=False),
        sa.Column("fetched_comments_details", sa.JSON, nullable=False),
        sa.Column("is_placeholder", sa.Boolean, nullable=False, server_default="1"),
        sa.Column("suspension_status", sa.String(32), nullable=True),
        sa.Column("error", sa.Text, nullable=True),
        sa.Column(
            "added_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.Column("last_refreshed_at", sa.DateTime, nullable=True),
        sa.Column("last_error_at", sa.DateTime, nullable=True),
    )

    # API keys table
    op.create_table(
        "api_keys",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("service_name", sa.String(128), nullable=False),
        sa.Column("key_value", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("added_by_user_id", sa.String(32), nullable=True),
        sa.Column(
            "created_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_api_keys_service", "api_keys", ["service_name"])

    # OTP requests table
    op.create_table(
        "otp_requests",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("otp", sa.String(6), nullable=False),
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
        sa.Column(
            "created_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.Column("expires_at", sa.DateTime, nullable=False),
        sa.Column("used", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("used_at", sa.DateTime, nullable=True),
    )
    op.create_index("idx_otp_email", "otp_requests", ["email", "otp"])

    # Password reset tokens table
    op.create_table(
        "password_reset_tokens",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(64), nullable=False, unique=True),
        sa.Column(
            "created_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.Column("expires_at", sa.DateTime, nullable=False),
        sa.Column("used", sa.Boolean, nullable=False, server_default="0"),
    )

    # Audit log table
    op.create_table(
        "audit_log",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("ts", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column(
            "actor",
            sa.Enum("user", "system", name="audit_actor_enum"),
            nullable=False,
        ),
        sa.Column("action_type", sa.String(128), nullable=False),
        sa.Column("entity_type", sa.String(64), nullable=True),
        sa.Column("entity_id", sa.String(255), nullable=True),
        sa.Column("request_json", sa.JSON, nullable=True),
        sa.Column(
            "result",
            sa.Enum("ok", "error", name="audit_result_enum"),
            nullable=False,
        ),
        sa.Column("error_detail", sa.Text, nullable=True),
    )
    op.create_index("idx_audit_ts", "audit_log", ["ts"])
    op.create_index("idx_audit_action", "audit_log", ["action_type"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("password_reset_tokens")
    op.drop_table("otp_requests")
    op.drop_table("api_keys")
    op.drop_table("analyzed_reddit_profiles")
    op.drop_table("global_mentions")
    op.drop_table("sessions")
    op.drop_table("users")
