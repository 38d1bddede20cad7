"""Initial schema: users, workspaces, snapshot queue, visibility results, crawler visits.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("email_verified_at", sa.DateTime(timezone=True)),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
        sa.Column("subscription_plan", sa.String(20), nullable=False, server_default="free"),
        sa.Column("subscription_status", sa.String(20), nullable=False, server_default="inactive"),
        sa.Column("stripe_customer_id", sa.String(255)),
        *_timestamps(),
    )

    # Workspaces and their API keys
    op.create_table(
        "workspaces",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("workspace_name", sa.String(255), nullable=False),
        sa.Column("domain", sa.String(255), nullable=False, index=True),
        *_timestamps(),
    )

    op.create_table(
        "workspace_api_keys",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("workspace_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("workspaces.id"), nullable=False, index=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("key_type", sa.String(10), nullable=False, server_default="live"),
        sa.Column("key_prefix", sa.String(24), nullable=False),
        sa.Column("key_hash", sa.String(64), unique=True, nullable=False, index=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("last_used_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )

    # Snapshot queue
    op.create_table(
        "snapshot_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True, index=True),
        sa.Column("urls", postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("topic", sa.String(500), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("locked_at", sa.DateTime(timezone=True)),
        sa.Column("locked_by", sa.String(100)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("error_message", sa.Text),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'processing', 'completed', 'failed')",
            name="ck_snapshot_requests_status",
        ),
    )
    op.create_index("idx_snapshot_status_created", "snapshot_requests", ["status", "created_at"])
    op.create_index("idx_snapshot_status_locked", "snapshot_requests", ["status", "locked_at"])

    op.create_table(
        "visibility_results",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("request_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("snapshot_requests.id"), nullable=False, index=True),
        sa.Column("url", sa.String(2000), nullable=False),
        sa.Column("question_text", sa.Text, nullable=False),
        sa.Column("question_number", sa.Integer, nullable=False),
        sa.Column("question_type", sa.String(20), nullable=False),
        sa.Column("question_weight", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("target_found", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("position", sa.Integer),
        sa.Column("cited_domains", postgresql.JSONB, server_default=sa.text("'[]'::jsonb")),
        sa.Column("competitor_domains", postgresql.JSONB, server_default=sa.text("'[]'::jsonb")),
        sa.Column("competitor_names", postgresql.JSONB, server_default=sa.text("'[]'::jsonb")),
        sa.Column("citation_snippet", sa.Text),
        sa.Column("reasoning_summary", sa.Text),
        sa.Column("search_metadata", postgresql.JSONB, server_default=sa.text("'{}'::jsonb")),
        sa.Column("tested_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "snapshot_summaries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("request_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("snapshot_requests.id"), nullable=False, index=True),
        sa.Column("url", sa.String(2000), nullable=False),
        sa.Column("visibility_score", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("mentions_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("total_questions", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("top_competitors", postgresql.JSONB, server_default=sa.text("'[]'::jsonb")),
        sa.Column("insights", postgresql.JSONB, server_default=sa.text("'[]'::jsonb")),
        sa.Column("insights_summary", sa.Text),
        *_timestamps(),
    )

    op.create_table(
        "page_contents",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("request_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("snapshot_requests.id"), nullable=False, index=True),
        sa.Column("url", sa.String(2000), nullable=False),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("title", sa.Text, server_default=""),
        sa.Column("meta_description", sa.Text, server_default=""),
        sa.Column("raw_markdown", sa.Text, server_default=""),
        sa.Column("raw_html", sa.Text, server_default=""),
        sa.Column("word_count", sa.Integer, server_default=sa.text("0")),
        sa.Column("scrape_duration_ms", sa.Integer, server_default=sa.text("0")),
        sa.Column("scrape_success", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("scrape_error", sa.Text),
        sa.Column("scrape_metadata", postgresql.JSONB, server_default=sa.text("'{}'::jsonb")),
        sa.Column("aeo_score", sa.Integer),
        sa.Column("rendering_mode", sa.String(20)),
        sa.Column("category_scores", postgresql.JSONB, server_default=sa.text("'{}'::jsonb")),
        sa.Column("issues", postgresql.JSONB, server_default=sa.text("'[]'::jsonb")),
        sa.Column("recommendations", postgresql.JSONB, server_default=sa.text("'[]'::jsonb")),
        *_timestamps(),
    )

    # Crawler visit log
    op.create_table(
        "crawler_visits",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("workspace_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("workspaces.id"), nullable=False, index=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("path", sa.String(2000), nullable=False, server_default="/"),
        sa.Column("crawler_name", sa.String(100), nullable=False, index=True),
        sa.Column("crawler_company", sa.String(100)),
        sa.Column("crawler_category", sa.String(50)),
        sa.Column("user_agent", sa.Text, server_default=""),
        sa.Column("status_code", sa.Integer),
        sa.Column("response_time_ms", sa.Integer),
        sa.Column("country", sa.String(2)),
        sa.Column("metadata", postgresql.JSONB, server_default=sa.text("'{}'::jsonb")),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_crawler_visit_workspace_ts", "crawler_visits", ["workspace_id", "timestamp"])

    # Billing counters
    op.create_table(
        "subscription_usage",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), unique=True, nullable=False, index=True),
        sa.Column("plan", sa.String(20), nullable=False, server_default="free"),
        sa.Column("plan_status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("billing_period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("billing_period_end", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("snapshots_used", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("crawler_visits_tracked", sa.Integer, nullable=False, server_default=sa.text("0")),
        *_timestamps(),
    )

    op.create_table(
        "auth_tokens",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("purpose", sa.String(30), nullable=False),
        sa.Column("token_hash", sa.String(64), unique=True, nullable=False, index=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("used_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("auth_tokens")
    op.drop_table("subscription_usage")
    op.drop_index("idx_crawler_visit_workspace_ts", table_name="crawler_visits")
    op.drop_table("crawler_visits")
    op.drop_table("page_contents")
    op.drop_table("snapshot_summaries")
    op.drop_table("visibility_results")
    op.drop_index("idx_snapshot_status_locked", table_name="snapshot_requests")
    op.drop_index("idx_snapshot_status_created", table_name="snapshot_requests")
    op.drop_table("snapshot_requests")
    op.drop_table("workspace_api_keys")
    op.drop_table("workspaces")
    op.drop_table("users")
