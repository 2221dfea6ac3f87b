"""initial schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


status_enum = postgresql.ENUM("up", "degraded", "down", name="status_enum", create_type=False)
monitor_type_enum = postgresql.ENUM(
    "http", "keyword", "api", "database", name="monitor_type_enum", create_type=False
)
sli_type_enum = postgresql.ENUM("availability", "latency", name="sli_type_enum", create_type=False)
channel_type_enum = postgresql.ENUM("webhook", "email", "sms", name="channel_type_enum", create_type=False)

ENUMS = (status_enum, monitor_type_enum, sli_type_enum, channel_type_enum)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def upgrade() -> None:
    for enum in ENUMS:
        enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )

    op.create_table(
        "services",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("method", sa.String(length=16), nullable=False, server_default="GET"),
        sa.Column("expected_status", sa.Integer(), nullable=False, server_default=sa.text("200")),
        sa.Column("expected_content", sa.Text(), nullable=True),
        sa.Column("timeout_ms", sa.Integer(), nullable=False, server_default=sa.text("5000")),
        sa.Column("monitor_type", monitor_type_enum, nullable=False, server_default="http"),
        sa.Column("keyword", sa.String(length=255), nullable=True),
        sa.Column("request_body", sa.Text(), nullable=True),
        sa.Column("request_headers", postgresql.JSONB(), nullable=True),
        sa.Column("bearer_token", sa.Text(), nullable=True),
        sa.Column("database_query", sa.Text(), nullable=True),
        sa.Column("database_probe_id", sa.String(length=255), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_services_enabled", "services", ["enabled"], unique=False)
    op.create_index("ix_services_category", "services", ["category_id"], unique=False)

    op.create_table(
        "check_results",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("seq", sa.Integer(), sa.Identity(), nullable=False, unique=True),
        sa.Column(
            "service_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", status_enum, nullable=False),
        sa.Column("response_time_ms", sa.Integer(), nullable=True),
        sa.Column("status_code", sa.Integer(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column(
            "checked_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index(
        "ix_check_results_service_time", "check_results", ["service_id", "checked_at"], unique=False
    )
    op.create_index("ix_check_results_checked_at", "check_results", ["checked_at"], unique=False)

    op.create_table(
        "slos",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "service_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("sli_type", sli_type_enum, nullable=False),
        sa.Column("target_percentage", sa.Float(), nullable=False),
        sa.Column("latency_threshold_ms", sa.Integer(), nullable=True),
        sa.Column("time_window_days", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_slos_enabled", "slos", ["enabled"], unique=False)

    op.create_table(
        "slo_burn_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "slo_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("slos.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("burn_rate", sa.Float(), nullable=False),
        sa.Column("error_budget_consumed", sa.Float(), nullable=False),
        sa.Column("time_to_exhaustion_hours", sa.Float(), nullable=True),
        sa.Column(
            "triggered_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("resolved_at", sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index("ix_slo_burn_events_slo", "slo_burn_events", ["slo_id"], unique=False)
    op.create_index(
        "ix_slo_burn_events_triggered_at", "slo_burn_events", ["triggered_at"], unique=False
    )
    op.create_index(
        "uq_slo_burn_events_open",
        "slo_burn_events",
        ["slo_id"],
        unique=True,
        postgresql_where=sa.text("resolved_at IS NULL"),
    )

    op.create_table(
        "notification_channels",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", channel_type_enum, nullable=False),
        sa.Column("config", postgresql.JSONB(), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index(
        "ix_notification_channels_type_enabled",
        "notification_channels",
        ["type", "enabled"],
        unique=False,
    )

    op.create_table(
        "slo_notification_rules",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "slo_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("slos.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "channel_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("notification_channels.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("burn_rate_threshold", sa.Float(), nullable=False, server_default=sa.text("14.4")),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index(
        "ix_slo_notification_rules_slo", "slo_notification_rules", ["slo_id", "enabled"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_slo_notification_rules_slo", table_name="slo_notification_rules")
    op.drop_table("slo_notification_rules")

    op.drop_index("ix_notification_channels_type_enabled", table_name="notification_channels")
    op.drop_table("notification_channels")

    op.drop_index("uq_slo_burn_events_open", table_name="slo_burn_events")
    op.drop_index("ix_slo_burn_events_triggered_at", table_name="slo_burn_events")
    op.drop_index("ix_slo_burn_events_slo", table_name="slo_burn_events")
    op.drop_table("slo_burn_events")

    op.drop_index("ix_slos_enabled", table_name="slos")
    op.drop_table("slos")

    op.drop_index("ix_check_results_checked_at", table_name="check_results")
    op.drop_index("ix_check_results_service_time", table_name="check_results")
    op.drop_table("check_results")

    op.drop_index("ix_services_category", table_name="services")
    op.drop_index("ix_services_enabled", table_name="services")
    op.drop_table("services")

    op.drop_table("categories")

    for enum in reversed(ENUMS):
        enum.drop(op.get_bind(), checkfirst=True)
