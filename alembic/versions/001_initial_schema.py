"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # ── users ──
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("country_code", sa.String(8), nullable=True),
        sa.Column("mobile_no", sa.String(32), nullable=True),
        sa.Column("full_mobile_no", sa.String(40), nullable=True),
        sa.Column("profile_picture", sa.String(1024), nullable=True),
        sa.Column("user_type", sa.String(32), server_default="USER"),
        sa.Column("is_profile_completed", sa.Boolean(), server_default=sa.false()),
        sa.Column("blocked_reason", sa.String(512), nullable=True),
        sa.Column("address", sa.String(512), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("status", sa.String(32), server_default="UN_BLOCKED", nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_name", "users", ["name"])
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_mobile_no", "users", ["mobile_no"])
    op.create_index("ix_users_status", "users", ["status"])
    op.create_index("ix_users_created_at", "users", ["created_at"])

    # ── jobs ──
    op.create_table(
        "jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("job_id_string", sa.String(32), unique=True, nullable=True),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("category_name", sa.String(255), nullable=True),
        sa.Column("service_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("service_name", sa.String(255), nullable=True),
        sa.Column("personal_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("full_mobile_no", sa.String(32), nullable=True),
        sa.Column("about_company", sa.Text(), nullable=True),
        sa.Column("address", sa.String(512), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("company_address", sa.String(512), nullable=True),
        sa.Column("company_latitude", sa.Float(), nullable=True),
        sa.Column("company_longitude", sa.Float(), nullable=True),
        sa.Column("priority", sa.String(16), nullable=False),
        sa.Column("procedure", sa.Text(), nullable=True),
        sa.Column("door_tag", sa.String(1024), nullable=True),
        sa.Column("status", sa.String(32), server_default="SCHEDULED", nullable=False),
        sa.Column("schedule", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_jobs_category_id", "jobs", ["category_id"])
    op.create_index("ix_jobs_status", "jobs", ["status"])
    op.create_index("ix_jobs_created_at", "jobs", ["created_at"])
    op.create_index("ix_jobs_coordinates", "jobs", ["latitude", "longitude"])

    # ── service_requests ──
    op.create_table(
        "service_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("request_id_string", sa.String(32), unique=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_name", sa.String(255), nullable=False),
        sa.Column("service_type", sa.String(64), nullable=True),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("category_name", sa.String(255), nullable=True),
        sa.Column("issue_type_name", sa.String(255), nullable=True),
        sa.Column("sub_issue_name", sa.String(255), nullable=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(512), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("estimated_days", sa.String(32), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("reject_reason", sa.Text(), nullable=True),
        sa.Column("media", sa.String(1024), nullable=True),
        sa.Column("media_type", sa.String(32), nullable=True),
        sa.Column("chat_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status", sa.String(32), server_default="PENDING", nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_service_requests_user_id", "service_requests", ["user_id"])
    op.create_index("ix_service_requests_category_id", "service_requests", ["category_id"])
    op.create_index("ix_service_requests_status", "service_requests", ["status"])
    op.create_index("ix_service_requests_created_at", "service_requests", ["created_at"])
    op.create_index("ix_service_requests_coordinates", "service_requests", ["latitude", "longitude"])

    # ── damage_reports ──
    op.create_table(
        "damage_reports",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_name", sa.String(255), nullable=False),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("user_mobile", sa.String(32), nullable=True),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("media", postgresql.JSONB(), nullable=True),
        sa.Column("address", sa.String(512), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("chat_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status", sa.String(32), server_default="PENDING", nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_damage_reports_user_id", "damage_reports", ["user_id"])
    op.create_index("ix_damage_reports_status", "damage_reports", ["status"])
    op.create_index("ix_damage_reports_created_at", "damage_reports", ["created_at"])

    # ── tasks (delayed queue) ──
    op.create_table(
        "tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("queue_name", sa.String(128), nullable=False),
        sa.Column("status", sa.String(32), server_default="pending", nullable=False),
        sa.Column("payload", postgresql.JSONB(), server_default="{}"),
        sa.Column("result", postgresql.JSONB(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("priority", sa.Integer(), server_default="1"),
        sa.Column("attempts", sa.Integer(), server_default="0"),
        sa.Column("max_attempts", sa.Integer(), server_default="1"),
        sa.Column("remove_on_complete", sa.Boolean(), server_default=sa.true()),
        sa.Column("locked_by", sa.String(128), nullable=True),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("run_after", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("trace_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_tasks_claim", "tasks", ["queue_name", "status", "priority", "run_after"])
    op.create_index("ix_tasks_created_at", "tasks", ["created_at"])
    op.create_index(
        "ix_tasks_due_pending",
        "tasks",
        ["run_after"],
        postgresql_where=sa.text("status = 'pending'"),
    )

    # ── events (outbox) ──
    op.create_table(
        "events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("event_type", sa.String(128), nullable=False),
        sa.Column("entity_kind", sa.String(32), nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("payload", postgresql.JSONB(), server_default="{}"),
        sa.Column("dispatched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("attempts", sa.Integer(), server_default="0"),
        sa.Column("next_attempt_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_events_dispatched_at", "events", ["dispatched_at"])
    op.create_index("ix_events_created_at", "events", ["created_at"])


def downgrade() -> None:
    for table in ["events", "tasks", "damage_reports", "service_requests", "jobs", "users"]:
        op.drop_table(table)
