"""comp time ledger, leave and overtime requests

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    op.create_table(
        "leave_types",
        sa.Column("id", sa.Uuid(), nullable=False),
        _created_at(),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=50), server_default="other", nullable=False),
        sa.Column("with_pay", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("requires_proof", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("funding_source", sa.String(length=50), server_default="standard", nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("leave_type_id", sa.Uuid(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("hours", sa.Numeric(precision=6, scale=2), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("status", sa.String(length=50), server_default="pending", nullable=False),
        sa.Column("approver_employee_id", sa.Uuid(), nullable=True),
        sa.Column("decision_note", sa.String(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["leave_type_id"], ["leave_types.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_leave_requests_employee_id", "leave_requests", ["employee_id"])
    op.create_index("ix_leave_requests_status", "leave_requests", ["status"])
    op.create_index("ix_leave_request_employee_window", "leave_requests", ["employee_id", "start_at", "end_at"])

    op.create_table(
        "overtime_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("planned_hours", sa.Numeric(precision=6, scale=2), nullable=False),
        sa.Column("approved_hours", sa.Numeric(precision=6, scale=2), nullable=True),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("status", sa.String(length=50), server_default="pending", nullable=False),
        sa.Column("approver_employee_id", sa.Uuid(), nullable=True),
        sa.Column("decision_note", sa.String(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("convert_to_comp_time", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_overtime_requests_employee_id", "overtime_requests", ["employee_id"])
    op.create_index("ix_overtime_requests_status", "overtime_requests", ["status"])
    op.create_index(
        "ix_overtime_request_employee_window", "overtime_requests", ["employee_id", "start_at", "end_at"]
    )

    op.create_table(
        "comp_time_balances",
        sa.Column("id", sa.Uuid(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("balance_minutes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.CheckConstraint("balance_minutes >= 0", name="ck_comp_time_balance_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comp_time_balances_employee_id", "comp_time_balances", ["employee_id"], unique=True)

    op.create_table(
        "comp_time_transactions",
        sa.Column("id", sa.Uuid(), nullable=False),
        _created_at(),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("minutes", sa.Integer(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("overtime_request_id", sa.Uuid(), nullable=True),
        sa.Column("leave_request_id", sa.Uuid(), nullable=True),
        sa.Column("reason", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["overtime_request_id"], ["overtime_requests.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["leave_request_id"], ["leave_requests.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comp_time_transactions_employee_id", "comp_time_transactions", ["employee_id"])
    op.create_index(
        "ix_comp_time_txn_employee_occurred", "comp_time_transactions", ["employee_id", "occurred_at"]
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=True),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("comp_time_transactions")
    op.drop_table("comp_time_balances")
    op.drop_table("overtime_requests")
    op.drop_table("leave_requests")
    op.drop_table("leave_types")
