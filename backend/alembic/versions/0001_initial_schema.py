"""Initial leave approval schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _ts(name: str, *, nullable: bool = True, server_default: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.func.now() if server_default else None,
    )


def upgrade() -> None:
    op.create_table(
        "staff_member",
        sa.Column("staff_id", sa.String(length=64), primary_key=True),
        sa.Column("first_name", sa.String(length=255), nullable=False),
        sa.Column("last_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("duty_station", sa.String(length=20), nullable=True),
        sa.Column("directorate", sa.String(length=255), nullable=True),
        sa.Column("division", sa.String(length=255), nullable=True),
        sa.Column("unit", sa.String(length=255), nullable=True),
        sa.Column("sub_unit", sa.String(length=255), nullable=True),
        sa.Column("immediate_supervisor_id", sa.String(length=64), nullable=True),
        sa.Column("manager_id", sa.String(length=64), nullable=True),
        sa.Column("grade", sa.String(length=100), nullable=False),
        sa.Column("position", sa.String(length=255), nullable=False),
        sa.Column("system_role", sa.String(length=50), nullable=True),
        sa.Column("acting_officer_id", sa.String(length=64), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        _ts("created_at", nullable=False, server_default=True),
    )
    op.create_index("ix_staff_member_directorate", "staff_member", ["directorate"])
    op.create_index("ix_staff_role_unit", "staff_member", ["system_role", "unit"])

    op.create_table(
        "acting_appointment",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.Column("holder_staff_id", sa.String(length=64), nullable=True),
        sa.Column(
            "acting_staff_id",
            sa.String(length=64),
            sa.ForeignKey("staff_member.staff_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("authority_source", sa.String(length=255), nullable=True),
        _ts("created_at", nullable=False, server_default=True),
    )
    op.create_index("ix_acting_appointment_holder_staff_id", "acting_appointment", ["holder_staff_id"])
    op.create_index("ix_acting_role_dates", "acting_appointment", ["role", "effective_date", "end_date"])

    op.create_table(
        "approval_delegation",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("delegator_staff_id", sa.String(length=64), nullable=False),
        sa.Column(
            "delegatee_staff_id",
            sa.String(length=64),
            sa.ForeignKey("staff_member.staff_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        _ts("revoked_at"),
        _ts("created_at", nullable=False, server_default=True),
    )
    op.create_index("ix_approval_delegation_delegator_staff_id", "approval_delegation", ["delegator_staff_id"])

    op.create_table(
        "leave_request",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("staff_id", sa.String(length=64), nullable=False),
        sa.Column("organization_id", sa.String(length=64), nullable=True),
        sa.Column("leave_type", sa.String(length=50), nullable=False),
        sa.Column("days", sa.Float(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("is_chief_director_leave", sa.Boolean(), nullable=False),
        sa.Column("workflow_definition_id", sa.Uuid(), nullable=True),
        sa.Column("workflow_source", sa.String(length=255), nullable=True),
        _ts("submitted_at"),
        _ts("decided_at"),
        _ts("created_at", nullable=False, server_default=True),
        _ts("updated_at"),
    )
    op.create_index("ix_leave_request_staff_id", "leave_request", ["staff_id"])
    op.create_index("ix_leave_request_status", "leave_request", ["status"])
    op.create_index("ix_leave_staff_status", "leave_request", ["staff_id", "status"])

    op.create_table(
        "approval_step",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "leave_request_id",
            sa.Uuid(),
            sa.ForeignKey("leave_request.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("approver_role", sa.String(length=50), nullable=False),
        sa.Column("approver_staff_id", sa.String(length=64), nullable=True),
        sa.Column("approver_name", sa.String(length=255), nullable=True),
        sa.Column("approver_user_id", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        _ts("approval_date"),
        sa.Column("comments", sa.String(), nullable=True),
        sa.Column("delegated_to", sa.String(length=64), nullable=True),
        sa.Column("delegated_to_name", sa.String(length=255), nullable=True),
        _ts("delegation_date"),
        sa.Column("previous_level_completed", sa.Boolean(), nullable=False),
        sa.Column("can_skip", sa.Boolean(), nullable=False),
        sa.Column("can_delegate", sa.Boolean(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        _ts("created_at", nullable=False, server_default=True),
        _ts("updated_at"),
        sa.UniqueConstraint("leave_request_id", "level", name="uq_approval_step_level"),
    )
    op.create_index("ix_approval_step_leave_request_id", "approval_step", ["leave_request_id"])

    op.create_table(
        "workflow_definition",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.String(length=64), nullable=True),
        sa.Column("organization_name", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("conditions_json", sa.JSON(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("created_by_name", sa.String(length=255), nullable=True),
        sa.Column("previous_version_id", sa.Uuid(), nullable=True),
        _ts("activated_at"),
        _ts("deactivated_at"),
        _ts("created_at", nullable=False, server_default=True),
        sa.UniqueConstraint("name", "version", "organization_id", name="uq_workflow_name_version_org"),
    )
    op.create_index("ix_workflow_active", "workflow_definition", ["is_active", "organization_id"])

    op.create_table(
        "workflow_step",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "workflow_id",
            sa.Uuid(),
            sa.ForeignKey("workflow_definition.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("step_order", sa.Integer(), nullable=False),
        sa.Column("approver_role", sa.String(length=50), nullable=False),
        sa.Column("approver_role_type", sa.String(length=100), nullable=True),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("can_skip", sa.Boolean(), nullable=False),
        sa.Column("can_delegate", sa.Boolean(), nullable=False),
        sa.Column("conditions_json", sa.JSON(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.UniqueConstraint("workflow_id", "step_order", name="uq_workflow_step_order"),
    )
    op.create_index("ix_workflow_step_workflow_id", "workflow_step", ["workflow_id"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("organization_id", sa.String(length=64), nullable=True),
        sa.Column("actor_id", sa.String(length=64), nullable=False),
        sa.Column("actor_role", sa.String(length=50), nullable=True),
        sa.Column("actor_email", sa.String(length=255), nullable=True),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("entity_name", sa.String(length=255), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        _ts("created_at", nullable=False, server_default=True),
    )
    op.create_index("ix_audit_log_organization_id", "audit_log", ["organization_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("workflow_step")
    op.drop_table("workflow_definition")
    op.drop_table("approval_step")
    op.drop_table("leave_request")
    op.drop_table("approval_delegation")
    op.drop_table("acting_appointment")
    op.drop_table("staff_member")
