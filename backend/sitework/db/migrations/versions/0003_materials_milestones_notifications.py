"""material requests, milestones, notifications

Revision ID: 0003_materials_milestones_notifications
Revises: 0002_ledger
Create Date: 2026-03-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0003_materials_milestones_notifications"
down_revision = "0002_ledger"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "material_request",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("site.id", ondelete="CASCADE"), nullable=False),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("task.id", ondelete="SET NULL"), nullable=True),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False),
        sa.Column("material_name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.String(length=100), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Pending"),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_material_request_site_id", "material_request", ["site_id"])
    op.create_index("ix_material_request_task_id", "material_request", ["task_id"])
    op.create_index("ix_material_request_employee_id", "material_request", ["employee_id"])
    op.create_index("ix_material_request_status", "material_request", ["status"])

    op.create_table(
        "milestone",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("site.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Not Started"),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("planned_start_date", sa.Date(), nullable=True),
        sa.Column("planned_end_date", sa.Date(), nullable=True),
        sa.Column("actual_completion_date", sa.Date(), nullable=True),
        sa.Column("delay_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_milestone_site_id", "milestone", ["site_id"])

    op.add_column(
        "phase",
        sa.Column("milestone_id", sa.Integer(), sa.ForeignKey("milestone.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_phase_milestone_id", "phase", ["milestone_id"])

    op.create_table(
        "notification",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("site.id", ondelete="CASCADE"), nullable=True),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=True),
        sa.Column("phase_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_notification_project_id", "notification", ["project_id"])
    op.create_index("ix_notification_employee_id", "notification", ["employee_id"])


def downgrade():
    op.drop_table("notification")
    op.drop_index("ix_phase_milestone_id", table_name="phase")
    op.drop_column("phase", "milestone_id")
    op.drop_table("milestone")
    op.drop_table("material_request")
