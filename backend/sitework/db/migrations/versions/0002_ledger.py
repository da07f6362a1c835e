"""ledger transactions

Revision ID: 0002_ledger
Revises: 0001_init
Create Date: 2026-03-09
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_ledger"
down_revision = "0001_init"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "ledger_transaction",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("site.id", ondelete="CASCADE"), nullable=False),
        sa.Column("phase_id", sa.Integer(), sa.ForeignKey("phase.id", ondelete="SET NULL"), nullable=True),
        sa.Column("type", sa.String(length=8), nullable=False),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("payment_method", sa.String(length=50), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("employee.id", ondelete="SET NULL"), nullable=True),
        sa.Column("budget_override", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.CheckConstraint("amount > 0", name="ck_ledger_amount_positive"),
    )
    op.create_index("ix_ledger_transaction_site_id", "ledger_transaction", ["site_id"])
    op.create_index("ix_ledger_transaction_date", "ledger_transaction", ["date"])
    op.create_index("ix_ledger_phase_type", "ledger_transaction", ["phase_id", "type"])


def downgrade():
    op.drop_table("ledger_transaction")
