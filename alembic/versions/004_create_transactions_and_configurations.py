"""create transactions and configurations tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "004"
down_revision = "003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    transactionstatus = sa.Enum(
        "pending", "paid", "approved", "completed", "failed", "cancelled",
        name="transactionstatus",
    )
    transactionstatus.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("reference", sa.String(16), unique=True, index=True, nullable=False),
        sa.Column(
            "sender_country_id", sa.Integer(),
            sa.ForeignKey("countries.id"), nullable=False,
        ),
        sa.Column(
            "receiver_country_id", sa.Integer(),
            sa.ForeignKey("countries.id"), nullable=False,
        ),
        sa.Column(
            "payment_method_id", sa.Integer(),
            sa.ForeignKey("payment_methods.id"), nullable=False,
        ),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("sender_currency", sa.String(3), nullable=False),
        sa.Column("receiver_currency", sa.String(3), nullable=False),
        sa.Column("total_fees", sa.Numeric(18, 2), nullable=False),
        sa.Column("amount_after_fees", sa.Numeric(18, 2), nullable=False),
        sa.Column("applied_rate", sa.Numeric(18, 6), nullable=False),
        sa.Column("received_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("fee_breakdown", sa.JSON(), nullable=False),
        sa.Column("admin_notes", sa.JSON(), nullable=True),
        sa.Column("status", transactionstatus, server_default="pending", nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )

    configtype = sa.Enum("string", "number", "boolean", "json", name="configtype")
    configtype.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "configurations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("key", sa.String(100), unique=True, index=True, nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("type", configtype, server_default="string", nullable=False),
        sa.Column("encrypted", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("category", sa.String(50), server_default="general", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
    )


def downgrade() -> None:
    op.drop_table("configurations")
    sa.Enum(name="configtype").drop(op.get_bind(), checkfirst=True)
    op.drop_table("transactions")
    sa.Enum(name="transactionstatus").drop(op.get_bind(), checkfirst=True)
