"""create wallets and sub_wallets tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "wallets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "country_id", sa.Integer(),
            sa.ForeignKey("countries.id"), unique=True, nullable=False,
        ),
        sa.Column("balance", sa.Numeric(18, 2), server_default="0", nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
    )

    op.create_table(
        "sub_wallets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "wallet_id", sa.Integer(),
            sa.ForeignKey("wallets.id"), index=True, nullable=False,
        ),
        sa.Column(
            "country_payment_method_id", sa.Integer(),
            sa.ForeignKey("country_payment_methods.id"), nullable=False,
        ),
        sa.Column("balance", sa.Numeric(18, 2), server_default="0", nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("read_only", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
        sa.UniqueConstraint(
            "wallet_id", "country_payment_method_id", name="uq_sub_wallet_method",
        ),
        sa.CheckConstraint("balance >= 0", name="ck_sub_wallets_balance_non_negative"),
    )


def downgrade() -> None:
    op.drop_table("sub_wallets")
    op.drop_table("wallets")
