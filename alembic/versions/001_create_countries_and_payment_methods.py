"""create countries and payment method tables

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "countries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(2), unique=True, index=True, nullable=False),
        sa.Column("currency_code", sa.String(3), nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
    )

    paymentmethodtype = sa.Enum(
        "BANK_TRANSFER", "MOBILE_MONEY", "FLUTTERWAVE", "CINETPAY", "CASH",
        name="paymentmethodtype",
    )
    paymentmethodtype.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "payment_methods",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", paymentmethodtype, nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
    )

    op.create_table(
        "country_payment_methods",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "country_id", sa.Integer(),
            sa.ForeignKey("countries.id"), index=True, nullable=False,
        ),
        sa.Column(
            "payment_method_id", sa.Integer(),
            sa.ForeignKey("payment_methods.id"), nullable=False,
        ),
        sa.Column("min_amount", sa.Numeric(18, 2), server_default="0", nullable=False),
        sa.Column("max_amount", sa.Numeric(18, 2), nullable=True),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.UniqueConstraint(
            "country_id", "payment_method_id", name="uq_country_payment_method",
        ),
    )


def downgrade() -> None:
    op.drop_table("country_payment_methods")
    op.drop_table("payment_methods")
    sa.Enum(name="paymentmethodtype").drop(op.get_bind(), checkfirst=True)
    op.drop_table("countries")
