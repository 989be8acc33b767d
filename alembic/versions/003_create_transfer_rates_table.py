"""create transfer_rates table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    ratescope = sa.Enum("global", "country", "corridor", name="ratescope")
    ratescope.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "transfer_rates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("scope", ratescope, nullable=False),
        sa.Column(
            "country_id", sa.Integer(),
            sa.ForeignKey("countries.id"), index=True, nullable=True,
        ),
        sa.Column(
            "sender_country_id", sa.Integer(),
            sa.ForeignKey("countries.id"), nullable=True,
        ),
        sa.Column(
            "receiver_country_id", sa.Integer(),
            sa.ForeignKey("countries.id"), nullable=True,
        ),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("base_fee", sa.Numeric(18, 2), server_default="0", nullable=False),
        sa.Column("percentage_fee", sa.Numeric(5, 2), server_default="0", nullable=False),
        sa.Column("min_amount", sa.Numeric(18, 2), server_default="0", nullable=False),
        sa.Column("max_amount", sa.Numeric(18, 2), nullable=True),
        sa.Column("exchange_rate_margin", sa.Numeric(5, 2), server_default="0", nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("is_default", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            server_default=sa.func.now(), nullable=False,
        ),
        sa.CheckConstraint("base_fee >= 0", name="ck_transfer_rates_base_fee"),
        sa.CheckConstraint("percentage_fee >= 0", name="ck_transfer_rates_percentage_fee"),
        sa.CheckConstraint("exchange_rate_margin >= 0", name="ck_transfer_rates_margin"),
        sa.CheckConstraint(
            "max_amount IS NULL OR max_amount >= min_amount",
            name="ck_transfer_rates_bounds",
        ),
    )

    # Corridor lookups filter on both ends
    op.create_index(
        "ix_transfer_rates_corridor",
        "transfer_rates",
        ["sender_country_id", "receiver_country_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_transfer_rates_corridor", table_name="transfer_rates")
    op.drop_table("transfer_rates")
    sa.Enum(name="ratescope").drop(op.get_bind(), checkfirst=True)
