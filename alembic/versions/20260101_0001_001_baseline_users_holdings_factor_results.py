"""baseline: users, holdings, factor analysis results

Revision ID: 001_baseline
Revises:
Create Date: 2026-01-01 00:01:00.000000+00:00

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001_baseline"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the account, holding and factor result tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="USER"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("role IN ('USER', 'ADMIN')", name="ck_users_role"),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "holdings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("ticker", sa.String(length=10), nullable=False),
        sa.Column("quantity", sa.Numeric(precision=19, scale=6), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_holdings_quantity_positive"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_holdings_user_id_users", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_holdings"),
        sa.UniqueConstraint("user_id", "ticker", name="uq_holdings_user_ticker"),
    )
    op.create_index("idx_holdings_user", "holdings", ["user_id"])

    op.create_table(
        "factor_analysis_results",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("analysis_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("alpha", sa.Numeric(precision=19, scale=10), nullable=False),
        sa.Column("beta_mkt", sa.Numeric(precision=19, scale=10), nullable=False),
        sa.Column("beta_smb", sa.Numeric(precision=19, scale=10), nullable=False),
        sa.Column("beta_hml", sa.Numeric(precision=19, scale=10), nullable=False),
        sa.Column("beta_rmw", sa.Numeric(precision=19, scale=10), nullable=False),
        sa.Column("beta_cma", sa.Numeric(precision=19, scale=10), nullable=False),
        sa.Column("r_squared", sa.Numeric(precision=10, scale=6), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_factor_analysis_results_user_id_users",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_factor_analysis_results"),
    )
    op.create_index("idx_results_user", "factor_analysis_results", ["user_id"])
    op.create_index(
        "idx_results_user_date", "factor_analysis_results", ["user_id", "analysis_date"]
    )


def downgrade() -> None:
    op.drop_index("idx_results_user_date", table_name="factor_analysis_results")
    op.drop_index("idx_results_user", table_name="factor_analysis_results")
    op.drop_table("factor_analysis_results")
    op.drop_index("idx_holdings_user", table_name="holdings")
    op.drop_table("holdings")
    op.drop_table("users")
