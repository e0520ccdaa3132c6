"""Initial schema: organizations, accounts, deals.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_STAGES = (
    "build_proposal",
    "pitch_proposal",
    "negotiation",
    "awaiting_signoff",
    "signed",
    "cancelled",
    "lost",
)


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_accounts_organization_id", "accounts", ["organization_id"])

    op.create_table(
        "deals",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("year_of_creation", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ({})".format(", ".join(f"'{s}'" for s in _STAGES)),
            name="ck_deals_status",
        ),
        sa.CheckConstraint("value >= 0", name="ck_deals_value_non_negative"),
    )
    op.create_index("ix_deals_account_id", "deals", ["account_id"])


def downgrade() -> None:
    op.drop_index("ix_deals_account_id", table_name="deals")
    op.drop_table("deals")
    op.drop_index("ix_accounts_organization_id", table_name="accounts")
    op.drop_table("accounts")
    op.drop_table("organizations")
