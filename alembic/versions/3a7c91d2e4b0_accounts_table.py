"""Accounts table

Revision ID: 3a7c91d2e4b0
Revises:
Create Date: 2026-10-18 10:02:11.504318

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3a7c91d2e4b0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "accounts",
        sa.Column(
            "id", sa.Integer(), nullable=False, primary_key=True, autoincrement=True
        ),
        sa.Column("name", sa.Text(), nullable=False, unique=True),
        sa.Column("password", sa.Text(), nullable=False),
        sa.Column("type", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("premdays", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("lastday", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("email", sa.Text(), nullable=False, server_default=""),
        sa.Column("creation", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("type BETWEEN 1 AND 5", name="check_account_type"),
        sa.CheckConstraint(
            "premdays BETWEEN 0 AND 65535", name="check_account_premdays"
        ),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("accounts")
