"""Pin comments and profile fields

Revision ID: 7e2b5c91d4f0
Revises: 4c1e7d20b9a3
Create Date: 2026-10-19 15:40:07.512360

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '7e2b5c91d4f0'
down_revision: str | Sequence[str] | None = '4c1e7d20b9a3'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column("users", sa.Column("location", sa.String(100), nullable=True))
    op.add_column("users", sa.Column("interests", postgresql.JSONB, nullable=True))

    op.create_table(
        "pin_comments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "pin_id", sa.String(36),
            sa.ForeignKey("pins.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "user_id", sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("content", sa.String(1000), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=True,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_pin_comments_pin_created", "pin_comments", ["pin_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_pin_comments_pin_created", table_name="pin_comments")
    op.drop_table("pin_comments")
    op.drop_column("users", "interests")
    op.drop_column("users", "location")
