"""Initial travelboard schema

Revision ID: 4c1e7d20b9a3
Revises:
Create Date: 2026-10-19 09:12:41.208113

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '4c1e7d20b9a3'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _fk(name: str, target: str, *, nullable: bool = False, primary_key: bool = False):
    return sa.Column(
        name, sa.String(36),
        sa.ForeignKey(target, ondelete="CASCADE"),
        nullable=nullable, primary_key=primary_key,
    )


def _created(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name, sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()
    )


def _toggle_table(name: str, actor: str, target: str, target_table: str, constraint: str):
    op.create_table(
        name,
        _id(),
        _fk(actor, "users.id"),
        _fk(target, f"{target_table}.id"),
        _created(),
        sa.UniqueConstraint(actor, target, name=constraint),
    )


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        _id(),
        sa.Column("external_id", sa.String(255), nullable=False, unique=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("email", sa.String(255)),
        sa.Column("first_name", sa.String(100)),
        sa.Column("last_name", sa.String(100)),
        sa.Column("image_url", sa.Text),
        sa.Column("bio", sa.String(500)),
        _created(),
    )

    # --- boards & membership ---
    op.create_table(
        "boards",
        _id(),
        _fk("owner_id", "users.id"),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500)),
        sa.Column("subtitle", sa.String(100)),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("trip_category", sa.String(20)),
        sa.Column("visibility", sa.String(10), nullable=False),
        sa.Column("layout_mode", sa.String(10), nullable=False),
        sa.Column("theme_color", sa.String(20), nullable=False),
        sa.Column("cover_image", sa.Text),
        sa.Column("auto_gen_cover", sa.Boolean),
        sa.Column("hashtags", postgresql.JSONB),
        sa.Column("is_archived", sa.Boolean),
        _created(),
        _created("updated_at"),
    )
    op.create_index("ix_boards_owner_created", "boards", ["owner_id", "created_at"])
    op.create_index("ix_boards_visibility", "boards", ["visibility"])

    op.create_table(
        "board_members",
        _id(),
        _fk("board_id", "boards.id"),
        _fk("user_id", "users.id"),
        sa.Column("role", sa.String(20), nullable=False),
        _created("joined_at"),
        sa.UniqueConstraint("user_id", "board_id", name="uq_board_members_user_board"),
    )

    # --- pins, media, tags ---
    op.create_table(
        "pins",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.String(2000)),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("latitude", sa.Float),
        sa.Column("longitude", sa.Float),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("cost_level", sa.String(10)),
        sa.Column("best_time_to_visit", sa.String(100)),
        sa.Column("user_notes", sa.String(1000)),
        sa.Column("is_visited", sa.Boolean),
        _created(),
    )
    op.create_index("ix_pins_created", "pins", ["created_at"])

    op.create_table(
        "pin_images",
        _id(),
        _fk("pin_id", "pins.id"),
        sa.Column("url", sa.Text, nullable=False),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
    )

    op.create_table(
        "tags",
        _id(),
        sa.Column("name", sa.String(30), nullable=False, unique=True),
        _created(),
    )

    op.create_table(
        "pin_tags",
        _fk("pin_id", "pins.id", primary_key=True),
        _fk("tag_id", "tags.id", primary_key=True),
    )

    # --- ordered collections ---
    op.create_table(
        "board_pin_relations",
        _id(),
        _fk("board_id", "boards.id"),
        _fk("pin_id", "pins.id"),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("board_notes", sa.Text),
        sa.Column("relevance", sa.String(100)),
        _created("added_at"),
    )
    op.create_index(
        "ix_board_pin_relations_board_order", "board_pin_relations", ["board_id", "order"]
    )

    op.create_table(
        "timeline_days",
        _id(),
        _fk("board_id", "boards.id"),
        sa.Column("day_number", sa.Integer, nullable=False),
        sa.Column("title", sa.String(200)),
        sa.Column("notes", sa.Text),
        _created(),
        sa.UniqueConstraint("board_id", "day_number", name="uq_timeline_days_board_number"),
    )

    op.create_table(
        "timeline_pin_assignments",
        _id(),
        _fk("day_id", "timeline_days.id"),
        _fk("pin_id", "pins.id"),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("notes", sa.Text),
        sa.UniqueConstraint("day_id", "pin_id", name="uq_timeline_assignments_day_pin"),
    )

    # --- discussion & history ---
    op.create_table(
        "board_comments",
        _id(),
        _fk("board_id", "boards.id"),
        _fk("user_id", "users.id"),
        _fk("parent_id", "board_comments.id", nullable=True),
        sa.Column("content", sa.String(500), nullable=False),
        sa.Column("is_pinned", sa.Boolean),
        _created(),
    )
    op.create_index(
        "ix_board_comments_board_created", "board_comments", ["board_id", "created_at"]
    )

    op.create_table(
        "board_activity_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _fk("board_id", "boards.id"),
        _fk("user_id", "users.id"),
        sa.Column("activity_type", sa.String(30), nullable=False),
        sa.Column("metadata", postgresql.JSONB, nullable=True),
        _created("timestamp"),
    )
    op.create_index(
        "ix_board_activity_board_time", "board_activity_log", ["board_id", "timestamp"]
    )

    # --- toggle relations ---
    _toggle_table("pin_likes", "user_id", "pin_id", "pins", "uq_pin_likes_user_pin")
    _toggle_table("board_likes", "user_id", "board_id", "boards", "uq_board_likes_user_board")
    _toggle_table("pin_saves", "user_id", "pin_id", "pins", "uq_pin_saves_user_pin")
    _toggle_table("board_saves", "user_id", "board_id", "boards", "uq_board_saves_user_board")
    _toggle_table(
        "board_follows", "user_id", "board_id", "boards", "uq_board_follows_user_board"
    )
    _toggle_table(
        "user_follows", "follower_id", "following_id", "users", "uq_user_follows_pair"
    )

    op.create_table(
        "comment_reactions",
        _id(),
        _fk("comment_id", "board_comments.id"),
        _fk("user_id", "users.id"),
        sa.Column("emoji", sa.String(32), nullable=False),
        _created(),
        sa.UniqueConstraint("comment_id", "user_id", "emoji", name="uq_comment_reactions_key"),
    )

    op.create_table(
        "pin_reports",
        _id(),
        _fk("user_id", "users.id"),
        _fk("pin_id", "pins.id"),
        sa.Column("reason", sa.String(500)),
        _created(),
        sa.UniqueConstraint("user_id", "pin_id", name="uq_pin_reports_user_pin"),
    )


def downgrade() -> None:
    for table in (
        "pin_reports",
        "comment_reactions",
        "user_follows",
        "board_follows",
        "board_saves",
        "pin_saves",
        "board_likes",
        "pin_likes",
        "board_activity_log",
        "board_comments",
        "timeline_pin_assignments",
        "timeline_days",
        "board_pin_relations",
        "pin_tags",
        "tags",
        "pin_images",
        "pins",
        "board_members",
        "boards",
        "users",
    ):
        op.drop_table(table)
