"""
travelboard.database.models — SQLAlchemy 2.0 Data Models
=========================================================

Tables:
- users                    — Identity records keyed by the external session id
- boards                   — User-owned pin collections
- board_members            — (user, board) → role, one row per pair
- pins / pin_images        — Location content and its media
- tags / pin_tags          — Global tag vocabulary and pin links
- board_pin_relations      — Ordered pins within a board
- timeline_days            — Day-indexed itinerary groupings
- timeline_pin_assignments — Ordered pins within a timeline day
- board_comments           — Threaded board discussion
- pin_comments             — Flat discussion under a pin
- board_activity_log       — Append-only board audit trail
- pin_likes, board_likes, pin_saves, board_saves, board_follows,
  user_follows, comment_reactions
                           — Toggle relations: row presence *is* the state
- pin_reports              — At most one report per (user, pin)
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all travelboard ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class Visibility(enum.StrEnum):
    PRIVATE = "PRIVATE"
    PUBLIC = "PUBLIC"
    SHARED = "SHARED"


class Role(enum.StrEnum):
    """Membership roles.  OWNER is reserved for the board's ``owner_id``."""
    OWNER = "OWNER"
    CO_ADMIN = "CO_ADMIN"
    CAN_ADD_PINS = "CAN_ADD_PINS"
    VIEWER = "VIEWER"


class BoardCategory(enum.StrEnum):
    DREAM = "DREAM"
    PLANNING = "PLANNING"
    COMPLETED = "COMPLETED"


class TripCategory(enum.StrEnum):
    BACKPACKING = "BACKPACKING"
    LUXURY = "LUXURY"
    SOLO = "SOLO"
    GROUP = "GROUP"
    COUPLES = "COUPLES"
    NATURE = "NATURE"
    CITY = "CITY"
    FOOD = "FOOD"
    FESTIVALS = "FESTIVALS"
    HIDDEN_GEMS = "HIDDEN_GEMS"


class LayoutMode(enum.StrEnum):
    MASONRY = "MASONRY"
    GRID = "GRID"
    TIMELINE = "TIMELINE"
    MAP = "MAP"


class ThemeColor(enum.StrEnum):
    TRAVEL_BLUE = "TRAVEL_BLUE"
    EXPLORER_TEAL = "EXPLORER_TEAL"
    CORAL_ADVENTURE = "CORAL_ADVENTURE"
    GOLD_LUXURY = "GOLD_LUXURY"
    MINIMAL_SLATE = "MINIMAL_SLATE"


class CostLevel(enum.StrEnum):
    FREE = "FREE"
    BUDGET = "BUDGET"
    MODERATE = "MODERATE"
    LUXURY = "LUXURY"


class ActivityType(enum.StrEnum):
    """Board mutations recorded in board_activity_log."""
    CREATED = "CREATED"
    SETTINGS_UPDATED = "SETTINGS_UPDATED"
    BOARD_ARCHIVED = "BOARD_ARCHIVED"
    BOARD_RESTORED = "BOARD_RESTORED"
    PIN_ADDED = "PIN_ADDED"
    PIN_REMOVED = "PIN_REMOVED"
    MEMBER_ADDED = "MEMBER_ADDED"
    MEMBER_ROLE_CHANGED = "MEMBER_ROLE_CHANGED"
    MEMBER_REMOVED = "MEMBER_REMOVED"
    OWNERSHIP_TRANSFERRED = "OWNERSHIP_TRANSFERRED"
    COMMENT_ADDED = "COMMENT_ADDED"


# ---------------------------------------------------------------------------
# Users — lazily provisioned from the identity provider
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    external_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    first_name: Mapped[str | None] = mapped_column(String(100), default=None)
    last_name: Mapped[str | None] = mapped_column(String(100), default=None)
    image_url: Mapped[str | None] = mapped_column(Text, default=None)
    bio: Mapped[str | None] = mapped_column(String(500), default=None)
    location: Mapped[str | None] = mapped_column(String(100), default=None)
    interests: Mapped[list | None] = mapped_column(JSONB, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------
class Board(Base):
    __tablename__ = "boards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), default=None)
    subtitle: Mapped[str | None] = mapped_column(String(100), default=None)
    category: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BoardCategory.DREAM.value
    )
    trip_category: Mapped[str | None] = mapped_column(String(20), default=None)
    visibility: Mapped[str] = mapped_column(
        String(10), nullable=False, default=Visibility.PRIVATE.value
    )
    layout_mode: Mapped[str] = mapped_column(
        String(10), nullable=False, default=LayoutMode.MASONRY.value
    )
    theme_color: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ThemeColor.TRAVEL_BLUE.value
    )
    cover_image: Mapped[str | None] = mapped_column(Text, default=None)
    auto_gen_cover: Mapped[bool] = mapped_column(Boolean, default=True)
    hashtags: Mapped[list | None] = mapped_column(JSONB, default=list)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(),
        onupdate=_utcnow,
    )

    owner: Mapped[User] = relationship()

    # Everything below goes with the board
    members: Mapped[list[BoardMember]] = relationship(
        back_populates="board", cascade="all, delete-orphan"
    )
    pin_relations: Mapped[list[BoardPinRelation]] = relationship(
        back_populates="board", cascade="all, delete-orphan",
        order_by="BoardPinRelation.order",
    )
    timeline_days: Mapped[list[TimelineDay]] = relationship(
        back_populates="board", cascade="all, delete-orphan",
        order_by="TimelineDay.day_number",
    )
    activity_logs: Mapped[list[BoardActivityLog]] = relationship(
        back_populates="board", cascade="all, delete-orphan"
    )
    comments: Mapped[list[BoardComment]] = relationship(
        back_populates="board", cascade="all, delete-orphan"
    )
    likes: Mapped[list[BoardLike]] = relationship(cascade="all, delete-orphan")
    saves: Mapped[list[BoardSave]] = relationship(cascade="all, delete-orphan")
    follows: Mapped[list[BoardFollow]] = relationship(cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_boards_owner_created", "owner_id", "created_at"),
        Index("ix_boards_visibility", "visibility"),
    )

    def __repr__(self) -> str:
        return f"<Board id={self.id} name={self.name!r} owner={self.owner_id}>"


class BoardMember(Base):
    __tablename__ = "board_members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=Role.VIEWER.value
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    board: Mapped[Board] = relationship(back_populates="members")
    user: Mapped[User] = relationship()

    __table_args__ = (
        UniqueConstraint("user_id", "board_id", name="uq_board_members_user_board"),
    )

    def __repr__(self) -> str:
        return f"<BoardMember board={self.board_id} user={self.user_id} role={self.role}>"


# ---------------------------------------------------------------------------
# Pins, media and tags
# ---------------------------------------------------------------------------
class Pin(Base):
    __tablename__ = "pins"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000), default=None)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, default=None)
    longitude: Mapped[float | None] = mapped_column(Float, default=None)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    cost_level: Mapped[str | None] = mapped_column(String(10), default=None)
    best_time_to_visit: Mapped[str | None] = mapped_column(String(100), default=None)
    user_notes: Mapped[str | None] = mapped_column(String(1000), default=None)
    is_visited: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    user: Mapped[User] = relationship()
    images: Mapped[list[PinImage]] = relationship(
        back_populates="pin", cascade="all, delete-orphan", order_by="PinImage.order"
    )
    tag_links: Mapped[list[PinTag]] = relationship(
        back_populates="pin", cascade="all, delete-orphan"
    )

    # Removed together with the pin
    board_relations: Mapped[list[BoardPinRelation]] = relationship(
        back_populates="pin", cascade="all, delete-orphan"
    )
    day_assignments: Mapped[list[TimelinePinAssignment]] = relationship(
        back_populates="pin", cascade="all, delete-orphan"
    )
    likes: Mapped[list[PinLike]] = relationship(cascade="all, delete-orphan")
    saves: Mapped[list[PinSave]] = relationship(cascade="all, delete-orphan")
    reports: Mapped[list[PinReport]] = relationship(cascade="all, delete-orphan")
    comments: Mapped[list[PinComment]] = relationship(
        back_populates="pin", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_pins_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Pin id={self.id} title={self.title!r}>"


class PinImage(Base):
    __tablename__ = "pin_images"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    pin_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pins.id", ondelete="CASCADE"), nullable=False
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    pin: Mapped[Pin] = relationship(back_populates="images")


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    pin_links: Mapped[list[PinTag]] = relationship(back_populates="tag")

    def __repr__(self) -> str:
        return f"<Tag name={self.name!r}>"


class PinTag(Base):
    __tablename__ = "pin_tags"

    pin_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pins.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )

    pin: Mapped[Pin] = relationship(back_populates="tag_links")
    tag: Mapped[Tag] = relationship(back_populates="pin_links")


# ---------------------------------------------------------------------------
# Ordered collections
# ---------------------------------------------------------------------------
class BoardPinRelation(Base):
    """A pin placed on a board.  ``order`` is a comparison key, gaps allowed."""

    __tablename__ = "board_pin_relations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    pin_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pins.id", ondelete="CASCADE"), nullable=False
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    board_notes: Mapped[str | None] = mapped_column(Text, default=None)
    relevance: Mapped[str | None] = mapped_column(String(100), default=None)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    board: Mapped[Board] = relationship(back_populates="pin_relations")
    pin: Mapped[Pin] = relationship(back_populates="board_relations")

    __table_args__ = (
        Index("ix_board_pin_relations_board_order", "board_id", "order"),
    )

    def __repr__(self) -> str:
        return f"<BoardPinRelation board={self.board_id} pin={self.pin_id} order={self.order}>"


class TimelineDay(Base):
    __tablename__ = "timeline_days"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str | None] = mapped_column(String(200), default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    board: Mapped[Board] = relationship(back_populates="timeline_days")
    assignments: Mapped[list[TimelinePinAssignment]] = relationship(
        back_populates="day", cascade="all, delete-orphan",
        order_by="TimelinePinAssignment.order",
    )

    __table_args__ = (
        UniqueConstraint("board_id", "day_number", name="uq_timeline_days_board_number"),
    )

    def __repr__(self) -> str:
        return f"<TimelineDay board={self.board_id} day={self.day_number}>"


class TimelinePinAssignment(Base):
    __tablename__ = "timeline_pin_assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    day_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("timeline_days.id", ondelete="CASCADE"), nullable=False
    )
    pin_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pins.id", ondelete="CASCADE"), nullable=False
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, default=None)

    day: Mapped[TimelineDay] = relationship(back_populates="assignments")
    pin: Mapped[Pin] = relationship(back_populates="day_assignments")

    __table_args__ = (
        UniqueConstraint("day_id", "pin_id", name="uq_timeline_assignments_day_pin"),
    )


# ---------------------------------------------------------------------------
# Discussion
# ---------------------------------------------------------------------------
class BoardComment(Base):
    __tablename__ = "board_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    parent_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("board_comments.id", ondelete="CASCADE"), default=None
    )
    content: Mapped[str] = mapped_column(String(500), nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    board: Mapped[Board] = relationship(back_populates="comments")
    user: Mapped[User] = relationship()
    parent: Mapped[BoardComment | None] = relationship(
        back_populates="replies", remote_side="BoardComment.id"
    )
    replies: Mapped[list[BoardComment]] = relationship(
        back_populates="parent", cascade="all, delete-orphan",
        order_by="BoardComment.created_at",
    )
    reactions: Mapped[list[CommentReaction]] = relationship(
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_board_comments_board_created", "board_id", "created_at"),
    )


class PinComment(Base):
    __tablename__ = "pin_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    pin_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pins.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(String(1000), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    pin: Mapped[Pin] = relationship(back_populates="comments")
    user: Mapped[User] = relationship()

    __table_args__ = (
        Index("ix_pin_comments_pin_created", "pin_id", "created_at"),
    )


# ---------------------------------------------------------------------------
# BoardActivityLog — append-only audit trail
# ---------------------------------------------------------------------------
class BoardActivityLog(Base):
    __tablename__ = "board_activity_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    activity_type: Mapped[str] = mapped_column(String(30), nullable=False)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    board: Mapped[Board] = relationship(back_populates="activity_logs")
    user: Mapped[User] = relationship()

    __table_args__ = (
        Index("ix_board_activity_board_time", "board_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<BoardActivityLog id={self.id} board={self.board_id} type={self.activity_type}>"


# ---------------------------------------------------------------------------
# Toggle relations — presence of the row is the "on" state
# ---------------------------------------------------------------------------
class PinLike(Base):
    __tablename__ = "pin_likes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    pin_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pins.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "pin_id", name="uq_pin_likes_user_pin"),
    )


class BoardLike(Base):
    __tablename__ = "board_likes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "board_id", name="uq_board_likes_user_board"),
    )


class PinSave(Base):
    __tablename__ = "pin_saves"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    pin_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pins.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "pin_id", name="uq_pin_saves_user_pin"),
    )


class BoardSave(Base):
    __tablename__ = "board_saves"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "board_id", name="uq_board_saves_user_board"),
    )


class BoardFollow(Base):
    __tablename__ = "board_follows"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "board_id", name="uq_board_follows_user_board"),
    )


class UserFollow(Base):
    __tablename__ = "user_follows"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    follower_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    following_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_user_follows_pair"),
    )


class CommentReaction(Base):
    __tablename__ = "comment_reactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    comment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("board_comments.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    emoji: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "comment_id", "user_id", "emoji", name="uq_comment_reactions_key"
        ),
    )


class PinReport(Base):
    """One report per (user, pin).  Not a toggle: a second report is a no-op."""

    __tablename__ = "pin_reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    pin_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pins.id", ondelete="CASCADE"), nullable=False
    )
    reason: Mapped[str | None] = mapped_column(String(500), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "pin_id", name="uq_pin_reports_user_pin"),
    )
