"""ORM models for the Nudge schema.

Column names match the tables created by the Alembic migrations. Types are
kept portable (no PostgreSQL-only column types) so the same metadata can be
created on SQLite for tests.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, time

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nudge.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class Profile(Base):
    """Public profile and cached study aggregates for one auth user."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Cached aggregates, written only by the session-apply procedures
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_study_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Study-time preferences
    weekday_study_range: Mapped[str | None] = mapped_column(String(32), nullable=True)
    weekend_study_range: Mapped[str | None] = mapped_column(String(32), nullable=True)
    earliest_study_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    latest_study_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Classes & syllabus output
# ---------------------------------------------------------------------------


class StudyClass(Base):
    """A class the user is studying for. Maps to the 'classes' table."""

    __tablename__ = "classes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    syllabus_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_parsed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    difficulty: Mapped[str | None] = mapped_column(String(16), nullable=True)

    # Cached aggregates, written only by the session-apply procedure
    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_studied_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    estimated_total_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    estimated_remaining_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Rows go with the class through ON DELETE CASCADE
    topics: Mapped[list[SyllabusTopic]] = relationship(
        "SyllabusTopic", back_populates="study_class", cascade="all, delete-orphan", passive_deletes=True
    )
    assignments: Mapped[list[Assignment]] = relationship(
        "Assignment", back_populates="study_class", cascade="all, delete-orphan", passive_deletes=True
    )


class SyllabusTopic(Base):
    """A topic or lesson extracted from a syllabus."""

    __tablename__ = "syllabus_topics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    class_id: Mapped[str] = mapped_column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    estimated_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60, server_default="60")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    study_class: Mapped[StudyClass] = relationship("StudyClass", back_populates="topics")


class Assignment(Base):
    """An assignment extracted from a syllabus. Read-only outside the parser."""

    __tablename__ = "syllabus_assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    class_id: Mapped[str] = mapped_column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="reading", server_default="reading")
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    estimated_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60, server_default="60")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    study_class: Mapped[StudyClass] = relationship("StudyClass", back_populates="assignments")


class StudyBlock(Base):
    """A scheduled study recommendation. start_time NULL means all day."""

    __tablename__ = "study_blocks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    class_id: Mapped[str] = mapped_column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    assignment_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("syllabus_assignments.id", ondelete="SET NULL"), nullable=True
    )
    block_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    study_class: Mapped[StudyClass] = relationship("StudyClass")
    assignment: Mapped[Assignment | None] = relationship("Assignment")


# ---------------------------------------------------------------------------
# Sessions & feed
# ---------------------------------------------------------------------------


class StudySession(Base):
    """A completed Nudge. Source of truth for streaks and progress."""

    __tablename__ = "study_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    class_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    assignment_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    block_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    minutes_studied: Mapped[int] = mapped_column(Integer, nullable=False)
    target_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    front_photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    back_photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    timelapse_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class FeedPost(Base):
    """A proof-of-study post, created 1:1 alongside a StudySession."""

    __tablename__ = "feed_posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("study_sessions.id", ondelete="CASCADE"), nullable=False
    )
    class_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    photo_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    front_photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    back_photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    timelapse_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    minutes_studied: Mapped[int] = mapped_column(Integer, nullable=False)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    visibility: Mapped[str] = mapped_column(String(16), nullable=False, default="friends", server_default="friends")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=func.now())


class Reaction(Base):
    """An emoji reaction. At most one row per (post, user, emoji)."""

    __tablename__ = "reactions"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", "emoji", name="uq_reactions_post_user_emoji"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    post_id: Mapped[str] = mapped_column(String(36), ForeignKey("feed_posts.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    emoji: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Friendship(Base):
    """A single directed row; queried in both directions."""

    __tablename__ = "friendships"
    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friendships_user_friend"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    friend_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


# ---------------------------------------------------------------------------
# Commitments & celebrations
# ---------------------------------------------------------------------------


class PinkyPromise(Base):
    """A commitment to complete a StudyBlock: active -> completed | broken."""

    __tablename__ = "pinky_promises"
    __table_args__ = (
        UniqueConstraint("user_id", "block_id", "date", name="uq_pinky_promises_user_block_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    block_id: Mapped[str] = mapped_column(String(36), ForeignKey("study_blocks.id", ondelete="CASCADE"), nullable=False)
    promise_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active", server_default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    block: Mapped[StudyBlock] = relationship("StudyBlock")


class ClassCompletionCelebration(Base):
    """Tracks whether a user has seen the celebration for finishing a class."""

    __tablename__ = "class_completion_celebrations"
    __table_args__ = (
        UniqueConstraint("user_id", "class_id", name="uq_class_completion_user_class"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    class_id: Mapped[str] = mapped_column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    celebrated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    celebrated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    study_class: Mapped[StudyClass] = relationship("StudyClass")
