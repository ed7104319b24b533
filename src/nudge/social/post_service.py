"""Posting a Nudge: one study session plus its feed post."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.classes.progress import ClassProgress
from nudge.classes.service import apply_session_to_class, get_class
from nudge.db.models import ClassCompletionCelebration, FeedPost, StudySession
from nudge.errors import ValidationError
from nudge.gamification.streak_service import apply_session_to_profile
from nudge.schedule.time_buckets import local_date
from nudge.social.realtime import publish_class_completed
from nudge.users.service import get_profile

logger = logging.getLogger(__name__)

DEFAULT_CAPTION = "Locked in! 🔥"
VISIBILITIES = frozenset({"friends", "public", "private"})


@dataclass
class NudgeResult:
    session: StudySession
    post: FeedPost
    progress: ClassProgress
    profile_streak: int | None
    celebration: ClassCompletionCelebration | None = None


async def post_nudge(
    db: AsyncSession,
    user_id: str,
    *,
    class_id: str | None,
    minutes_studied: int,
    photo_url: str = "",
    front_photo_url: str | None = None,
    back_photo_url: str | None = None,
    timelapse_url: str | None = None,
    caption: str | None = None,
    visibility: str = "friends",
    assignment_id: str | None = None,
    block_id: str | None = None,
    target_minutes: int | None = None,
    completed_at: datetime | None = None,
    redis: aioredis.Redis | None = None,
) -> NudgeResult:
    """Record a completed session and publish it to the feed.

    Validation happens before any write. Session and post are inserted
    first, then the class and profile aggregates are updated, all in one
    transaction. A class that reaches 100% for the first time is announced
    to the owner's open connections once the commit succeeds.
    """
    if not class_id:
        raise ValidationError("Please select a class")
    if minutes_studied <= 0:
        raise ValidationError("Minutes studied must be positive")
    if visibility not in VISIBILITIES:
        raise ValidationError(f"Visibility must be one of: {', '.join(sorted(VISIBILITIES))}")

    study_class = await get_class(db, user_id, class_id)

    if completed_at is None:
        completed_at = datetime.now(timezone.utc)
    session = StudySession(
        user_id=user_id,
        class_id=class_id,
        assignment_id=assignment_id,
        block_id=block_id,
        minutes_studied=minutes_studied,
        target_minutes=target_minutes,
        started_at=completed_at - timedelta(minutes=minutes_studied),
        completed_at=completed_at,
        photo_url=photo_url or None,
        front_photo_url=front_photo_url,
        back_photo_url=back_photo_url,
        timelapse_url=timelapse_url,
    )
    db.add(session)
    await db.flush()

    post = FeedPost(
        user_id=user_id,
        session_id=session.id,
        class_id=class_id,
        photo_url=photo_url or front_photo_url or "",
        front_photo_url=front_photo_url,
        back_photo_url=back_photo_url,
        timelapse_url=timelapse_url,
        minutes_studied=minutes_studied,
        caption=caption if caption is not None else DEFAULT_CAPTION,
        visibility=visibility,
        created_at=completed_at,
    )
    db.add(post)
    await db.flush()

    session_date = local_date(completed_at)
    progress, celebration = await apply_session_to_class(db, study_class, session_date)

    profile = await get_profile(db, user_id)
    if profile is not None:
        apply_session_to_profile(profile, minutes_studied, session_date)

    await db.commit()
    logger.info("User %s posted a %d-minute nudge for class %s", user_id, minutes_studied, class_id)

    if celebration is not None:
        await publish_class_completed(redis, user_id, study_class.id, study_class.name, celebration.id)
    return NudgeResult(session, post, progress, profile.streak if profile else None, celebration)
