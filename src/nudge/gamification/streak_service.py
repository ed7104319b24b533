"""Profile streak aggregates.

``apply_session_to_profile`` is the only writer of the cached streak,
longest streak, total minutes and last study date on a profile.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.db.models import Profile, StudySession
from nudge.gamification.streak_engine import StreakSummary, compute_streaks, distinct_study_dates, increment_streak

logger = logging.getLogger(__name__)


def apply_session_to_profile(profile: Profile, minutes: int, session_date: date) -> Profile:
    """Fold one new session into the profile's cached aggregates. Caller commits."""
    profile.streak = increment_streak(profile.last_study_date, profile.streak or 0, session_date)
    profile.longest_streak = max(profile.longest_streak or 0, profile.streak)
    profile.total_minutes = (profile.total_minutes or 0) + minutes
    if profile.last_study_date is None or session_date > profile.last_study_date:
        profile.last_study_date = session_date
    profile.updated_at = datetime.now(timezone.utc)
    return profile


async def session_dates_for_user(db: AsyncSession, user_id: str) -> list[date]:
    result = await db.execute(select(StudySession.completed_at).where(StudySession.user_id == user_id))
    return distinct_study_dates(result.scalars())


async def session_dates_for_class(db: AsyncSession, class_id: str) -> list[date]:
    result = await db.execute(select(StudySession.completed_at).where(StudySession.class_id == class_id))
    return distinct_study_dates(result.scalars())


async def recompute_user_streaks(db: AsyncSession, user_id: str, today: date | None = None) -> StreakSummary:
    """Rebuild a profile's streak fields from its sessions and persist them."""
    summary = compute_streaks(await session_dates_for_user(db, user_id), today)

    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if profile is not None:
        profile.streak = summary.current
        profile.longest_streak = max(profile.longest_streak or 0, summary.longest)
        profile.last_study_date = summary.last_study_date
        profile.updated_at = datetime.now(timezone.utc)
        await db.commit()
        logger.info("Recomputed streaks for %s: current=%d longest=%d", user_id, summary.current, summary.longest)
    return summary


async def class_streaks(db: AsyncSession, class_id: str, today: date | None = None) -> StreakSummary:
    """Per-class streak computed from scratch. Read-only."""
    return compute_streaks(await session_dates_for_class(db, class_id), today)
