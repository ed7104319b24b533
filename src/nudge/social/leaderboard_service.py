"""Leaderboard over cached profile aggregates."""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.db.models import Profile
from nudge.schedule.time_buckets import local_today
from nudge.social.friendship_service import get_friend_set


class LeaderboardMetric(str, Enum):
    STREAK = "streak"
    TOTAL_MINUTES = "total_minutes"


async def get_leaderboard(
    db: AsyncSession,
    metric: LeaderboardMetric = LeaderboardMetric.STREAK,
    *,
    viewer_id: str | None = None,
    friends_only: bool = False,
    limit: int = 50,
    today: date | None = None,
) -> list[dict]:
    """Top profiles by streak or total minutes, descending, ties by username.

    Streaks are ranked on the displayed value: a cached streak whose last
    study date is older than yesterday counts as 0.
    """
    if metric is LeaderboardMetric.STREAK:
        if today is None:
            today = local_today()
        value = case((Profile.last_study_date >= today - timedelta(days=1), Profile.streak), else_=0)
    else:
        value = Profile.total_minutes

    stmt = select(Profile, value.label("value"))
    if friends_only and viewer_id is not None:
        stmt = stmt.where(Profile.user_id.in_(await get_friend_set(db, viewer_id)))
    result = await db.execute(stmt.order_by(value.desc(), Profile.username).limit(limit))

    return [
        {
            "rank": i,
            "user_id": p.user_id,
            "username": p.username,
            "display_name": p.display_name,
            "photo_url": p.photo_url,
            "value": int(score),
            "is_viewer": p.user_id == viewer_id,
        }
        for i, (p, score) in enumerate(result.all(), 1)
    ]
