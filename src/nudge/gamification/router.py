"""Streak endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.auth.dependencies import CurrentUser, get_current_user
from nudge.classes.service import get_class
from nudge.database import get_session
from nudge.gamification.schemas import StreakResponse
from nudge.gamification.streak_engine import compute_streaks
from nudge.gamification.streak_service import class_streaks, recompute_user_streaks, session_dates_for_user
from nudge.schedule.time_buckets import local_today

router = APIRouter(prefix="/api/v1", tags=["Streaks"])


@router.get("/users/me/streak", response_model=StreakResponse)
async def get_my_streak(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Streak computed from scratch over every session, with recent study dates."""
    today = local_today()
    dates = await session_dates_for_user(db, user.id)
    summary = compute_streaks(dates, today)
    return StreakResponse(
        current_streak=summary.current,
        longest_streak=summary.longest,
        last_study_date=summary.last_study_date,
        studied_today=summary.last_study_date == today,
        study_dates=dates[:31],
    )


@router.post("/users/me/streak/recompute", response_model=StreakResponse)
async def recompute_my_streak(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Rewrite the cached profile streak from sessions."""
    today = local_today()
    summary = await recompute_user_streaks(db, user.id, today)
    return StreakResponse(
        current_streak=summary.current,
        longest_streak=summary.longest,
        last_study_date=summary.last_study_date,
        studied_today=summary.last_study_date == today,
    )


@router.get("/classes/{class_id}/streak", response_model=StreakResponse)
async def get_class_streak(
    class_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await get_class(db, user.id, class_id)
    today = local_today()
    summary = await class_streaks(db, class_id, today)
    return StreakResponse(
        current_streak=summary.current,
        longest_streak=summary.longest,
        last_study_date=summary.last_study_date,
        studied_today=summary.last_study_date == today,
    )
