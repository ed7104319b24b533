"""Profile endpoints for the signed-in user."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.auth.dependencies import CurrentUser, get_current_user
from nudge.database import get_session
from nudge.db.models import Profile
from nudge.gamification.streak_engine import effective_streak
from nudge.schedule.time_buckets import format_minutes
from nudge.users.schemas import CreateProfileRequest, ProfileResponse, TimePreferencesRequest, UpdateProfileRequest
from nudge.users.service import (
    create_profile,
    initial_for,
    require_profile,
    update_profile,
    update_time_preferences,
)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def profile_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        user_id=profile.user_id,
        username=profile.username,
        display_name=profile.display_name,
        initial=initial_for(profile.display_name),
        bio=profile.bio,
        photo_url=profile.photo_url,
        streak=effective_streak(profile.streak, profile.last_study_date),
        longest_streak=profile.longest_streak,
        total_minutes=profile.total_minutes,
        total_time_label=format_minutes(profile.total_minutes),
        last_study_date=profile.last_study_date,
        weekday_study_range=profile.weekday_study_range,
        weekend_study_range=profile.weekend_study_range,
        earliest_study_time=profile.earliest_study_time,
        latest_study_time=profile.latest_study_time,
    )


@router.post("/me", response_model=ProfileResponse, status_code=201)
async def create_my_profile(
    body: CreateProfileRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Account setup: claim a username. 409 if taken."""
    profile = await create_profile(db, user.id, body.username, body.display_name, email=user.email)
    return profile_response(profile)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return profile_response(await require_profile(db, user.id))


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    body: UpdateProfileRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    profile = await update_profile(
        db, user.id, display_name=body.display_name, bio=body.bio, photo_url=body.photo_url
    )
    return profile_response(profile)


@router.put("/me/time-preferences", response_model=ProfileResponse)
async def set_time_preferences(
    body: TimePreferencesRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    profile = await update_time_preferences(
        db,
        user.id,
        weekday_study_range=body.weekday_study_range,
        weekend_study_range=body.weekend_study_range,
        earliest_study_time=body.earliest_study_time,
        latest_study_time=body.latest_study_time,
    )
    return profile_response(profile)
