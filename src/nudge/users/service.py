"""Profile lookups and study-time preferences."""

from __future__ import annotations

import logging
from datetime import datetime, time, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.db.models import Profile
from nudge.errors import AlreadyExistsError, NotFoundError

logger = logging.getLogger(__name__)

UNKNOWN_DISPLAY_NAME = "Unknown User"
UNKNOWN_USERNAME = "unknown"


def initial_for(name: str | None) -> str:
    """Avatar initial for a possibly missing name."""
    if not name or not name.strip():
        return "?"
    return name.strip()[0].upper()


def display_name_for(profile: Profile | None) -> str:
    if profile is None or not profile.display_name:
        return UNKNOWN_DISPLAY_NAME
    return profile.display_name


def username_for(profile: Profile | None) -> str:
    if profile is None or not profile.username:
        return UNKNOWN_USERNAME
    return profile.username


async def get_profile(db: AsyncSession, user_id: str) -> Profile | None:
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    return result.scalar_one_or_none()


async def require_profile(db: AsyncSession, user_id: str) -> Profile:
    profile = await get_profile(db, user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


async def get_profiles_batch(db: AsyncSession, user_ids: list[str]) -> dict[str, Profile]:
    """Batch-load profiles keyed by user id."""
    if not user_ids:
        return {}
    result = await db.execute(select(Profile).where(Profile.user_id.in_(user_ids)))
    return {p.user_id: p for p in result.scalars()}


async def create_profile(
    db: AsyncSession,
    user_id: str,
    username: str,
    display_name: str,
    email: str | None = None,
) -> Profile:
    """Create the caller's profile. Raises AlreadyExistsError on a taken username or a second profile."""
    profile = Profile(
        user_id=user_id,
        username=username.strip().lower(),
        display_name=display_name.strip(),
        email=email,
    )
    db.add(profile)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AlreadyExistsError("Profile or username already exists") from None
    await db.refresh(profile)
    logger.info("Created profile %s for user %s", profile.username, user_id)
    return profile


async def update_profile(
    db: AsyncSession,
    user_id: str,
    *,
    display_name: str | None = None,
    bio: str | None = None,
    photo_url: str | None = None,
) -> Profile:
    profile = await require_profile(db, user_id)
    if display_name is not None:
        profile.display_name = display_name.strip()
    if bio is not None:
        profile.bio = bio
    if photo_url is not None:
        profile.photo_url = photo_url
    profile.updated_at = datetime.now(timezone.utc)
    await db.commit()
    return profile


async def update_time_preferences(
    db: AsyncSession,
    user_id: str,
    *,
    weekday_study_range: str | None = None,
    weekend_study_range: str | None = None,
    earliest_study_time: time | None = None,
    latest_study_time: time | None = None,
    commit: bool = True,
) -> Profile:
    """Store study-hour preferences. Only fields that are passed are changed."""
    profile = await require_profile(db, user_id)
    if weekday_study_range is not None:
        profile.weekday_study_range = weekday_study_range
    if weekend_study_range is not None:
        profile.weekend_study_range = weekend_study_range
    if earliest_study_time is not None:
        profile.earliest_study_time = earliest_study_time
    if latest_study_time is not None:
        profile.latest_study_time = latest_study_time
    profile.updated_at = datetime.now(timezone.utc)
    if commit:
        await db.commit()
    return profile
