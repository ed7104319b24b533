"""Study buddies: the friend graph behind the feed and leaderboard."""

from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.db.models import Friendship, Profile
from nudge.errors import AlreadyExistsError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


async def get_friend_ids(db: AsyncSession, user_id: str) -> set[str]:
    """Everyone connected to ``user_id`` by a friendship row in either direction."""
    result = await db.execute(
        select(Friendship.user_id, Friendship.friend_id).where(
            or_(Friendship.user_id == user_id, Friendship.friend_id == user_id)
        )
    )
    friend_ids: set[str] = set()
    for row in result:
        friend_ids.add(row.friend_id if row.user_id == user_id else row.user_id)
    friend_ids.discard(user_id)
    return friend_ids


async def get_friend_set(db: AsyncSession, user_id: str) -> set[str]:
    """Friend ids plus the viewer: whose posts appear in the feed."""
    return await get_friend_ids(db, user_id) | {user_id}


async def list_buddies(db: AsyncSession, user_id: str) -> list[Profile]:
    friend_ids = await get_friend_ids(db, user_id)
    if not friend_ids:
        return []
    result = await db.execute(
        select(Profile).where(Profile.user_id.in_(friend_ids)).order_by(Profile.display_name)
    )
    return list(result.scalars())


async def suggest_buddies(db: AsyncSession, user_id: str, limit: int = 10) -> list[Profile]:
    """Profiles that are neither the viewer nor already a buddy."""
    excluded = await get_friend_set(db, user_id)
    result = await db.execute(
        select(Profile)
        .where(Profile.user_id.not_in(excluded))
        .order_by(Profile.streak.desc(), Profile.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars())


async def add_buddy(db: AsyncSession, user_id: str, friend_user_id: str) -> Friendship:
    """Create a friendship row. Raises AlreadyExistsError if the pair is already connected."""
    if friend_user_id == user_id:
        raise ValidationError("You can't add yourself as a study buddy")

    exists = await db.execute(select(Profile.id).where(Profile.user_id == friend_user_id))
    if exists.scalar_one_or_none() is None:
        raise NotFoundError("User not found")

    if friend_user_id in await get_friend_ids(db, user_id):
        raise AlreadyExistsError("Already study buddies")

    friendship = Friendship(user_id=user_id, friend_id=friend_user_id)
    db.add(friendship)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AlreadyExistsError("Already study buddies") from None
    logger.info("User %s added buddy %s", user_id, friend_user_id)
    return friendship
