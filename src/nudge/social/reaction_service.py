"""Emoji reactions on feed posts."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import redis.asyncio as aioredis
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.db.models import FeedPost, Reaction
from nudge.errors import NotFoundError, ValidationError
from nudge.social.friendship_service import get_friend_set
from nudge.social.realtime import publish_reaction_change

logger = logging.getLogger(__name__)

REACTION_EMOJIS: tuple[str, ...] = ("🔥", "💪", "🤯", "👏", "🎯", "⭐")


@dataclass(frozen=True)
class ToggleResult:
    post_id: str
    emoji: str
    reacted: bool
    count: int


def validate_emoji(emoji: str) -> None:
    if emoji not in REACTION_EMOJIS:
        raise ValidationError(f"Unsupported reaction: {emoji}")


async def reaction_count(db: AsyncSession, post_id: str, emoji: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(Reaction).where(Reaction.post_id == post_id, Reaction.emoji == emoji)
    )
    return int(result.scalar_one())


async def has_reacted(db: AsyncSession, post_id: str, emoji: str, viewer_id: str) -> bool:
    result = await db.execute(
        select(Reaction.id).where(
            Reaction.post_id == post_id,
            Reaction.emoji == emoji,
            Reaction.user_id == viewer_id,
        )
    )
    return result.first() is not None


async def reactions_for_posts(db: AsyncSession, post_ids: list[str]) -> dict[str, list[Reaction]]:
    """All reactions on the given posts, grouped per post."""
    grouped: dict[str, list[Reaction]] = {pid: [] for pid in post_ids}
    if not post_ids:
        return grouped
    result = await db.execute(
        select(Reaction).where(Reaction.post_id.in_(post_ids)).order_by(Reaction.created_at.asc())
    )
    for reaction in result.scalars():
        grouped.setdefault(reaction.post_id, []).append(reaction)
    return grouped


async def _require_visible_post(db: AsyncSession, post_id: str, viewer_id: str) -> FeedPost:
    result = await db.execute(select(FeedPost).where(FeedPost.id == post_id))
    post = result.scalar_one_or_none()
    if post is None or post.user_id not in await get_friend_set(db, viewer_id):
        raise NotFoundError("Post not found")
    return post


async def _find_reaction(db: AsyncSession, post_id: str, viewer_id: str, emoji: str) -> Reaction | None:
    result = await db.execute(
        select(Reaction).where(
            Reaction.post_id == post_id,
            Reaction.user_id == viewer_id,
            Reaction.emoji == emoji,
        )
    )
    return result.scalar_one_or_none()


async def toggle_reaction(
    db: AsyncSession,
    post_id: str,
    emoji: str,
    viewer_id: str,
    redis: aioredis.Redis | None = None,
) -> ToggleResult:
    """Remove the viewer's reaction if present, otherwise add it.

    Two concurrent adds of the same triple collide on the unique constraint;
    the loser treats it as already reacted.
    """
    validate_emoji(emoji)
    await _require_visible_post(db, post_id, viewer_id)

    existing = await _find_reaction(db, post_id, viewer_id, emoji)

    if existing is not None:
        await db.delete(existing)
        await db.commit()
        reacted = False
    else:
        db.add(Reaction(post_id=post_id, user_id=viewer_id, emoji=emoji))
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info("Reaction %s on %s by %s already exists", emoji, post_id, viewer_id)
            return ToggleResult(post_id, emoji, True, await reaction_count(db, post_id, emoji))
        reacted = True

    count = await reaction_count(db, post_id, emoji)
    await publish_reaction_change(redis, post_id, emoji, viewer_id, reacted, count)
    return ToggleResult(post_id, emoji, reacted, count)
