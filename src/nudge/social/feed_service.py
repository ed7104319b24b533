"""Friend feed assembly.

Posts by the viewer and their buddies, newest first, joined to the author
profile and class name, with reactions grouped per post.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.db.models import FeedPost, Reaction, StudyClass
from nudge.schedule.time_buckets import format_time_ago
from nudge.social.friendship_service import get_friend_set
from nudge.social.reaction_service import REACTION_EMOJIS, reactions_for_posts
from nudge.users.service import display_name_for, get_profiles_batch, username_for

logger = logging.getLogger(__name__)


@dataclass
class FeedItem:
    id: str
    user_id: str
    display_name: str
    username: str
    author_photo_url: str | None
    class_name: str | None
    photo_url: str
    front_photo_url: str | None
    back_photo_url: str | None
    timelapse_url: str | None
    minutes_studied: int
    caption: str | None
    created_at: datetime
    reactions: list[Reaction] = field(default_factory=list)
    placeholder: bool = False

    def reaction_count(self, emoji: str) -> int:
        return sum(1 for r in self.reactions if r.emoji == emoji)

    def has_reacted(self, emoji: str, viewer_id: str) -> bool:
        return any(r.emoji == emoji and r.user_id == viewer_id for r in self.reactions)

    def reaction_summary(self, viewer_id: str) -> list[dict]:
        return [
            {"emoji": e, "count": self.reaction_count(e), "reacted": self.has_reacted(e, viewer_id)}
            for e in REACTION_EMOJIS
        ]

    def time_ago(self, now: datetime | None = None) -> str:
        return format_time_ago(self.created_at, now)


def placeholder_feed(now: datetime | None = None) -> list[FeedItem]:
    """Fixed sample posts for an empty feed."""
    if now is None:
        now = datetime.now(timezone.utc)
    samples = [
        ("placeholder-1", "Maya Chen", "maya", "Organic Chemistry", 45, "Locked in! 🔥", 12),
        ("placeholder-2", "Jordan Lee", "jordan", "Linear Algebra", 90, "Problem set done 💪", 95),
        ("placeholder-3", "Sam Rivera", "sam", "World History", 30, "Flashcards before class", 300),
    ]
    return [
        FeedItem(
            id=post_id,
            user_id=post_id,
            display_name=name,
            username=username,
            author_photo_url=None,
            class_name=class_name,
            photo_url="",
            front_photo_url=None,
            back_photo_url=None,
            timelapse_url=None,
            minutes_studied=minutes,
            caption=caption,
            created_at=now - timedelta(minutes=age_minutes),
            placeholder=True,
        )
        for post_id, name, username, class_name, minutes, caption, age_minutes in samples
    ]


async def _feed_items(db: AsyncSession, posts: list[FeedPost]) -> list[FeedItem]:
    """Join posts to author profiles, class names and grouped reactions."""
    if not posts:
        return []

    profiles = await get_profiles_batch(db, list({p.user_id for p in posts}))

    class_ids = list({p.class_id for p in posts if p.class_id})
    class_names: dict[str, str] = {}
    if class_ids:
        class_result = await db.execute(select(StudyClass.id, StudyClass.name).where(StudyClass.id.in_(class_ids)))
        class_names = {row.id: row.name for row in class_result}

    reactions = await reactions_for_posts(db, [p.id for p in posts])

    items = []
    for post in posts:
        author = profiles.get(post.user_id)
        items.append(FeedItem(
            id=post.id,
            user_id=post.user_id,
            display_name=display_name_for(author),
            username=username_for(author),
            author_photo_url=author.photo_url if author else None,
            class_name=class_names.get(post.class_id) if post.class_id else None,
            photo_url=post.photo_url,
            front_photo_url=post.front_photo_url,
            back_photo_url=post.back_photo_url,
            timelapse_url=post.timelapse_url,
            minutes_studied=post.minutes_studied,
            caption=post.caption,
            created_at=post.created_at,
            reactions=reactions.get(post.id, []),
        ))
    return items


async def _posts_by(db: AsyncSession, author_ids: set[str], limit: int) -> list[FeedPost]:
    result = await db.execute(
        select(FeedPost)
        .where(FeedPost.user_id.in_(author_ids))
        .order_by(FeedPost.created_at.desc(), FeedPost.id)
        .limit(limit)
    )
    return list(result.scalars())


async def build_feed(
    db: AsyncSession,
    viewer_id: str,
    limit: int = 50,
    *,
    placeholders: bool = False,
) -> list[FeedItem]:
    """The viewer's feed, newest first.

    A viewer with no buddies and no posts of their own gets the sample
    posts when ``placeholders`` is on. Anyone with buddies gets an empty
    list until somebody posts.
    """
    author_ids = await get_friend_set(db, viewer_id)
    posts = await _posts_by(db, author_ids, limit)
    if not posts:
        if placeholders and author_ids == {viewer_id}:
            return placeholder_feed()
        return []
    return await _feed_items(db, posts)


async def build_user_posts(db: AsyncSession, user_id: str, limit: int = 50) -> list[FeedItem]:
    """One user's own posts, newest first. Never padded with placeholders."""
    return await _feed_items(db, await _posts_by(db, {user_id}, limit))


async def visible_post_ids(db: AsyncSession, viewer_id: str, post_ids: Iterable[str]) -> set[str]:
    """The subset of ``post_ids`` written by the viewer or their buddies."""
    wanted = set(post_ids)
    if not wanted:
        return set()
    result = await db.execute(
        select(FeedPost.id).where(FeedPost.id.in_(wanted), FeedPost.user_id.in_(await get_friend_set(db, viewer_id)))
    )
    return set(result.scalars())
