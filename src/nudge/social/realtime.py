"""Publishing reaction patches and per-user events to the realtime bridge."""

from __future__ import annotations

import json
import logging

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

# Redis pub/sub channel prefix; the bridge strips it to get the client channel
PUBSUB_PREFIX = "pubsub:"
# Per-user events for every open connection of that user
USER_PREFIX = "ws:user:"


def post_channel(post_id: str) -> str:
    """Client-facing channel for one rendered post."""
    return f"post:{post_id}"


async def publish_reaction_change(
    redis: aioredis.Redis | None,
    post_id: str,
    emoji: str,
    user_id: str,
    added: bool,
    count: int,
) -> bool:
    """Send an incremental reaction patch. Returns False when nothing was published."""
    if redis is None:
        return False
    payload = {
        "event": "reaction_added" if added else "reaction_removed",
        "data": {
            "post_id": post_id,
            "emoji": emoji,
            "user_id": user_id,
            "delta": 1 if added else -1,
            "count": count,
        },
    }
    try:
        await redis.publish(PUBSUB_PREFIX + post_channel(post_id), json.dumps(payload))
    except Exception:  # noqa: BLE001
        logger.warning("Failed to publish reaction change for post %s", post_id, exc_info=True)
        return False
    return True


async def publish_class_completed(
    redis: aioredis.Redis | None,
    user_id: str,
    class_id: str,
    class_name: str,
    celebration_id: str,
) -> bool:
    """Tell the owner's open connections a class just reached 100%."""
    if redis is None:
        return False
    payload = {
        "event": "class_completed",
        "data": {"class_id": class_id, "class_name": class_name, "celebration_id": celebration_id},
    }
    try:
        await redis.publish(USER_PREFIX + user_id, json.dumps(payload))
    except Exception:  # noqa: BLE001
        logger.warning("Failed to publish class completion for %s", user_id, exc_info=True)
        return False
    return True
