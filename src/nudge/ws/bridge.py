"""Bridges Redis pub/sub to WebSocket clients.

``pubsub:post:<id>`` messages fan out to subscribers of ``post:<id>``;
``ws:user:<id>`` messages go to every connection of that user.
"""

import asyncio
import json

import redis.asyncio as aioredis
import structlog

from nudge.social.realtime import PUBSUB_PREFIX, USER_PREFIX
from nudge.ws.manager import ConnectionManager, manager

logger = structlog.get_logger()

POST_PATTERN = f"{PUBSUB_PREFIX}post:*"
USER_PATTERN = f"{USER_PREFIX}*"


class PubSubBridge:
    def __init__(self, redis_client: aioredis.Redis, connections: ConnectionManager = manager) -> None:
        self.redis = redis_client
        self.connections = connections
        self._running = False

    async def dispatch(self, redis_channel: str, raw: str | bytes) -> int:
        """Route one pub/sub message. Returns the number of clients reached."""
        if isinstance(redis_channel, bytes):
            redis_channel = redis_channel.decode()
        try:
            if isinstance(raw, bytes):
                raw = raw.decode()
            payload = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("pubsub_invalid_message", channel=redis_channel)
            return 0

        if redis_channel.startswith(USER_PREFIX):
            user_id = redis_channel[len(USER_PREFIX):]
            return await self.connections.send_to_user(user_id, {
                "type": payload.get("event", "notification"),
                "payload": payload.get("data", payload),
            })

        if redis_channel.startswith(PUBSUB_PREFIX + "post:"):
            ws_channel = redis_channel[len(PUBSUB_PREFIX):]
            return await self.connections.broadcast_to_channel(ws_channel, {
                "type": payload.get("event", "update"),
                **payload.get("data", {}),
            })
        return 0

    async def start(self) -> None:
        self._running = True
        pubsub = self.redis.pubsub()
        await pubsub.psubscribe(POST_PATTERN, USER_PATTERN)
        logger.info("pubsub_bridge_started", patterns=[POST_PATTERN, USER_PATTERN])

        try:
            while self._running:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if message is None:
                    continue
                sent = await self.dispatch(message.get("channel", ""), message.get("data", b""))
                if sent > 0:
                    logger.debug("pubsub_forwarded", channel=message.get("channel"), recipients=sent)
        except asyncio.CancelledError:
            pass
        finally:
            await pubsub.punsubscribe()
            await pubsub.aclose()
            logger.info("pubsub_bridge_stopped")

    async def stop(self) -> None:
        self._running = False
