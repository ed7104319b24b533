"""WebSocket connection manager.

Tracks active connections and their per-post channel subscriptions. A
client subscribes to the posts it is currently rendering and receives
incremental reaction patches for those posts only.
"""

import json
import re
import time
from collections import defaultdict
from dataclasses import dataclass, field

import structlog
from fastapi import WebSocket

logger = structlog.get_logger()

_POST_CHANNEL = re.compile(r"^post:[A-Za-z0-9-]{1,64}$")


def is_valid_channel(channel: str) -> bool:
    return bool(_POST_CHANNEL.match(channel))


def post_id_for(channel: str) -> str:
    return channel.removeprefix("post:")


@dataclass
class ClientConnection:
    websocket: WebSocket
    user_id: str
    subscriptions: set[str] = field(default_factory=set)
    connected_at: float = field(default_factory=time.time)
    messages_sent: int = 0


class ConnectionManager:
    """Single event loop; no locking."""

    def __init__(self, max_subscriptions: int = 200) -> None:
        self.max_subscriptions = max_subscriptions
        self._connections: dict[str, ClientConnection] = {}
        self._channels: dict[str, set[str]] = defaultdict(set)
        self._user_connections: dict[str, set[str]] = defaultdict(set)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket, conn_id: str, user_id: str) -> None:
        await websocket.accept()
        self._connections[conn_id] = ClientConnection(websocket=websocket, user_id=user_id)
        self._user_connections[user_id].add(conn_id)
        logger.info("ws_connected", conn_id=conn_id, user_id=user_id)

    async def disconnect(self, conn_id: str) -> None:
        client = self._connections.pop(conn_id, None)
        if client is None:
            return

        for channel in client.subscriptions:
            self._channels[channel].discard(conn_id)
            if not self._channels[channel]:
                del self._channels[channel]

        self._user_connections[client.user_id].discard(conn_id)
        if not self._user_connections[client.user_id]:
            del self._user_connections[client.user_id]

        logger.info("ws_disconnected", conn_id=conn_id, user_id=client.user_id)

    async def subscribe(self, conn_id: str, channel: str) -> bool:
        """Subscribe to a post channel. False if the channel is invalid or the cap is reached."""
        client = self._connections.get(conn_id)
        if client is None or not is_valid_channel(channel):
            return False
        if channel not in client.subscriptions and len(client.subscriptions) >= self.max_subscriptions:
            return False

        client.subscriptions.add(channel)
        self._channels[channel].add(conn_id)
        logger.debug("ws_subscribed", conn_id=conn_id, channel=channel)
        return True

    async def unsubscribe(self, conn_id: str, channel: str) -> bool:
        client = self._connections.get(conn_id)
        if client is None:
            return False

        client.subscriptions.discard(channel)
        subscribers = self._channels.get(channel)
        if subscribers is not None:
            subscribers.discard(conn_id)
            if not subscribers:
                del self._channels[channel]
        return True

    async def replace_subscriptions(self, conn_id: str, channels: list[str]) -> list[str]:
        """Swap the subscription set for the posts now on screen. Returns what was accepted."""
        client = self._connections.get(conn_id)
        if client is None:
            return []
        for channel in list(client.subscriptions):
            await self.unsubscribe(conn_id, channel)
        return [c for c in channels if await self.subscribe(conn_id, c)]

    async def _send(self, conn_id: str, payload: str) -> bool:
        client = self._connections.get(conn_id)
        if client is None:
            return False
        try:
            await client.websocket.send_text(payload)
        except Exception:  # noqa: BLE001
            await self.disconnect(conn_id)
            return False
        client.messages_sent += 1
        return True

    async def broadcast_to_channel(self, channel: str, message: dict) -> int:
        """Send to every subscriber of ``channel``. Returns how many received it."""
        payload = json.dumps({"channel": channel, "data": message})
        sent = 0
        for conn_id in list(self._channels.get(channel, ())):
            if await self._send(conn_id, payload):
                sent += 1
        return sent

    async def send_to_user(self, user_id: str, message: dict) -> int:
        """Send to every connection of one user, regardless of subscriptions."""
        payload = json.dumps(message)
        sent = 0
        for conn_id in list(self._user_connections.get(user_id, ())):
            if await self._send(conn_id, payload):
                sent += 1
        return sent

    def subscriber_count(self, channel: str) -> int:
        return len(self._channels.get(channel, ()))

    def get_stats(self) -> dict:
        return {
            "total_connections": len(self._connections),
            "unique_users": len(self._user_connections),
            "channels": len(self._channels),
        }


manager = ConnectionManager()
