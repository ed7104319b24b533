"""WebSocket endpoint: token auth plus per-post subscriptions."""

import json
import uuid

import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.auth.jwt import verify_token
from nudge.database import get_session_factory
from nudge.social.feed_service import visible_post_ids
from nudge.ws.manager import is_valid_channel, manager, post_id_for

logger = structlog.get_logger()

router = APIRouter()


async def visible_channels(db: AsyncSession, user_id: str, channels: list[str]) -> list[str]:
    """Well-formed post channels whose post the user may see, in request order."""
    candidates = [c for c in channels if is_valid_channel(c)]
    visible = await visible_post_ids(db, user_id, [post_id_for(c) for c in candidates])
    return [c for c in candidates if post_id_for(c) in visible]


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    """
    Client -> Server:
        {"action": "subscribe", "channel": "post:<id>"}
        {"action": "unsubscribe", "channel": "post:<id>"}
        {"action": "sync", "channels": ["post:<id>", ...]}
        {"action": "ping"}

    Server -> Client:
        {"channel": "post:<id>", "data": {"type": "reaction_added", "emoji": ..., "delta": 1, "count": ...}}
        {"type": "subscribed" | "unsubscribed", "channel": ...}
        {"type": "synced", "channels": [...]}
        {"type": "pong"} / {"type": "error", "message": ...}
    """
    try:
        payload = verify_token(token)
        user_id = str(payload["sub"])
    except Exception as e:  # noqa: BLE001
        await websocket.close(code=4001, reason=f"Authentication failed: {e}")
        return

    conn_id = str(uuid.uuid4())
    await manager.connect(websocket, conn_id, user_id)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue
            if not isinstance(msg, dict):
                await websocket.send_json({"type": "error", "message": "Expected an object"})
                continue

            action = msg.get("action")

            if action == "subscribe":
                channel = msg.get("channel", "")
                requested = [channel] if isinstance(channel, str) else []
                async with get_session_factory()() as db:
                    allowed = await visible_channels(db, user_id, requested)
                if allowed and await manager.subscribe(conn_id, channel):
                    await websocket.send_json({"type": "subscribed", "channel": channel})
                else:
                    await websocket.send_json({"type": "error", "message": f"Cannot subscribe to: {channel}"})

            elif action == "unsubscribe":
                channel = msg.get("channel", "")
                await manager.unsubscribe(conn_id, channel)
                await websocket.send_json({"type": "unsubscribed", "channel": channel})

            elif action == "sync":
                requested = [c for c in msg.get("channels", []) if isinstance(c, str)]
                async with get_session_factory()() as db:
                    allowed = await visible_channels(db, user_id, requested)
                accepted = await manager.replace_subscriptions(conn_id, allowed)
                await websocket.send_json({"type": "synced", "channels": accepted})

            elif action == "ping":
                await websocket.send_json({"type": "pong"})

            else:
                await websocket.send_json({"type": "error", "message": f"Unknown action: {action}"})

    except WebSocketDisconnect:
        await manager.disconnect(conn_id)
    except Exception:
        logger.exception("ws_error", conn_id=conn_id)
        await manager.disconnect(conn_id)
