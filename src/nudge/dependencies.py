"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

import redis.asyncio as aioredis

from nudge.config import get_settings
from nudge.database import get_session as _get_session
from nudge.functions.client import FunctionsClient
from nudge.redis_client import get_redis_or_none

get_db = _get_session


async def get_redis_dep() -> AsyncGenerator[aioredis.Redis | None, None]:
    """Yield the Redis client, or None when realtime publishing is unavailable."""
    yield get_redis_or_none()


async def get_functions_client() -> AsyncGenerator[FunctionsClient, None]:
    """Yield a functions client bound to the configured base URL."""
    client = FunctionsClient.from_settings(get_settings())
    try:
        yield client
    finally:
        await client.aclose()
