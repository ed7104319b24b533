"""FastAPI application factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from nudge.classes.router import router as classes_router
from nudge.config import get_settings
from nudge.database import close_db, init_db
from nudge.gamification.router import router as streaks_router
from nudge.health.router import router as health_router
from nudge.middleware import setup_middleware
from nudge.onboarding.router import router as onboarding_router
from nudge.promises.router import router as promises_router
from nudge.redis_client import close_redis, get_redis, init_redis
from nudge.schedule.router import router as schedule_router
from nudge.social.router import router as social_router
from nudge.users.router import router as users_router
from nudge.ws.bridge import PubSubBridge
from nudge.ws.manager import manager
from nudge.ws.router import router as ws_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    manager.max_subscriptions = settings.ws_max_post_subscriptions

    # Redis pub/sub -> WebSocket fan-out for per-post reaction patches
    bridge = PubSubBridge(get_redis(), manager)
    bridge_task = asyncio.create_task(bridge.start())

    yield

    await bridge.stop()
    bridge_task.cancel()
    try:
        await bridge_task
    except asyncio.CancelledError:
        pass

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Nudge API",
        description="Study schedules, streaks, and a proof-of-study friend feed",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(onboarding_router)
    app.include_router(classes_router)
    app.include_router(schedule_router)
    app.include_router(streaks_router)
    app.include_router(social_router)
    app.include_router(promises_router)
    app.include_router(ws_router)

    return app


app = create_app()
