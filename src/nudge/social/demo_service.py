"""Seeding the feed with generated demo posts."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from nudge.classes.service import list_classes
from nudge.errors import ValidationError
from nudge.functions.client import FunctionsClient
from nudge.functions.guard import InFlightGuard, demo_posts_guard

logger = logging.getLogger(__name__)


async def create_demo_posts(
    db: AsyncSession,
    functions: FunctionsClient,
    user_id: str,
    guard: InFlightGuard = demo_posts_guard,
) -> int:
    classes = await list_classes(db, user_id)
    if not classes:
        raise ValidationError("Please add some classes first")

    async with guard.hold(user_id):
        created = await functions.create_demo_posts(user_id, [c.id for c in classes])
    logger.info("Created %d demo posts for %s", created, user_id)
    return created
