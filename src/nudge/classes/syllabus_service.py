"""Handing an uploaded syllabus to the parsing function."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from nudge.classes.service import get_class
from nudge.errors import ValidationError
from nudge.functions.client import FunctionsClient
from nudge.functions.guard import InFlightGuard, parse_syllabus_guard
from nudge.users.service import get_profile

logger = logging.getLogger(__name__)


async def parse_class_syllabus(
    db: AsyncSession,
    functions: FunctionsClient,
    user_id: str,
    class_id: str,
    syllabus_url: str | None = None,
    guard: InFlightGuard = parse_syllabus_guard,
) -> dict[str, Any]:
    """Parse a class's syllabus into topics, assignments and study blocks.

    At most one parse runs per class; a second concurrent request raises
    AlreadyExistsError. The parsing function writes its results directly,
    so the class row is reloaded afterwards.
    """
    study_class = await get_class(db, user_id, class_id)
    url = syllabus_url or study_class.syllabus_url
    if not url:
        raise ValidationError("No syllabus uploaded for this class")

    async with guard.hold(class_id):
        if study_class.syllabus_url != url:
            study_class.syllabus_url = url
            await db.commit()

        profile = await get_profile(db, user_id)
        summary = await functions.parse_syllabus(
            class_id,
            url,
            user_id,
            weekday_hours=profile.weekday_study_range if profile else None,
            weekend_hours=profile.weekend_study_range if profile else None,
        )

    await db.refresh(study_class)
    logger.info(
        "Parsed syllabus for class %s: %s topics, %s assignments",
        class_id,
        summary.get("topicsCount", 0),
        summary.get("assignmentsCount", 0),
    )
    return {
        "class_id": class_id,
        "ai_parsed": study_class.ai_parsed,
        "topics_count": int(summary.get("topicsCount", 0)),
        "assignments_count": int(summary.get("assignmentsCount", 0)),
        "study_blocks_count": int(summary.get("studyBlocksCount", 0)),
        "total_minutes": int(summary.get("totalMinutes", study_class.estimated_total_minutes)),
    }
