"""Flushing a finished onboarding to storage."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from nudge.classes.service import create_class
from nudge.db.models import StudyClass
from nudge.onboarding.state_machine import OnboardingStateMachine, OnboardingStep
from nudge.users.service import update_time_preferences

logger = logging.getLogger(__name__)


async def complete_onboarding(
    db: AsyncSession,
    user_id: str,
    machine: OnboardingStateMachine,
) -> list[StudyClass]:
    """Persist study hours and one class row per onboarding class.

    The machine is moved to COMPLETE first, so an unfinished onboarding
    raises ValidationError before anything is written.
    """
    machine.go_to_step(OnboardingStep.COMPLETE)

    earliest = machine.weekday.earliest or machine.weekend.earliest
    latest = machine.weekday.latest or machine.weekend.latest
    await update_time_preferences(
        db,
        user_id,
        weekday_study_range=machine.weekday.study_range,
        weekend_study_range=machine.weekend.study_range,
        earliest_study_time=earliest,
        latest_study_time=latest,
        commit=False,
    )

    created = [
        await create_class(
            db,
            user_id,
            c.name,
            syllabus_url=c.syllabus_url if c.syllabus_uploaded else None,
            difficulty=c.difficulty,
            commit=False,
        )
        for c in machine.classes
    ]
    await db.commit()
    logger.info("User %s finished onboarding with %d classes", user_id, len(created))
    return created
