"""Onboarding completion endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.auth.dependencies import CurrentUser, get_current_user
from nudge.database import get_session
from nudge.onboarding.schemas import CompleteOnboardingRequest, CompleteOnboardingResponse, OnboardedClass
from nudge.onboarding.service import complete_onboarding
from nudge.onboarding.state_machine import OnboardingStateMachine, OnboardingStep

router = APIRouter(prefix="/api/v1", tags=["Onboarding"])


def machine_from_request(body: CompleteOnboardingRequest) -> OnboardingStateMachine:
    """Replay the client's collected answers through a fresh state machine."""
    machine = OnboardingStateMachine()
    machine.set_weekday_hours(body.weekday.study_range, body.weekday.earliest, body.weekday.latest)
    machine.next_step()
    machine.set_weekend_hours(body.weekend.study_range, body.weekend.earliest, body.weekend.latest)
    machine.next_step()
    for c in body.classes:
        added = machine.add_class(c.name)
        machine.update_class(added.id, difficulty=c.difficulty)
        if c.syllabus_uploaded:
            machine.mark_uploaded(added.id, c.syllabus_url)
        elif c.onboarding_resolved:
            machine.skip_class(added.id)
    machine.go_to_step(OnboardingStep.PER_CLASS_SYLLABUS_UPLOAD)
    return machine


@router.post("/onboarding/complete", response_model=CompleteOnboardingResponse, status_code=201)
async def finish_onboarding(
    body: CompleteOnboardingRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Persist hours and classes. 422 if any class has no syllabus decision."""
    machine = machine_from_request(body)
    created = await complete_onboarding(db, user.id, machine)
    return CompleteOnboardingResponse(
        classes=[
            OnboardedClass(
                id=c.id,
                name=c.name,
                syllabus_url=c.syllabus_url,
                needs_parsing=c.syllabus_url is not None and not c.ai_parsed,
            )
            for c in created
        ]
    )
