"""Class endpoints: CRUD, assignment summary, syllabus parsing, study plan."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.auth.dependencies import CurrentUser, get_current_user
from nudge.classes.schemas import (
    AssignmentResponse,
    AssignmentSummaryResponse,
    ClassListResponse,
    ClassResponse,
    CompletionCelebrationItem,
    CreateClassRequest,
    ParseSyllabusRequest,
    ParseSyllabusResponse,
    PendingCompletionsResponse,
    TopicResponse,
    UpdateClassRequest,
)
from nudge.classes.service import (
    ClassOrder,
    acknowledge_completion,
    create_class,
    delete_class,
    get_class,
    get_pending_completions,
    list_assignments,
    list_classes,
    list_topics,
    update_class,
)
from nudge.classes.syllabus_service import parse_class_syllabus
from nudge.database import get_session
from nudge.db.models import StudyClass
from nudge.dependencies import get_functions_client
from nudge.functions.client import FunctionsClient
from nudge.gamification.streak_engine import effective_streak
from nudge.schedule.router import build_day_buckets
from nudge.schedule.schemas import StudyPlanResponse
from nudge.schedule.service import study_plan
from nudge.schedule.time_buckets import format_last_studied, local_today

router = APIRouter(prefix="/api/v1", tags=["Classes"])


def class_response(study_class: StudyClass) -> ClassResponse:
    """Cached class row with the displayed streak and last-studied label."""
    today = local_today()
    return ClassResponse.model_validate(study_class).model_copy(update={
        "streak": effective_streak(study_class.streak, study_class.last_studied_date, today),
        "last_studied_label": format_last_studied(study_class.last_studied_date, today),
    })


@router.get("/classes", response_model=ClassListResponse)
async def get_classes(
    order: ClassOrder = Query(ClassOrder.CREATED),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    classes = await list_classes(db, user.id, order)
    return ClassListResponse(classes=[class_response(c) for c in classes])


@router.post("/classes", response_model=ClassResponse, status_code=201)
async def add_class(
    body: CreateClassRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    study_class = await create_class(db, user.id, body.name, body.syllabus_url, body.difficulty)
    return class_response(study_class)


@router.get("/classes/{class_id}", response_model=ClassResponse)
async def get_class_detail(
    class_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Class detail with cached progress, streak and remaining minutes."""
    return class_response(await get_class(db, user.id, class_id))


@router.patch("/classes/{class_id}", response_model=ClassResponse)
async def edit_class(
    class_id: str,
    body: UpdateClassRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    study_class = await update_class(
        db, user.id, class_id, name=body.name, syllabus_url=body.syllabus_url, difficulty=body.difficulty
    )
    return class_response(study_class)


@router.delete("/classes/{class_id}", status_code=204)
async def remove_class(
    class_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await delete_class(db, user.id, class_id)


@router.get("/classes/{class_id}/assignments", response_model=AssignmentSummaryResponse)
async def get_assignment_summary(
    class_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """What the syllabus parser found for a class."""
    study_class = await get_class(db, user.id, class_id)
    assignments = await list_assignments(db, user.id, class_id)
    topics = await list_topics(db, user.id, class_id)
    return AssignmentSummaryResponse(
        class_id=study_class.id,
        class_name=study_class.name,
        assignments=[AssignmentResponse.model_validate(a) for a in assignments],
        topics=[TopicResponse.model_validate(t) for t in topics],
        total_minutes=study_class.estimated_total_minutes,
    )


@router.post("/classes/{class_id}/syllabus/parse", response_model=ParseSyllabusResponse)
async def parse_syllabus(
    class_id: str,
    body: ParseSyllabusRequest | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    functions: FunctionsClient = Depends(get_functions_client),
):
    """Run the AI parser on the class's uploaded syllabus. 409 if one is already running."""
    result = await parse_class_syllabus(
        db, functions, user.id, class_id, syllabus_url=body.syllabus_url if body else None
    )
    return ParseSyllabusResponse(**result)


@router.get("/classes/{class_id}/study-plan", response_model=StudyPlanResponse)
async def get_study_plan(
    class_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    study_class = await get_class(db, user.id, class_id)
    grouped = await study_plan(db, user.id, class_id)
    return StudyPlanResponse(
        class_id=study_class.id,
        class_name=study_class.name,
        total_minutes=sum(b.duration_minutes for blocks in grouped.values() for b in blocks),
        days=build_day_buckets(grouped),
    )


# ── Completion celebrations ──


@router.get("/users/me/class-completions/pending", response_model=PendingCompletionsResponse)
async def get_pending_class_completions(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Classes that reached 100% and whose celebration hasn't been shown."""
    items = await get_pending_completions(db, user.id)
    return PendingCompletionsResponse(celebrations=[CompletionCelebrationItem(**item) for item in items])


@router.post("/users/me/class-completions/{celebration_id}/ack", status_code=204)
async def acknowledge_class_completion(
    celebration_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    updated = await acknowledge_completion(db, user.id, celebration_id)
    if not updated:
        raise HTTPException(status_code=404, detail="Celebration not found or already acknowledged")
