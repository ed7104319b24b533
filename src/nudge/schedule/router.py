"""Calendar endpoints: week view and full schedule."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.auth.dependencies import CurrentUser, get_current_user
from nudge.database import get_session
from nudge.db.models import StudyBlock
from nudge.schedule.schemas import DayBucket, ScheduleResponse, StudyBlockResponse
from nudge.schedule.service import full_schedule, week_schedule
from nudge.schedule.time_buckets import format_date, format_time, local_today

router = APIRouter(prefix="/api/v1", tags=["Schedule"])


def block_response(block: StudyBlock) -> StudyBlockResponse:
    return StudyBlockResponse(
        id=block.id,
        class_id=block.class_id,
        class_name=block.study_class.name if block.study_class else None,
        assignment_id=block.assignment_id,
        assignment_title=block.assignment.title if block.assignment else None,
        block_date=block.block_date,
        start_time=block.start_time,
        time_label=format_time(block.start_time),
        duration_minutes=block.duration_minutes,
    )


def build_day_buckets(grouped: dict[date, list[StudyBlock]], today: date | None = None) -> list[DayBucket]:
    today = today or local_today()
    return [
        DayBucket(
            day=d,
            label=format_date(d, today),
            total_minutes=sum(b.duration_minutes for b in blocks),
            blocks=[block_response(b) for b in blocks],
        )
        for d, blocks in grouped.items()
    ]


@router.get("/schedule", response_model=ScheduleResponse)
async def get_schedule(
    start: date | None = Query(None, description="First day to include; defaults to today"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Every upcoming study block, bucketed by day."""
    grouped = await full_schedule(db, user.id, start or local_today())
    return ScheduleResponse(days=build_day_buckets(grouped))


@router.get("/schedule/week", response_model=ScheduleResponse)
async def get_week(
    anchor: date | None = Query(None, description="Any day in the week; defaults to today"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Sunday through Saturday, including empty days."""
    grouped = await week_schedule(db, user.id, anchor or local_today())
    return ScheduleResponse(days=build_day_buckets(grouped))
