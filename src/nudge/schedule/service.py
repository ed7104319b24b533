"""Study block queries for the calendar and study-plan screens."""

from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from nudge.classes.service import get_class
from nudge.db.models import StudyBlock
from nudge.errors import NotFoundError
from nudge.schedule.time_buckets import group_blocks_by_date, week_dates


async def list_blocks(
    db: AsyncSession,
    user_id: str,
    *,
    start: date | None = None,
    end: date | None = None,
    class_id: str | None = None,
) -> list[StudyBlock]:
    """A user's blocks with class and assignment loaded, optionally within [start, end]."""
    stmt = (
        select(StudyBlock)
        .options(selectinload(StudyBlock.study_class), selectinload(StudyBlock.assignment))
        .where(StudyBlock.user_id == user_id)
    )
    if start is not None:
        stmt = stmt.where(StudyBlock.block_date >= start)
    if end is not None:
        stmt = stmt.where(StudyBlock.block_date <= end)
    if class_id is not None:
        stmt = stmt.where(StudyBlock.class_id == class_id)
    stmt = stmt.order_by(StudyBlock.block_date.asc())
    result = await db.execute(stmt)
    return list(result.scalars())


async def get_block(db: AsyncSession, user_id: str, block_id: str) -> StudyBlock:
    result = await db.execute(
        select(StudyBlock)
        .options(selectinload(StudyBlock.study_class))
        .where(StudyBlock.id == block_id, StudyBlock.user_id == user_id)
    )
    block = result.scalar_one_or_none()
    if block is None:
        raise NotFoundError("Study block not found")
    return block


async def week_schedule(db: AsyncSession, user_id: str, anchor: date) -> dict[date, list[StudyBlock]]:
    """All 7 days of the anchor's week, including days with no blocks."""
    days = week_dates(anchor)
    grouped = group_blocks_by_date(await list_blocks(db, user_id, start=days[0], end=days[-1]))
    return {d: grouped.get(d, []) for d in days}


async def full_schedule(db: AsyncSession, user_id: str, start: date | None = None) -> dict[date, list[StudyBlock]]:
    return group_blocks_by_date(await list_blocks(db, user_id, start=start))


async def study_plan(db: AsyncSession, user_id: str, class_id: str) -> dict[date, list[StudyBlock]]:
    """One class's blocks, bucketed by day."""
    await get_class(db, user_id, class_id)
    return group_blocks_by_date(await list_blocks(db, user_id, class_id=class_id))
