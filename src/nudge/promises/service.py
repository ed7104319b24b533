"""Pinky promises: creation, daily reconciliation, and reminder lookup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from nudge.db.models import PinkyPromise, StudyBlock, StudySession
from nudge.errors import AlreadyExistsError, NotFoundError
from nudge.promises.state_machine import ACTIVE, reconcile_status, validate_transition
from nudge.schedule.service import get_block
from nudge.schedule.time_buckets import local_today

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DueReminder:
    promise_id: str
    user_id: str
    class_name: str
    block_date: date
    start_time: time
    duration_minutes: int


async def create_promise(db: AsyncSession, user_id: str, block_id: str) -> PinkyPromise:
    """Promise to complete a block on its date.

    Raises AlreadyExistsError if the (user, block, date) promise exists.
    """
    block = await get_block(db, user_id, block_id)
    promise = PinkyPromise(user_id=user_id, block_id=block.id, promise_date=block.block_date, status=ACTIVE)
    db.add(promise)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AlreadyExistsError("You've already made a pinky promise for this study block!") from None
    logger.info("User %s promised block %s on %s", user_id, block_id, block.block_date)
    return promise


async def list_promises(
    db: AsyncSession,
    user_id: str,
    status: str | None = None,
) -> list[PinkyPromise]:
    stmt = (
        select(PinkyPromise)
        .options(selectinload(PinkyPromise.block).selectinload(StudyBlock.study_class))
        .where(PinkyPromise.user_id == user_id)
    )
    if status is not None:
        stmt = stmt.where(PinkyPromise.status == status)
    result = await db.execute(stmt.order_by(PinkyPromise.promise_date.desc()))
    return list(result.scalars())


async def get_promise(db: AsyncSession, user_id: str, promise_id: str) -> PinkyPromise:
    result = await db.execute(
        select(PinkyPromise)
        .options(selectinload(PinkyPromise.block).selectinload(StudyBlock.study_class))
        .where(PinkyPromise.id == promise_id, PinkyPromise.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    promise = result.scalar_one_or_none()
    if promise is None:
        raise NotFoundError("Promise not found")
    return promise


async def _has_session_for_block(db: AsyncSession, user_id: str, block_id: str) -> bool:
    result = await db.execute(
        select(StudySession.id)
        .where(StudySession.block_id == block_id, StudySession.user_id == user_id)
        .limit(1)
    )
    return result.first() is not None


async def reconcile_promises(db: AsyncSession, today: date | None = None) -> dict[str, int]:
    """Resolve every active promise dated before ``today``.

    A session tied to the promised block completes it; otherwise it breaks.
    Returns counts per new status.
    """
    if today is None:
        today = local_today()

    result = await db.execute(
        select(PinkyPromise).where(PinkyPromise.status == ACTIVE, PinkyPromise.promise_date < today)
    )
    counts = {"completed": 0, "broken": 0}
    now = datetime.now(timezone.utc)

    for promise in result.scalars().all():
        has_session = await _has_session_for_block(db, promise.user_id, promise.block_id)
        new_status = reconcile_status(promise.promise_date, has_session, today, promise.status)
        if new_status is None:
            continue
        validate_transition(promise.status, new_status)
        promise.status = new_status
        promise.resolved_at = now
        counts[new_status] += 1
        logger.info("Promise %s -> %s", promise.id, new_status)

    await db.commit()
    return counts


async def due_reminders(db: AsyncSession, now: datetime, lead: timedelta = timedelta(hours=1)) -> list[DueReminder]:
    """Active promises for today whose block starts within [now, now + lead].

    ``now`` is local wall-clock time. All-day blocks never get a reminder,
    and a window crossing midnight stops at the end of today.
    """
    today = now.date()
    window_start = now.time().replace(second=0, microsecond=0)
    window_end_dt = now + lead
    window_end = window_end_dt.time() if window_end_dt.date() == today else None

    result = await db.execute(
        select(PinkyPromise)
        .options(selectinload(PinkyPromise.block).selectinload(StudyBlock.study_class))
        .where(PinkyPromise.status == ACTIVE, PinkyPromise.promise_date == today)
    )

    due = []
    for promise in result.scalars():
        block = promise.block
        if block is None or block.start_time is None:
            continue
        if block.start_time < window_start:
            continue
        if window_end is not None and block.start_time > window_end:
            continue
        due.append(DueReminder(
            promise_id=promise.id,
            user_id=promise.user_id,
            class_name=block.study_class.name if block.study_class else "Your study session",
            block_date=block.block_date,
            start_time=block.start_time,
            duration_minutes=block.duration_minutes,
        ))
    return due
