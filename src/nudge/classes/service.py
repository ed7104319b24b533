"""Classes, their syllabus output, and the class aggregate procedure."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.classes.progress import ClassProgress
from nudge.db.models import Assignment, ClassCompletionCelebration, StudyClass, StudySession, SyllabusTopic
from nudge.errors import NotFoundError, ValidationError
from nudge.gamification.streak_engine import increment_streak

logger = logging.getLogger(__name__)

DIFFICULTIES = frozenset({"easy", "medium", "hard"})


class ClassOrder(str, Enum):
    CREATED = "created"
    PROGRESS = "progress"


async def list_classes(db: AsyncSession, user_id: str, order: ClassOrder = ClassOrder.CREATED) -> list[StudyClass]:
    """The user's classes, oldest first or furthest along first."""
    stmt = select(StudyClass).where(StudyClass.user_id == user_id)
    if order is ClassOrder.PROGRESS:
        stmt = stmt.order_by(StudyClass.progress_percentage.desc(), StudyClass.name)
    else:
        stmt = stmt.order_by(StudyClass.created_at.asc(), StudyClass.name)
    result = await db.execute(stmt)
    return list(result.scalars())


async def get_class(db: AsyncSession, user_id: str, class_id: str) -> StudyClass:
    """Fetch a class owned by ``user_id``. Raises NotFoundError otherwise."""
    result = await db.execute(
        select(StudyClass).where(StudyClass.id == class_id, StudyClass.user_id == user_id)
    )
    study_class = result.scalar_one_or_none()
    if study_class is None:
        raise NotFoundError("Class not found")
    return study_class


def _check_difficulty(difficulty: str | None) -> None:
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise ValidationError(f"Difficulty must be one of: {', '.join(sorted(DIFFICULTIES))}")


async def create_class(
    db: AsyncSession,
    user_id: str,
    name: str,
    syllabus_url: str | None = None,
    difficulty: str | None = None,
    *,
    commit: bool = True,
) -> StudyClass:
    name = name.strip()
    if not name:
        raise ValidationError("Class name is required")
    _check_difficulty(difficulty)

    study_class = StudyClass(user_id=user_id, name=name, syllabus_url=syllabus_url, difficulty=difficulty)
    db.add(study_class)
    if commit:
        await db.commit()
        await db.refresh(study_class)
    else:
        await db.flush()
    return study_class


async def update_class(
    db: AsyncSession,
    user_id: str,
    class_id: str,
    *,
    name: str | None = None,
    syllabus_url: str | None = None,
    difficulty: str | None = None,
) -> StudyClass:
    """Edit user-owned fields. Aggregates are never written here."""
    study_class = await get_class(db, user_id, class_id)
    if name is not None:
        if not name.strip():
            raise ValidationError("Class name is required")
        study_class.name = name.strip()
    if syllabus_url is not None:
        study_class.syllabus_url = syllabus_url
    if difficulty is not None:
        _check_difficulty(difficulty)
        study_class.difficulty = difficulty
    study_class.updated_at = datetime.now(timezone.utc)
    await db.commit()
    return study_class


async def delete_class(db: AsyncSession, user_id: str, class_id: str) -> None:
    study_class = await get_class(db, user_id, class_id)
    await db.delete(study_class)
    await db.commit()


async def list_assignments(db: AsyncSession, user_id: str, class_id: str) -> list[Assignment]:
    """Assignments for a class, earliest due date first, undated last."""
    await get_class(db, user_id, class_id)
    result = await db.execute(
        select(Assignment)
        .where(Assignment.class_id == class_id)
        .order_by(Assignment.due_date.is_(None), Assignment.due_date.asc(), Assignment.title)
    )
    return list(result.scalars())


async def list_topics(db: AsyncSession, user_id: str, class_id: str) -> list[SyllabusTopic]:
    await get_class(db, user_id, class_id)
    result = await db.execute(
        select(SyllabusTopic).where(SyllabusTopic.class_id == class_id).order_by(SyllabusTopic.order_index)
    )
    return list(result.scalars())


# ── Progress ──


async def studied_minutes(db: AsyncSession, class_id: str) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(StudySession.minutes_studied), 0)).where(StudySession.class_id == class_id)
    )
    return int(result.scalar_one())


async def class_progress(db: AsyncSession, study_class: StudyClass, *, recompute: bool = False) -> ClassProgress:
    """Progress from the cached row, or recomputed from sessions."""
    if recompute:
        result = await db.execute(
            select(StudySession.minutes_studied).where(StudySession.class_id == study_class.id)
        )
        return ClassProgress.from_sessions(study_class.id, study_class.estimated_total_minutes, result.scalars())
    return ClassProgress.from_cached(
        study_class.id,
        study_class.estimated_total_minutes,
        study_class.progress_percentage,
        study_class.estimated_remaining_minutes,
    )


async def apply_session_to_class(
    db: AsyncSession, study_class: StudyClass, session_date: date
) -> tuple[ClassProgress, ClassCompletionCelebration | None]:
    """Fold a just-flushed session into the class aggregates. Caller commits.

    Sole writer of progress_percentage, streak, last_studied_date and
    estimated_remaining_minutes. Reaching 100% records a pending completion
    celebration, returned alongside the progress the first time only.
    """
    study_class.streak = increment_streak(study_class.last_studied_date, study_class.streak or 0, session_date)
    if study_class.last_studied_date is None or session_date > study_class.last_studied_date:
        study_class.last_studied_date = session_date

    was_complete = study_class.progress_percentage >= 100
    progress = await class_progress(db, study_class, recompute=True)
    study_class.progress_percentage = progress.percentage
    study_class.estimated_remaining_minutes = progress.remaining
    study_class.updated_at = datetime.now(timezone.utc)

    celebration = None
    if progress.is_complete and not was_complete:
        celebration = await record_completion(db, study_class)
    return progress, celebration


# ── Completion celebrations ──


async def record_completion(db: AsyncSession, study_class: StudyClass) -> ClassCompletionCelebration | None:
    """Create the one-time completion celebration. Returns None if it already exists."""
    existing = await db.execute(
        select(ClassCompletionCelebration.id).where(
            ClassCompletionCelebration.user_id == study_class.user_id,
            ClassCompletionCelebration.class_id == study_class.id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        return None

    celebration = ClassCompletionCelebration(user_id=study_class.user_id, class_id=study_class.id)
    try:
        async with db.begin_nested():
            db.add(celebration)
    except IntegrityError:
        return None  # Concurrent session completed the class first
    logger.info("Class %s completed by %s", study_class.id, study_class.user_id)
    return celebration


async def get_pending_completions(db: AsyncSession, user_id: str) -> list[dict]:
    """Completion celebrations the user hasn't seen yet."""
    result = await db.execute(
        select(ClassCompletionCelebration, StudyClass.name)
        .join(StudyClass, ClassCompletionCelebration.class_id == StudyClass.id)
        .where(
            ClassCompletionCelebration.user_id == user_id,
            ClassCompletionCelebration.celebrated == False,  # noqa: E712
        )
        .order_by(ClassCompletionCelebration.created_at.asc())
    )
    return [
        {
            "celebration_id": row.ClassCompletionCelebration.id,
            "class_id": row.ClassCompletionCelebration.class_id,
            "class_name": row.name,
            "created_at": row.ClassCompletionCelebration.created_at,
        }
        for row in result
    ]


async def acknowledge_completion(db: AsyncSession, user_id: str, celebration_id: str) -> bool:
    """Mark a completion celebration as seen. Returns True if updated."""
    result = await db.execute(
        select(ClassCompletionCelebration).where(
            ClassCompletionCelebration.id == celebration_id,
            ClassCompletionCelebration.user_id == user_id,
            ClassCompletionCelebration.celebrated == False,  # noqa: E712
        )
    )
    cel = result.scalar_one_or_none()
    if cel is None:
        return False

    cel.celebrated = True
    cel.celebrated_at = datetime.now(timezone.utc)
    await db.commit()
    return True
