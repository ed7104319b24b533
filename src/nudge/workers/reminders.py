"""arq worker for pinky promise reminders and reconciliation.

Every few minutes: email owners of active promises whose block starts within
the reminder lead time, then resolve promises whose date has passed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from arq import cron
from arq.connections import RedisSettings
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.config import get_settings
from nudge.database import close_db, get_session_factory, init_db
from nudge.email.service import EmailService
from nudge.functions.retry import retry_idempotent
from nudge.promises.service import due_reminders, reconcile_promises
from nudge.users.service import get_profiles_batch

logger = logging.getLogger(__name__)


async def startup(ctx: dict) -> None:  # type: ignore[type-arg]
    settings = get_settings()
    await init_db(settings.database_url)
    ctx["email"] = EmailService()
    logger.info("Reminder worker started")


async def shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    await close_db()
    logger.info("Reminder worker shut down")


async def run_reminders(db: AsyncSession, email: EmailService, now: datetime, lead: timedelta) -> int:
    """Send one email per due promise. Returns the number sent."""
    settings = get_settings()
    due = await retry_idempotent(
        lambda: due_reminders(db, now, lead),
        attempts=settings.read_retry_attempts,
        base_delay=settings.read_retry_base_delay_seconds,
        max_delay=settings.read_retry_max_delay_seconds,
        retry_on=(OperationalError,),
    )
    logger.info("Found %d promises due for a reminder", len(due))

    profiles = await get_profiles_batch(db, list({r.user_id for r in due}))
    sent = 0
    for reminder in due:
        profile = profiles.get(reminder.user_id)
        if profile is None or not profile.email:
            logger.info("No email found for user %s", reminder.user_id)
            continue
        if await email.send_pinky_reminder(
            profile.email, reminder.class_name, reminder.start_time, reminder.duration_minutes
        ):
            sent += 1
    return sent


async def send_pinky_reminders(ctx: dict) -> dict[str, int]:  # type: ignore[type-arg]
    """Cron task: reminders first, then reconciliation of past promises."""
    settings = get_settings()
    now = datetime.now()
    email: EmailService = ctx["email"]

    async with get_session_factory()() as db:
        try:
            sent = await run_reminders(db, email, now, timedelta(minutes=settings.reminder_lead_minutes))
        except Exception:
            logger.exception("Failed to send pinky promise reminders")
            await db.rollback()
            sent = 0

        try:
            resolved = await reconcile_promises(db, now.date())
        except Exception:
            logger.exception("Failed to reconcile pinky promises")
            await db.rollback()
            resolved = {"completed": 0, "broken": 0}

    logger.info("Sent %d reminder(s); resolved %s", sent, resolved)
    return {"reminders_sent": sent, **resolved}


class WorkerSettings:
    """arq worker settings for promise reminders.

    Run with: arq nudge.workers.reminders.WorkerSettings
    """

    functions = [send_pinky_reminders]
    cron_jobs = [
        cron(send_pinky_reminders, minute=set(range(0, 60, get_settings().reminder_interval_minutes)), run_at_startup=True),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
    max_jobs = 4
    job_timeout = 240
