"""Calendar bucketing and date/time labels for study blocks.

All comparisons are between local calendar dates (``date`` objects or
``YYYY-MM-DD`` strings). No timezone conversion and no timestamp arithmetic
is done when deciding which day a block belongs to.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from typing import Protocol, TypeVar

ALL_DAY_LABEL = "All day"


class BlockLike(Protocol):
    block_date: date
    start_time: time | None


B = TypeVar("B", bound=BlockLike)


def parse_date(value: date | str) -> date:
    """Accept a ``date`` or ``YYYY-MM-DD`` string; datetimes are truncated to their date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def parse_time(value: time | str | None) -> time | None:
    """Accept a ``time``, ``HH:MM`` / ``HH:MM:SS`` string, or None."""
    if value is None or isinstance(value, time):
        return value
    value = value.strip()
    if not value:
        return None
    return time.fromisoformat(value)


def local_today() -> date:
    """The runtime's local calendar day."""
    return date.today()


def local_date(timestamp: datetime) -> date:
    """Calendar day of a timestamp in the runtime's timezone; naive values are taken as local."""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone()
    return timestamp.date()


def _block_sort_key(block: BlockLike) -> tuple[int, time]:
    # All-day blocks sort ahead of timed blocks on the same day
    if block.start_time is None:
        return (0, time.min)
    return (1, block.start_time)


def group_blocks_by_date(blocks: Iterable[B]) -> dict[date, list[B]]:
    """Bucket blocks by calendar date.

    Dates come out ascending; within a date, all-day blocks first, then by
    start time ascending. Blocks with equal keys keep their input order.
    """
    grouped: dict[date, list[B]] = {}
    for block in blocks:
        grouped.setdefault(parse_date(block.block_date), []).append(block)
    return {d: sorted(grouped[d], key=_block_sort_key) for d in sorted(grouped)}


def format_date(value: date | str, today: date | str | None = None) -> str:
    """Label a date as ``Today``, ``Tomorrow`` or ``Monday, Mar 10``."""
    d = parse_date(value)
    t = parse_date(today) if today is not None else local_today()
    if d == t:
        return "Today"
    if d == t + timedelta(days=1):
        return "Tomorrow"
    return f"{calendar.day_name[d.weekday()]}, {calendar.month_abbr[d.month]} {d.day}"


def format_time(value: time | str | None) -> str:
    """12-hour label like ``4:05 PM``; a missing start time is ``All day``."""
    t = parse_time(value)
    if t is None:
        return ALL_DAY_LABEL
    suffix = "PM" if t.hour >= 12 else "AM"
    display_hour = t.hour % 12 or 12
    return f"{display_hour}:{t.minute:02d} {suffix}"


def week_start(anchor: date | str) -> date:
    """The Sunday that starts the calendar week containing ``anchor``."""
    d = parse_date(anchor)
    # weekday(): Monday=0 .. Sunday=6
    return d - timedelta(days=(d.weekday() + 1) % 7)


def week_dates(anchor: date | str) -> list[date]:
    """The 7 dates of the calendar week (Sunday..Saturday) containing ``anchor``."""
    start = week_start(anchor)
    return [start + timedelta(days=i) for i in range(7)]


def month_dates(anchor: date | str) -> list[date]:
    """Every date in the month containing ``anchor``."""
    d = parse_date(anchor)
    days_in_month = calendar.monthrange(d.year, d.month)[1]
    return [date(d.year, d.month, day) for day in range(1, days_in_month + 1)]


def blocks_for_date(blocks: Iterable[B], day: date | str) -> list[B]:
    """Blocks on a single calendar day, in display order."""
    target = parse_date(day)
    return sorted((b for b in blocks if parse_date(b.block_date) == target), key=_block_sort_key)


def format_time_ago(timestamp: datetime, now: datetime | None = None) -> str:
    """Relative label for feed posts: ``just now``, ``5m ago``, ``3h ago``, ``2d ago``."""
    if now is None:
        now = datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = int((now - timestamp).total_seconds())
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def format_last_studied(value: date | str | None, today: date | str | None = None) -> str:
    """``Today``, ``Yesterday`` or ``N days ago`` for a class's last study date."""
    if value is None:
        return "Never studied"
    d = parse_date(value)
    t = parse_date(today) if today is not None else local_today()
    days = abs((t - d).days)
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    return f"{days} days ago"


def format_minutes(minutes: int) -> str:
    """Compact duration label: whole hours as ``2h``, otherwise ``45m``."""
    hours = minutes // 60
    return f"{hours}h" if hours > 0 else f"{minutes}m"
