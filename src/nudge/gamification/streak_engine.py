"""Daily streak rules.

A day counts toward a streak when at least one completed study session falls
on that local calendar date. The current streak may end today or yesterday:
studying yesterday but not yet today keeps the streak alive until a whole
day passes with no session.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from nudge.schedule.time_buckets import local_date, local_today, parse_date


@dataclass(frozen=True)
class StreakSummary:
    current: int
    longest: int
    last_study_date: date | None


def increment_streak(last_date: date | None, current_streak: int, session_date: date) -> int:
    """Apply one new session to a cached streak.

    last_date == session_date - 1  -> current_streak + 1
    last_date == session_date      -> current_streak (day already counted)
    anything else (gap or no history) -> 1

    A backdated session (older than last_date) leaves the streak alone.
    """
    if last_date is None:
        return 1
    if last_date >= session_date:
        return max(current_streak, 1)
    if last_date == session_date - timedelta(days=1):
        return current_streak + 1
    return 1


def distinct_study_dates(timestamps: Iterable[datetime | date | str]) -> list[date]:
    """Distinct local calendar dates, most recent first."""
    return sorted(
        {local_date(ts) if isinstance(ts, datetime) else parse_date(ts) for ts in timestamps},
        reverse=True,
    )


def current_streak(dates: Iterable[date], today: date | None = None) -> int:
    """Consecutive days ending today or yesterday.

    Walks distinct dates newest first and stops at the first gap.
    """
    if today is None:
        today = local_today()
    ordered = sorted(set(dates), reverse=True)
    # Sessions dated in the future do not count toward today's streak
    ordered = [d for d in ordered if d <= today]
    if not ordered or ordered[0] < today - timedelta(days=1):
        return 0

    streak = 1
    for previous, d in zip(ordered, ordered[1:]):
        if d != previous - timedelta(days=1):
            break
        streak += 1
    return streak


def longest_streak(dates: Iterable[date]) -> int:
    """Longest run of consecutive days ever observed."""
    ordered = sorted(set(dates))
    if not ordered:
        return 0

    longest = run = 1
    for previous, d in zip(ordered, ordered[1:]):
        run = run + 1 if d == previous + timedelta(days=1) else 1
        longest = max(longest, run)
    return longest


def compute_streaks(dates: Iterable[date], today: date | None = None) -> StreakSummary:
    """Current and longest streak from scratch.

    ``last_study_date`` ignores future-dated sessions, same as the current
    streak.
    """
    if today is None:
        today = local_today()
    unique = set(dates)
    past = [d for d in unique if d <= today]
    return StreakSummary(
        current=current_streak(unique, today),
        longest=longest_streak(unique),
        last_study_date=max(past) if past else None,
    )


def replay_streak(session_dates: Iterable[date]) -> int:
    """Feed session dates one at a time through ``increment_streak``."""
    streak = 0
    last: date | None = None
    for d in session_dates:
        streak = increment_streak(last, streak, d)
        if last is None or d > last:
            last = d
    return streak


def effective_streak(cached_streak: int, last_date: date | None, today: date | None = None) -> int:
    """What to display for a cached streak.

    The cached value is only bumped on session insert, so once a full day has
    passed with no session it is stale and displays as 0.
    """
    if today is None:
        today = local_today()
    if last_date is None or last_date < today - timedelta(days=1):
        return 0
    return cached_streak
