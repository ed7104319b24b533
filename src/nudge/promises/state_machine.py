"""Pinky promise lifecycle.

active -> completed | broken. Both outcomes are terminal. A promise is only
judged once its date has passed: today's and future promises stay active.
"""

from __future__ import annotations

from datetime import date

ACTIVE = "active"
COMPLETED = "completed"
BROKEN = "broken"

VALID_TRANSITIONS: dict[str, list[str]] = {
    ACTIVE: [COMPLETED, BROKEN],
    COMPLETED: [],
    BROKEN: [],
}


def validate_transition(current_status: str, target_status: str) -> None:
    """Validate a state transition. Raises ValueError if invalid."""
    valid = VALID_TRANSITIONS.get(current_status, [])
    if target_status not in valid:
        raise ValueError(
            f"Invalid transition: {current_status} -> {target_status}. "
            f"Valid transitions: {valid}"
        )


def reconcile_status(promise_date: date, has_session: bool, today: date, current_status: str = ACTIVE) -> str | None:
    """The status a promise should move to, or None to leave it alone."""
    if current_status != ACTIVE or promise_date >= today:
        return None
    return COMPLETED if has_session else BROKEN
