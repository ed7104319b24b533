"""Per-class completion percentage and remaining minutes."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


def compute_progress(completed_minutes: int, total_minutes: int) -> int:
    """Completion percentage, rounded and clamped to [0, 100].

    A class with no estimate (total <= 0) is 0% complete.
    """
    if total_minutes <= 0:
        return 0
    pct = round(completed_minutes / total_minutes * 100)
    return max(0, min(100, pct))


def remaining_minutes(completed_minutes: int, total_minutes: int) -> int:
    """Minutes still to study, never negative."""
    return max(0, total_minutes - completed_minutes)


@dataclass(frozen=True)
class ClassProgress:
    class_id: str
    completed_minutes: int
    total_minutes: int
    percentage: int
    remaining: int

    @property
    def is_complete(self) -> bool:
        return self.percentage >= 100

    @classmethod
    def from_sessions(cls, class_id: str, total_minutes: int, session_minutes: Iterable[int]) -> ClassProgress:
        """Recompute from the class's completed sessions."""
        completed = sum(session_minutes)
        pct = compute_progress(completed, total_minutes)
        remaining = 0 if pct >= 100 else remaining_minutes(completed, total_minutes)
        return cls(class_id, completed, total_minutes, pct, remaining)

    @classmethod
    def from_cached(cls, class_id: str, total_minutes: int, percentage: int, remaining: int) -> ClassProgress:
        """Trust the aggregates already stored on the class row."""
        pct = max(0, min(100, percentage))
        remaining = 0 if pct >= 100 else min(max(0, remaining), max(0, total_minutes))
        return cls(class_id, max(0, total_minutes - remaining), total_minutes, pct, remaining)


@dataclass
class CompletionTracker:
    """Fires the "class complete" signal at most once per class.

    One tracker lives for the duration of a client session; persisted
    celebrations cover the cross-session case.
    """

    _celebrated: set[str] = field(default_factory=set)

    def check(self, class_id: str, percentage: int) -> bool:
        if percentage < 100 or class_id in self._celebrated:
            return False
        self._celebrated.add(class_id)
        return True

    def seen(self, class_id: str) -> bool:
        return class_id in self._celebrated
