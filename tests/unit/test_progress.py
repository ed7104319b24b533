"""Unit tests for class progress and the one-time completion signal."""

from __future__ import annotations

import pytest

from nudge.classes.progress import ClassProgress, CompletionTracker, compute_progress, remaining_minutes


class TestComputeProgress:

    @pytest.mark.parametrize(
        ("completed", "total", "expected"),
        [
            (0, 600, 0),
            (60, 600, 10),
            (200, 600, 33),
            (400, 600, 67),
            (600, 600, 100),
            (900, 600, 100),
        ],
    )
    def test_rounded_and_clamped(self, completed, total, expected):
        assert compute_progress(completed, total) == expected

    def test_no_estimate_is_zero(self):
        assert compute_progress(120, 0) == 0
        assert compute_progress(120, -5) == 0

    def test_negative_completed_clamps_to_zero(self):
        assert compute_progress(-50, 600) == 0


class TestRemaining:

    def test_never_negative(self):
        assert remaining_minutes(900, 600) == 0

    def test_partial(self):
        assert remaining_minutes(150, 600) == 450


class TestClassProgress:

    def test_from_sessions(self):
        progress = ClassProgress.from_sessions("c1", 600, [30, 45, 75])
        assert progress.completed_minutes == 150
        assert progress.percentage == 25
        assert progress.remaining == 450
        assert not progress.is_complete

    def test_rounding_to_full_zeroes_remaining(self):
        # 598 / 600 rounds to 100%
        progress = ClassProgress.from_sessions("c1", 600, [598])
        assert progress.percentage == 100
        assert progress.remaining == 0
        assert progress.is_complete

    def test_no_sessions(self):
        progress = ClassProgress.from_sessions("c1", 600, [])
        assert (progress.percentage, progress.remaining) == (0, 600)

    def test_from_cached_clamps_out_of_range_values(self):
        progress = ClassProgress.from_cached("c1", 600, 140, 50)
        assert progress.percentage == 100
        assert progress.remaining == 0

    def test_from_cached_remaining_bounded_by_total(self):
        progress = ClassProgress.from_cached("c1", 600, 10, 900)
        assert progress.remaining == 600
        assert progress.completed_minutes == 0


class TestCompletionTracker:

    def test_fires_once_per_class(self):
        tracker = CompletionTracker()
        assert tracker.check("c1", 100) is True
        assert tracker.check("c1", 100) is False
        assert tracker.seen("c1")

    def test_below_full_never_fires(self):
        tracker = CompletionTracker()
        assert tracker.check("c1", 99) is False
        assert not tracker.seen("c1")

    def test_classes_tracked_independently(self):
        tracker = CompletionTracker()
        assert tracker.check("c1", 100)
        assert tracker.check("c2", 100)

    def test_trackers_do_not_share_state(self):
        first, second = CompletionTracker(), CompletionTracker()
        first.check("c1", 100)
        assert second.check("c1", 100) is True
