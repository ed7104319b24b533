"""Unit tests for the pinky promise lifecycle."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from nudge.promises.state_machine import (
    ACTIVE,
    BROKEN,
    COMPLETED,
    VALID_TRANSITIONS,
    reconcile_status,
    validate_transition,
)

TODAY = date(2025, 3, 10)


class TestPromiseStateMachine:

    def test_valid_transitions_structure(self):
        assert set(VALID_TRANSITIONS) == {ACTIVE, COMPLETED, BROKEN}

    def test_active_can_complete_or_break(self):
        validate_transition(ACTIVE, COMPLETED)
        validate_transition(ACTIVE, BROKEN)

    def test_outcomes_are_terminal(self):
        assert VALID_TRANSITIONS[COMPLETED] == []
        assert VALID_TRANSITIONS[BROKEN] == []

    @pytest.mark.parametrize(
        ("current", "target"),
        [(COMPLETED, ACTIVE), (BROKEN, COMPLETED), (COMPLETED, BROKEN), (ACTIVE, ACTIVE)],
    )
    def test_invalid_transition_rejected(self, current, target):
        with pytest.raises(ValueError, match="Invalid transition"):
            validate_transition(current, target)


class TestReconcileStatus:

    def test_past_with_session_completes(self):
        assert reconcile_status(TODAY - timedelta(days=1), True, TODAY) == COMPLETED

    def test_past_without_session_breaks(self):
        assert reconcile_status(TODAY - timedelta(days=1), False, TODAY) == BROKEN

    def test_today_stays_active(self):
        assert reconcile_status(TODAY, False, TODAY) is None

    def test_future_stays_active(self):
        assert reconcile_status(TODAY + timedelta(days=2), False, TODAY) is None

    def test_resolved_promise_left_alone(self):
        assert reconcile_status(TODAY - timedelta(days=3), True, TODAY, BROKEN) is None
