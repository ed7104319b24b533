"""Multi-step onboarding state container.

Collects weekday/weekend study hours, the list of classes, and one syllabus
decision per class before anything is written to storage. Construct one
instance per user (or per test); nothing here is module-global.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import time
from enum import Enum
from typing import Any

from nudge.errors import NotFoundError, ValidationError


class OnboardingStep(str, Enum):
    COLLECTING_WEEKDAY_HOURS = "collecting_weekday_hours"
    COLLECTING_WEEKEND_HOURS = "collecting_weekend_hours"
    COLLECTING_CLASSES = "collecting_classes"
    PER_CLASS_SYLLABUS_UPLOAD = "per_class_syllabus_upload"
    COMPLETE = "complete"


STEP_ORDER: tuple[OnboardingStep, ...] = tuple(OnboardingStep)

# Fields update_class() accepts
_MUTABLE_CLASS_FIELDS = frozenset({"name", "syllabus_url", "syllabus_uploaded", "onboarding_resolved", "difficulty"})


@dataclass(frozen=True)
class OnboardingClass:
    """A class captured during onboarding, before it has a database id.

    ``syllabus_uploaded`` records whether a file was provided;
    ``onboarding_resolved`` records whether the user made a decision
    (uploaded or skipped). Completion gates on the latter.
    """

    id: str
    name: str
    syllabus_url: str | None = None
    syllabus_uploaded: bool = False
    onboarding_resolved: bool = False
    difficulty: str | None = None


@dataclass
class StudyHours:
    study_range: str | None = None
    earliest: time | None = None
    latest: time | None = None


@dataclass
class OnboardingStateMachine:
    step: OnboardingStep = OnboardingStep.COLLECTING_WEEKDAY_HOURS
    weekday: StudyHours = field(default_factory=StudyHours)
    weekend: StudyHours = field(default_factory=StudyHours)
    classes: list[OnboardingClass] = field(default_factory=list)

    # --- hours ---

    def set_weekday_hours(self, study_range: str, earliest: time | None = None, latest: time | None = None) -> None:
        self.weekday = StudyHours(study_range, earliest, latest)

    def set_weekend_hours(self, study_range: str, earliest: time | None = None, latest: time | None = None) -> None:
        self.weekend = StudyHours(study_range, earliest, latest)

    # --- classes ---

    def add_class(self, name: str) -> OnboardingClass:
        name = name.strip()
        if not name:
            raise ValidationError("Class name is required")
        added = OnboardingClass(id=str(uuid.uuid4()), name=name)
        self.classes.append(added)
        return added

    def get_class(self, class_id: str) -> OnboardingClass:
        for c in self.classes:
            if c.id == class_id:
                return c
        raise NotFoundError(f"Onboarding class {class_id} not found")

    def update_class(self, class_id: str, **patch: Any) -> OnboardingClass:  # noqa: ANN401
        unknown = set(patch) - _MUTABLE_CLASS_FIELDS
        if unknown:
            raise ValidationError(f"Unknown class fields: {', '.join(sorted(unknown))}")
        current = self.get_class(class_id)
        updated = replace(current, **patch)
        self.classes[self.classes.index(current)] = updated
        return updated

    def remove_class(self, class_id: str) -> None:
        self.classes.remove(self.get_class(class_id))

    def mark_uploaded(self, class_id: str, syllabus_url: str | None = None) -> OnboardingClass:
        return self.update_class(
            class_id, syllabus_url=syllabus_url, syllabus_uploaded=True, onboarding_resolved=True
        )

    def skip_class(self, class_id: str) -> OnboardingClass:
        return self.update_class(class_id, syllabus_uploaded=False, onboarding_resolved=True)

    @property
    def unresolved_classes(self) -> list[OnboardingClass]:
        return [c for c in self.classes if not c.onboarding_resolved]

    @property
    def is_complete(self) -> bool:
        return self.step is OnboardingStep.COMPLETE

    # --- navigation ---

    def can_enter(self, target: OnboardingStep) -> bool:
        try:
            self._check_gate(target)
        except ValidationError:
            return False
        return True

    def go_to_step(self, target: OnboardingStep) -> OnboardingStep:
        """Move to any step, forwards or back, subject to the gates."""
        self._check_gate(target)
        self.step = target
        return self.step

    def next_step(self) -> OnboardingStep:
        idx = STEP_ORDER.index(self.step)
        if idx == len(STEP_ORDER) - 1:
            return self.step
        return self.go_to_step(STEP_ORDER[idx + 1])

    def previous_step(self) -> OnboardingStep:
        idx = STEP_ORDER.index(self.step)
        if idx == 0:
            return self.step
        return self.go_to_step(STEP_ORDER[idx - 1])

    def _check_gate(self, target: OnboardingStep) -> None:
        target_idx = STEP_ORDER.index(target)
        if target_idx > STEP_ORDER.index(OnboardingStep.COLLECTING_CLASSES) and not self.classes:
            raise ValidationError("Add at least one class before continuing")
        if target is OnboardingStep.COMPLETE and self.unresolved_classes:
            names = ", ".join(c.name for c in self.unresolved_classes)
            raise ValidationError(f"Upload or skip a syllabus for: {names}")
