"""Pydantic schemas for onboarding completion."""

from __future__ import annotations

from datetime import time

from pydantic import BaseModel, Field


class StudyHoursPayload(BaseModel):
    study_range: str = Field(..., min_length=1, max_length=32)
    earliest: time | None = None
    latest: time | None = None


class OnboardingClassPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    syllabus_url: str | None = None
    syllabus_uploaded: bool = False
    onboarding_resolved: bool = False
    difficulty: str | None = None


class CompleteOnboardingRequest(BaseModel):
    weekday: StudyHoursPayload
    weekend: StudyHoursPayload
    classes: list[OnboardingClassPayload]


class OnboardedClass(BaseModel):
    id: str
    name: str
    syllabus_url: str | None = None
    needs_parsing: bool


class CompleteOnboardingResponse(BaseModel):
    classes: list[OnboardedClass]
