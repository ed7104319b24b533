"""Pydantic schemas for class endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class CreateClassRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    syllabus_url: str | None = None
    difficulty: str | None = None


class UpdateClassRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    syllabus_url: str | None = None
    difficulty: str | None = None


class ClassResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    syllabus_url: str | None = None
    ai_parsed: bool
    difficulty: str | None = None
    progress_percentage: int
    streak: int
    last_studied_date: date | None = None
    last_studied_label: str = "Never studied"
    estimated_total_minutes: int
    estimated_remaining_minutes: int


class ClassListResponse(BaseModel):
    classes: list[ClassResponse]


class TopicResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None = None
    order_index: int
    estimated_minutes: int


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    type: str
    due_date: date | None = None
    estimated_minutes: int


class AssignmentSummaryResponse(BaseModel):
    class_id: str
    class_name: str
    assignments: list[AssignmentResponse]
    topics: list[TopicResponse]
    total_minutes: int


class ParseSyllabusRequest(BaseModel):
    syllabus_url: str | None = None


class ParseSyllabusResponse(BaseModel):
    class_id: str
    ai_parsed: bool
    topics_count: int
    assignments_count: int
    study_blocks_count: int
    total_minutes: int


class CompletionCelebrationItem(BaseModel):
    celebration_id: str
    class_id: str
    class_name: str
    created_at: datetime


class PendingCompletionsResponse(BaseModel):
    celebrations: list[CompletionCelebrationItem]
