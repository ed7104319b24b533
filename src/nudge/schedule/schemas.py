"""Pydantic schemas for calendar and study-plan endpoints."""

from __future__ import annotations

from datetime import date, time

from pydantic import BaseModel


class StudyBlockResponse(BaseModel):
    id: str
    class_id: str
    class_name: str | None = None
    assignment_id: str | None = None
    assignment_title: str | None = None
    block_date: date
    start_time: time | None = None
    time_label: str
    duration_minutes: int


class DayBucket(BaseModel):
    day: date
    label: str
    total_minutes: int
    blocks: list[StudyBlockResponse]


class ScheduleResponse(BaseModel):
    days: list[DayBucket]


class StudyPlanResponse(BaseModel):
    class_id: str
    class_name: str
    total_minutes: int
    days: list[DayBucket]
