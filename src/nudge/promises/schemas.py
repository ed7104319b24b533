"""Pydantic schemas for pinky promise endpoints."""

from __future__ import annotations

from datetime import date, datetime, time

from pydantic import BaseModel


class CreatePromiseRequest(BaseModel):
    block_id: str


class PromiseResponse(BaseModel):
    id: str
    block_id: str
    promise_date: date
    status: str
    class_name: str | None = None
    start_time: time | None = None
    duration_minutes: int | None = None
    created_at: datetime | None = None
    resolved_at: datetime | None = None


class PromiseListResponse(BaseModel):
    promises: list[PromiseResponse]
