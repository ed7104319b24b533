"""Pydantic schemas for profile endpoints."""

from __future__ import annotations

from datetime import date, time

from pydantic import BaseModel, Field


class CreateProfileRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_.]+$")
    display_name: str = Field(..., min_length=1, max_length=128)


class UpdateProfileRequest(BaseModel):
    display_name: str | None = Field(None, min_length=1, max_length=128)
    bio: str | None = Field(None, max_length=500)
    photo_url: str | None = None


class TimePreferencesRequest(BaseModel):
    weekday_study_range: str | None = Field(None, max_length=32)
    weekend_study_range: str | None = Field(None, max_length=32)
    earliest_study_time: time | None = None
    latest_study_time: time | None = None


class ProfileResponse(BaseModel):
    user_id: str
    username: str
    display_name: str
    initial: str
    bio: str | None = None
    photo_url: str | None = None
    streak: int
    longest_streak: int
    total_minutes: int
    total_time_label: str
    last_study_date: date | None = None
    weekday_study_range: str | None = None
    weekend_study_range: str | None = None
    earliest_study_time: time | None = None
    latest_study_time: time | None = None
