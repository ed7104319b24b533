"""Pydantic response models for streak endpoints."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class StreakResponse(BaseModel):
    current_streak: int
    longest_streak: int
    last_study_date: date | None = None
    studied_today: bool
    study_dates: list[date] = []
