"""Pydantic schemas for feed, reaction, buddy and leaderboard endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ReactionSummary(BaseModel):
    emoji: str
    count: int
    reacted: bool


class FeedPostResponse(BaseModel):
    id: str
    user_id: str
    display_name: str
    username: str
    initial: str
    author_photo_url: str | None = None
    class_name: str | None = None
    photo_url: str
    front_photo_url: str | None = None
    back_photo_url: str | None = None
    timelapse_url: str | None = None
    minutes_studied: int
    caption: str | None = None
    created_at: datetime
    time_ago: str
    reactions: list[ReactionSummary]
    placeholder: bool = False


class FeedResponse(BaseModel):
    posts: list[FeedPostResponse]


class ToggleReactionRequest(BaseModel):
    emoji: str = Field(..., min_length=1, max_length=16)


class ToggleReactionResponse(BaseModel):
    post_id: str
    emoji: str
    reacted: bool
    count: int


class CreateNudgeRequest(BaseModel):
    class_id: str | None = None
    minutes_studied: int = Field(..., gt=0, le=24 * 60)
    target_minutes: int | None = Field(None, gt=0)
    assignment_id: str | None = None
    block_id: str | None = None
    photo_url: str = ""
    front_photo_url: str | None = None
    back_photo_url: str | None = None
    timelapse_url: str | None = None
    caption: str | None = Field(None, max_length=500)
    visibility: str = "friends"


class CreateNudgeResponse(BaseModel):
    session_id: str
    post_id: str
    class_progress: int
    class_remaining_minutes: int
    class_complete: bool
    streak: int | None = None
    completion_celebration_id: str | None = None


class BuddyResponse(BaseModel):
    user_id: str
    username: str
    display_name: str
    initial: str
    photo_url: str | None = None
    streak: int
    total_minutes: int


class BuddyListResponse(BaseModel):
    buddies: list[BuddyResponse]


class AddBuddyRequest(BaseModel):
    user_id: str


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    username: str
    display_name: str
    photo_url: str | None = None
    value: int
    is_viewer: bool = False


class LeaderboardResponse(BaseModel):
    metric: str
    scope: str
    entries: list[LeaderboardEntry]


class DemoPostsResponse(BaseModel):
    posts_created: int
