"""Social endpoints: feed, reactions, posting, buddies, leaderboard."""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.auth.dependencies import CurrentUser, get_current_user
from nudge.config import get_settings
from nudge.database import get_session
from nudge.db.models import Profile
from nudge.dependencies import get_functions_client, get_redis_dep
from nudge.functions.client import FunctionsClient
from nudge.gamification.streak_engine import effective_streak
from nudge.social.demo_service import create_demo_posts
from nudge.social.feed_service import FeedItem, build_feed, build_user_posts
from nudge.social.friendship_service import add_buddy, list_buddies, suggest_buddies
from nudge.social.leaderboard_service import LeaderboardMetric, get_leaderboard
from nudge.social.post_service import post_nudge
from nudge.social.reaction_service import toggle_reaction
from nudge.social.schemas import (
    AddBuddyRequest,
    BuddyListResponse,
    BuddyResponse,
    CreateNudgeRequest,
    CreateNudgeResponse,
    DemoPostsResponse,
    FeedPostResponse,
    FeedResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    ReactionSummary,
    ToggleReactionRequest,
    ToggleReactionResponse,
)
from nudge.users.service import initial_for

router = APIRouter(prefix="/api/v1", tags=["Social"])


def _post_response(item: FeedItem, viewer_id: str) -> FeedPostResponse:
    return FeedPostResponse(
        id=item.id,
        user_id=item.user_id,
        display_name=item.display_name,
        username=item.username,
        initial=initial_for(item.display_name),
        author_photo_url=item.author_photo_url,
        class_name=item.class_name,
        photo_url=item.photo_url,
        front_photo_url=item.front_photo_url,
        back_photo_url=item.back_photo_url,
        timelapse_url=item.timelapse_url,
        minutes_studied=item.minutes_studied,
        caption=item.caption,
        created_at=item.created_at,
        time_ago=item.time_ago(),
        reactions=[ReactionSummary(**r) for r in item.reaction_summary(viewer_id)],
        placeholder=item.placeholder,
    )


def _buddy_response(profile: Profile) -> BuddyResponse:
    return BuddyResponse(
        user_id=profile.user_id,
        username=profile.username,
        display_name=profile.display_name,
        initial=initial_for(profile.display_name),
        photo_url=profile.photo_url,
        streak=effective_streak(profile.streak, profile.last_study_date),
        total_minutes=profile.total_minutes,
    )


# ── Feed ──


@router.get("/feed", response_model=FeedResponse)
async def get_feed(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Posts by the viewer and their buddies, newest first."""
    settings = get_settings()
    items = await build_feed(
        db, user.id, limit=settings.feed_max_posts, placeholders=settings.feed_placeholder_enabled
    )
    return FeedResponse(posts=[_post_response(item, user.id) for item in items])


@router.get("/users/me/posts", response_model=FeedResponse)
async def get_my_posts(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """The viewer's own posts, newest first."""
    items = await build_user_posts(db, user.id, limit=get_settings().feed_max_posts)
    return FeedResponse(posts=[_post_response(item, user.id) for item in items])


@router.post("/feed/{post_id}/reactions", response_model=ToggleReactionResponse)
async def react_to_post(
    post_id: str,
    body: ToggleReactionRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: aioredis.Redis | None = Depends(get_redis_dep),
):
    """Toggle the viewer's reaction; subscribers of post:<id> get the patch."""
    result = await toggle_reaction(db, post_id, body.emoji, user.id, redis)
    return ToggleReactionResponse(
        post_id=result.post_id, emoji=result.emoji, reacted=result.reacted, count=result.count
    )


@router.post("/nudges", response_model=CreateNudgeResponse, status_code=201)
async def create_nudge(
    body: CreateNudgeRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: aioredis.Redis | None = Depends(get_redis_dep),
):
    """Post proof of study: records the session, the feed post, and updates streaks and progress."""
    result = await post_nudge(
        db,
        user.id,
        class_id=body.class_id,
        minutes_studied=body.minutes_studied,
        target_minutes=body.target_minutes,
        assignment_id=body.assignment_id,
        block_id=body.block_id,
        photo_url=body.photo_url,
        front_photo_url=body.front_photo_url,
        back_photo_url=body.back_photo_url,
        timelapse_url=body.timelapse_url,
        caption=body.caption,
        visibility=body.visibility,
        redis=redis,
    )
    return CreateNudgeResponse(
        session_id=result.session.id,
        post_id=result.post.id,
        class_progress=result.progress.percentage,
        class_remaining_minutes=result.progress.remaining,
        class_complete=result.progress.is_complete,
        streak=result.profile_streak,
        completion_celebration_id=result.celebration.id if result.celebration else None,
    )


@router.post("/feed/demo-posts", response_model=DemoPostsResponse)
async def generate_demo_posts(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    functions: FunctionsClient = Depends(get_functions_client),
):
    return DemoPostsResponse(posts_created=await create_demo_posts(db, functions, user.id))


# ── Buddies ──


@router.get("/buddies", response_model=BuddyListResponse)
async def get_buddies(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return BuddyListResponse(buddies=[_buddy_response(p) for p in await list_buddies(db, user.id)])


@router.get("/buddies/suggestions", response_model=BuddyListResponse)
async def get_buddy_suggestions(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    profiles = await suggest_buddies(db, user.id, limit=get_settings().buddy_suggestion_limit)
    return BuddyListResponse(buddies=[_buddy_response(p) for p in profiles])


@router.post("/buddies", status_code=201)
async def create_buddy(
    body: AddBuddyRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    await add_buddy(db, user.id, body.user_id)
    return {"status": "added", "user_id": body.user_id}


# ── Leaderboard ──


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    metric: LeaderboardMetric = Query(LeaderboardMetric.STREAK),
    scope: str = Query("global", pattern="^(global|friends)$"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    entries = await get_leaderboard(
        db,
        metric,
        viewer_id=user.id,
        friends_only=scope == "friends",
        limit=get_settings().leaderboard_size,
    )
    return LeaderboardResponse(
        metric=metric.value,
        scope=scope,
        entries=[LeaderboardEntry(**e) for e in entries],
    )
