"""Integration tests for reactions, the friend feed, buddies and the leaderboard."""

from __future__ import annotations

import json
from datetime import date, timedelta
from unittest.mock import AsyncMock

import httpx
import pytest

from nudge.errors import AlreadyExistsError, NotFoundError, ValidationError
from nudge.functions.client import FunctionsClient
from nudge.functions.guard import InFlightGuard
from nudge.social import reaction_service
from nudge.social.demo_service import create_demo_posts
from nudge.social.feed_service import build_feed, build_user_posts, placeholder_feed
from nudge.social.friendship_service import add_buddy, get_friend_ids, list_buddies, suggest_buddies
from nudge.social.leaderboard_service import LeaderboardMetric, get_leaderboard
from nudge.social.post_service import post_nudge
from nudge.social.reaction_service import REACTION_EMOJIS, has_reacted, reaction_count, toggle_reaction
from nudge.social.realtime import post_channel
from nudge.users.service import UNKNOWN_DISPLAY_NAME
from nudge.ws.manager import ConnectionManager
from nudge.ws.router import visible_channels
from tests.conftest import ALICE, BOB, CAROL, noon_utc

DAY = date(2025, 3, 10)


@pytest.fixture
def alice_post(db_session, make_profile, make_class):
    async def _post(minutes: int = 30, day: date = DAY, caption: str | None = None):
        bio = await make_class(ALICE, "Biology")
        result = await post_nudge(
            db_session, ALICE, class_id=bio.id, minutes_studied=minutes, completed_at=noon_utc(day), caption=caption
        )
        return result.post

    return _post


class TestReactions:

    @pytest.mark.asyncio
    async def test_toggle_round_trip(self, db_session, alice_post, befriend):
        await befriend(ALICE, BOB)
        post = await alice_post()

        added = await toggle_reaction(db_session, post.id, "🔥", BOB)
        assert (added.reacted, added.count) == (True, 1)
        assert await has_reacted(db_session, post.id, "🔥", BOB)

        removed = await toggle_reaction(db_session, post.id, "🔥", BOB)
        assert (removed.reacted, removed.count) == (False, 0)
        assert await reaction_count(db_session, post.id, "🔥") == 0

    @pytest.mark.asyncio
    async def test_emojis_counted_independently(self, db_session, alice_post, befriend):
        await befriend(ALICE, BOB)
        post = await alice_post()
        await toggle_reaction(db_session, post.id, "🔥", BOB)
        await toggle_reaction(db_session, post.id, "🔥", ALICE)
        await toggle_reaction(db_session, post.id, "💪", BOB)
        assert await reaction_count(db_session, post.id, "🔥") == 2
        assert await reaction_count(db_session, post.id, "💪") == 1

    @pytest.mark.asyncio
    async def test_unsupported_emoji(self, db_session, alice_post):
        post = await alice_post()
        with pytest.raises(ValidationError, match="Unsupported reaction"):
            await toggle_reaction(db_session, post.id, "🍕", ALICE)

    @pytest.mark.asyncio
    async def test_post_outside_friend_set_is_not_found(self, db_session, alice_post):
        post = await alice_post()
        with pytest.raises(NotFoundError):
            await toggle_reaction(db_session, post.id, "🔥", CAROL)

    @pytest.mark.asyncio
    async def test_missing_post(self, db_session):
        with pytest.raises(NotFoundError):
            await toggle_reaction(db_session, "no-such-post", "🔥", ALICE)

    @pytest.mark.asyncio
    async def test_lost_insert_race_counts_as_reacted(self, db_session, alice_post, befriend, monkeypatch):
        await befriend(ALICE, BOB)
        post_id = (await alice_post()).id
        await toggle_reaction(db_session, post_id, "🔥", BOB)

        # The lookup misses the row a concurrent request committed first
        monkeypatch.setattr(reaction_service, "_find_reaction", AsyncMock(return_value=None))
        redis = AsyncMock()
        result = await toggle_reaction(db_session, post_id, "🔥", BOB, redis)

        assert (result.reacted, result.count) == (True, 1)
        redis.publish.assert_not_awaited()
        assert await reaction_count(db_session, post_id, "🔥") == 1

    @pytest.mark.asyncio
    async def test_change_published_to_post_channel(self, db_session, alice_post):
        post = await alice_post()
        redis = AsyncMock()
        await toggle_reaction(db_session, post.id, "⭐", ALICE, redis)
        channel, _ = redis.publish.await_args.args
        assert channel == f"pubsub:post:{post.id}"


class TestFeed:

    @pytest.mark.asyncio
    async def test_newest_first_with_buddies(self, db_session, make_profile, make_class, befriend):
        await make_profile(ALICE, "alice", "Alice Ng")
        await make_profile(BOB, "bob", "Bob Ray")
        await befriend(BOB, ALICE)
        alice_class = await make_class(ALICE, "Biology")
        bob_class = await make_class(BOB, "Calculus")

        await post_nudge(db_session, ALICE, class_id=alice_class.id, minutes_studied=30, completed_at=noon_utc(DAY))
        await post_nudge(
            db_session, BOB, class_id=bob_class.id, minutes_studied=45, completed_at=noon_utc(DAY + timedelta(days=1))
        )

        feed = await build_feed(db_session, ALICE)
        assert [item.username for item in feed] == ["bob", "alice"]
        assert feed[0].class_name == "Calculus"
        assert feed[0].display_name == "Bob Ray"
        assert feed[1].minutes_studied == 30

    @pytest.mark.asyncio
    async def test_strangers_excluded(self, db_session, make_class):
        carol_class = await make_class(CAROL)
        await post_nudge(db_session, CAROL, class_id=carol_class.id, minutes_studied=30)
        assert await build_feed(db_session, ALICE) == []

    @pytest.mark.asyncio
    async def test_missing_author_profile_uses_fallback(self, db_session, alice_post):
        await alice_post()
        feed = await build_feed(db_session, ALICE)
        assert feed[0].display_name == UNKNOWN_DISPLAY_NAME
        assert feed[0].username == "unknown"

    @pytest.mark.asyncio
    async def test_reaction_summary_per_viewer(self, db_session, alice_post, befriend):
        await befriend(ALICE, BOB)
        post = await alice_post()
        await toggle_reaction(db_session, post.id, "🔥", BOB)

        item = (await build_feed(db_session, ALICE))[0]
        summary = {s["emoji"]: s for s in item.reaction_summary(ALICE)}
        assert list(summary) == list(REACTION_EMOJIS)
        assert summary["🔥"] == {"emoji": "🔥", "count": 1, "reacted": False}
        assert item.reaction_summary(BOB)[0]["reacted"] is True

    @pytest.mark.asyncio
    async def test_limit(self, db_session, make_class):
        bio = await make_class(ALICE)
        for i in range(4):
            await post_nudge(
                db_session, ALICE, class_id=bio.id, minutes_studied=10, completed_at=noon_utc(DAY + timedelta(days=i))
            )
        assert len(await build_feed(db_session, ALICE, limit=2)) == 2

    @pytest.mark.asyncio
    async def test_empty_feed_placeholders(self, db_session):
        feed = await build_feed(db_session, ALICE, placeholders=True)
        assert [item.id for item in feed] == ["placeholder-1", "placeholder-2", "placeholder-3"]
        assert all(item.placeholder for item in feed)

    @pytest.mark.asyncio
    async def test_no_placeholders_once_viewer_has_buddies(self, db_session, befriend):
        await befriend(ALICE, BOB)
        assert await build_feed(db_session, ALICE, placeholders=True) == []

    @pytest.mark.asyncio
    async def test_own_posts_newest_first(self, db_session, alice_post, befriend):
        await befriend(ALICE, BOB)
        older = await alice_post(caption="older", day=DAY - timedelta(days=1))
        newer = await alice_post(caption="newer")
        assert [item.id for item in await build_user_posts(db_session, ALICE)] == [newer.id, older.id]
        assert await build_user_posts(db_session, BOB) == []

    def test_placeholders_newest_first(self):
        feed = placeholder_feed()
        assert feed[0].created_at > feed[1].created_at > feed[2].created_at


class TestBuddies:

    @pytest.mark.asyncio
    async def test_add_buddy_is_symmetric(self, db_session, make_profile):
        await make_profile(ALICE, "alice")
        await make_profile(BOB, "bob")
        await add_buddy(db_session, ALICE, BOB)
        assert await get_friend_ids(db_session, ALICE) == {BOB}
        assert await get_friend_ids(db_session, BOB) == {ALICE}
        assert [p.username for p in await list_buddies(db_session, BOB)] == ["alice"]

    @pytest.mark.asyncio
    async def test_duplicate_in_either_direction(self, db_session, make_profile):
        await make_profile(ALICE, "alice")
        await make_profile(BOB, "bob")
        await add_buddy(db_session, ALICE, BOB)
        with pytest.raises(AlreadyExistsError):
            await add_buddy(db_session, BOB, ALICE)

    @pytest.mark.asyncio
    async def test_self_and_unknown(self, db_session, make_profile):
        await make_profile(ALICE, "alice")
        with pytest.raises(ValidationError):
            await add_buddy(db_session, ALICE, ALICE)
        with pytest.raises(NotFoundError):
            await add_buddy(db_session, ALICE, CAROL)

    @pytest.mark.asyncio
    async def test_suggestions_exclude_self_and_buddies(self, db_session, make_profile, befriend):
        await make_profile(ALICE, "alice")
        await make_profile(BOB, "bob")
        await make_profile(CAROL, "carol", streak=4)
        await befriend(ALICE, BOB)
        assert [p.username for p in await suggest_buddies(db_session, ALICE)] == ["carol"]


class TestLeaderboard:

    @pytest.mark.asyncio
    async def test_streak_ranking_ignores_stale_streaks(self, db_session, make_profile):
        today = DAY
        await make_profile(ALICE, "alice", streak=3, last_study_date=today)
        await make_profile(BOB, "bob", streak=9, last_study_date=today - timedelta(days=5))
        await make_profile(CAROL, "carol", streak=5, last_study_date=today - timedelta(days=1))

        board = await get_leaderboard(db_session, LeaderboardMetric.STREAK, viewer_id=ALICE, today=today)
        assert [(e["username"], e["value"]) for e in board] == [("carol", 5), ("alice", 3), ("bob", 0)]
        assert [e["rank"] for e in board] == [1, 2, 3]
        assert board[1]["is_viewer"] is True

    @pytest.mark.asyncio
    async def test_limit_applies_to_displayed_streak(self, db_session, make_profile):
        await make_profile(ALICE, "alice", streak=2, last_study_date=DAY)
        await make_profile(BOB, "bob", streak=40, last_study_date=DAY - timedelta(days=3))
        await make_profile(CAROL, "carol", streak=12)

        board = await get_leaderboard(db_session, LeaderboardMetric.STREAK, limit=1, today=DAY)
        assert [(e["username"], e["value"]) for e in board] == [("alice", 2)]

    @pytest.mark.asyncio
    async def test_total_minutes_friends_only(self, db_session, make_profile, befriend):
        await make_profile(ALICE, "alice", total_minutes=100)
        await make_profile(BOB, "bob", total_minutes=300)
        await make_profile(CAROL, "carol", total_minutes=900)
        await befriend(ALICE, BOB)

        board = await get_leaderboard(
            db_session, LeaderboardMetric.TOTAL_MINUTES, viewer_id=ALICE, friends_only=True, today=DAY
        )
        assert [(e["username"], e["value"]) for e in board] == [("bob", 300), ("alice", 100)]

    @pytest.mark.asyncio
    async def test_ties_break_by_username(self, db_session, make_profile):
        await make_profile(BOB, "zed", total_minutes=50)
        await make_profile(ALICE, "amy", total_minutes=50)
        board = await get_leaderboard(db_session, LeaderboardMetric.TOTAL_MINUTES, today=DAY)
        assert [e["username"] for e in board] == ["amy", "zed"]


class TestRealtimeVisibility:

    @pytest.mark.asyncio
    async def test_only_friend_set_posts_are_subscribable(self, db_session, alice_post, befriend):
        await befriend(ALICE, BOB)
        channel = post_channel((await alice_post()).id)

        assert await visible_channels(db_session, ALICE, [channel]) == [channel]
        assert await visible_channels(db_session, BOB, [channel]) == [channel]
        assert await visible_channels(db_session, CAROL, [channel]) == []

    @pytest.mark.asyncio
    async def test_sync_keeps_visible_subset(self, db_session, alice_post):
        channel = post_channel((await alice_post()).id)
        requested = ["post:no-such-post", channel, "user:alice"]

        mgr = ConnectionManager()
        await mgr.connect(AsyncMock(), "c1", ALICE)
        accepted = await mgr.replace_subscriptions("c1", await visible_channels(db_session, ALICE, requested))
        assert accepted == [channel]


def demo_functions(posts_created: int, calls: list) -> FunctionsClient:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True, "postsCreated": posts_created})

    http = httpx.AsyncClient(base_url="http://functions.test", transport=httpx.MockTransport(handler))
    return FunctionsClient("http://functions.test", http_client=http)


class TestDemoPosts:

    @pytest.mark.asyncio
    async def test_sends_every_class(self, db_session, make_class):
        bio = await make_class(ALICE, "Biology")
        art = await make_class(ALICE, "Art")
        calls: list = []

        created = await create_demo_posts(db_session, demo_functions(4, calls), ALICE, guard=InFlightGuard("demo"))
        assert created == 4
        assert calls[0]["userId"] == ALICE
        assert sorted(calls[0]["classIds"]) == sorted([bio.id, art.id])

    @pytest.mark.asyncio
    async def test_requires_a_class(self, db_session):
        calls: list = []
        with pytest.raises(ValidationError, match="add some classes"):
            await create_demo_posts(db_session, demo_functions(1, calls), ALICE, guard=InFlightGuard("demo"))
        assert calls == []

    @pytest.mark.asyncio
    async def test_second_call_while_running_rejected(self, db_session, make_class):
        await make_class(ALICE)
        guard = InFlightGuard("create-demo-posts")
        calls: list = []
        async with guard.hold(ALICE):
            with pytest.raises(AlreadyExistsError):
                await create_demo_posts(db_session, demo_functions(1, calls), ALICE, guard=guard)
        assert calls == []
