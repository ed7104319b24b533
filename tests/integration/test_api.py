"""End-to-end API tests through the ASGI app."""

from __future__ import annotations

from datetime import date, time, timedelta

import httpx
import pytest

from nudge.auth.jwt import create_access_token
from nudge.db.models import Assignment, SyllabusTopic
from nudge.functions.client import FunctionsClient
from nudge.schedule.time_buckets import local_today
from tests.conftest import ALICE, BOB, CAROL, auth_headers


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_ready_reports_missing_redis(self, client):
        data = (await client.get("/ready")).json()
        assert data["checks"]["database"] == "ok"
        assert data["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_version(self, client):
        assert (await client.get("/version")).json()["version"] == "0.1.0"


class TestAuth:

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/v1/classes")
        assert response.status_code == 401
        assert response.json() == {"detail": "Not authenticated"}

    @pytest.mark.asyncio
    async def test_expired_token(self, client):
        token = create_access_token(ALICE, expires_minutes=-5)
        response = await client.get("/api/v1/classes", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Token has expired"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get("/api/v1/classes", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestProfileApi:

    @pytest.mark.asyncio
    async def test_create_then_get(self, client):
        headers = auth_headers(ALICE, "alice@example.com")
        response = await client.post(
            "/api/v1/users/me", json={"username": "Alice", "display_name": "Alice Ng"}, headers=headers
        )
        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "alice"
        assert data["initial"] == "A"
        assert data["streak"] == 0
        assert data["total_time_label"] == "0m"

        me = await client.get("/api/v1/users/me", headers=headers)
        assert me.json()["display_name"] == "Alice Ng"

    @pytest.mark.asyncio
    async def test_username_conflict(self, client):
        await client.post("/api/v1/users/me", json={"username": "alice", "display_name": "A"}, headers=auth_headers(ALICE))
        response = await client.post(
            "/api/v1/users/me", json={"username": "alice", "display_name": "B"}, headers=auth_headers(BOB)
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_missing_profile(self, client):
        response = await client.get("/api/v1/users/me", headers=auth_headers(CAROL))
        assert response.status_code == 404
        assert response.json() == {"detail": "Profile not found"}

    @pytest.mark.asyncio
    async def test_time_preferences(self, client, make_profile):
        await make_profile(ALICE, "alice")
        response = await client.put(
            "/api/v1/users/me/time-preferences",
            json={"weekday_study_range": "4-6pm", "earliest_study_time": "16:00:00"},
            headers=auth_headers(ALICE),
        )
        assert response.status_code == 200
        assert response.json()["weekday_study_range"] == "4-6pm"
        assert response.json()["earliest_study_time"] == "16:00:00"


class TestClassesApi:

    @pytest.mark.asyncio
    async def test_crud(self, client):
        headers = auth_headers(ALICE)
        created = await client.post("/api/v1/classes", json={"name": "Chemistry"}, headers=headers)
        assert created.status_code == 201
        class_id = created.json()["id"]
        assert created.json()["progress_percentage"] == 0

        listed = await client.get("/api/v1/classes", headers=headers)
        assert [c["name"] for c in listed.json()["classes"]] == ["Chemistry"]

        # Another user cannot see it
        assert (await client.get(f"/api/v1/classes/{class_id}", headers=auth_headers(BOB))).status_code == 404

        patched = await client.patch(f"/api/v1/classes/{class_id}", json={"difficulty": "hard"}, headers=headers)
        assert patched.json()["difficulty"] == "hard"

        assert (await client.delete(f"/api/v1/classes/{class_id}", headers=headers)).status_code == 204
        assert (await client.get(f"/api/v1/classes/{class_id}", headers=headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_parse_without_syllabus(self, client, make_class):
        chem = await make_class(ALICE, "Chemistry")
        response = await client.post(f"/api/v1/classes/{chem.id}/syllabus/parse", json={}, headers=auth_headers(ALICE))
        assert response.status_code == 422
        assert response.json() == {"detail": "No syllabus uploaded for this class"}

    @pytest.mark.asyncio
    async def test_stale_class_streak_displays_zero(self, client, make_class):
        today = local_today()
        art = await make_class(
            ALICE, "Art", streak=5, last_studied_date=today - timedelta(days=10), progress_percentage=20
        )
        await make_class(
            ALICE, "Biology", streak=3, last_studied_date=today - timedelta(days=1), progress_percentage=60
        )

        listed = (await client.get("/api/v1/classes", params={"order": "progress"}, headers=auth_headers(ALICE))).json()
        assert [(c["name"], c["streak"], c["last_studied_label"]) for c in listed["classes"]] == [
            ("Biology", 3, "Yesterday"),
            ("Art", 0, "10 days ago"),
        ]
        detail = (await client.get(f"/api/v1/classes/{art.id}", headers=auth_headers(ALICE))).json()
        assert detail["streak"] == 0

    @pytest.mark.asyncio
    async def test_delete_parsed_class(self, client, db_session, make_class, make_block):
        chem = await make_class(ALICE, "Chemistry")
        db_session.add_all([
            Assignment(class_id=chem.id, title="Lab 1"),
            SyllabusTopic(class_id=chem.id, title="Acids"),
        ])
        await db_session.commit()
        await make_block(chem, local_today(), time(9))

        assert (await client.delete(f"/api/v1/classes/{chem.id}", headers=auth_headers(ALICE))).status_code == 204
        week = (await client.get("/api/v1/schedule/week", headers=auth_headers(ALICE))).json()
        assert all(day["blocks"] == [] for day in week["days"])


class TestNudgeAndFeedApi:

    @pytest.mark.asyncio
    async def test_post_then_react(self, client, make_profile, make_class, befriend):
        await make_profile(ALICE, "alice", "Alice Ng")
        await make_profile(BOB, "bob")
        await befriend(ALICE, BOB)
        chem = await make_class(ALICE, "Chemistry", estimated_total_minutes=60, estimated_remaining_minutes=60)

        posted = await client.post(
            "/api/v1/nudges", json={"class_id": chem.id, "minutes_studied": 60}, headers=auth_headers(ALICE)
        )
        assert posted.status_code == 201
        body = posted.json()
        assert body["class_progress"] == 100
        assert body["class_complete"] is True
        assert body["streak"] == 1

        feed = (await client.get("/api/v1/feed", headers=auth_headers(BOB))).json()["posts"]
        assert len(feed) == 1
        assert feed[0]["display_name"] == "Alice Ng"
        assert feed[0]["class_name"] == "Chemistry"
        assert feed[0]["caption"] == "Locked in! 🔥"
        assert feed[0]["time_ago"] == "just now"

        post_id = body["post_id"]
        reacted = await client.post(f"/api/v1/feed/{post_id}/reactions", json={"emoji": "👏"}, headers=auth_headers(BOB))
        assert reacted.json() == {"post_id": post_id, "emoji": "👏", "reacted": True, "count": 1}

        feed = (await client.get("/api/v1/feed", headers=auth_headers(ALICE))).json()["posts"]
        clap = next(r for r in feed[0]["reactions"] if r["emoji"] == "👏")
        assert clap == {"emoji": "👏", "count": 1, "reacted": False}

        pending = (await client.get("/api/v1/users/me/class-completions/pending", headers=auth_headers(ALICE))).json()
        assert len(pending["celebrations"]) == 1
        celebration_id = pending["celebrations"][0]["celebration_id"]
        ack = await client.post(
            f"/api/v1/users/me/class-completions/{celebration_id}/ack", headers=auth_headers(ALICE)
        )
        assert ack.status_code == 204

    @pytest.mark.asyncio
    async def test_nudge_without_class(self, client):
        response = await client.post("/api/v1/nudges", json={"minutes_studied": 30}, headers=auth_headers(ALICE))
        assert response.status_code == 422
        assert response.json() == {"detail": "Please select a class"}

    @pytest.mark.asyncio
    async def test_react_to_strangers_post(self, client, make_class):
        chem = await make_class(CAROL, "Chemistry")
        posted = await client.post(
            "/api/v1/nudges", json={"class_id": chem.id, "minutes_studied": 30}, headers=auth_headers(CAROL)
        )
        response = await client.post(
            f"/api/v1/feed/{posted.json()['post_id']}/reactions", json={"emoji": "🔥"}, headers=auth_headers(ALICE)
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_streak_endpoint(self, client, make_class):
        chem = await make_class(ALICE, "Chemistry")
        await client.post("/api/v1/nudges", json={"class_id": chem.id, "minutes_studied": 30}, headers=auth_headers(ALICE))
        streak = (await client.get("/api/v1/users/me/streak", headers=auth_headers(ALICE))).json()
        assert streak["current_streak"] == 1
        assert streak["studied_today"] is True

    @pytest.mark.asyncio
    async def test_my_posts(self, client, make_class, befriend):
        await befriend(ALICE, BOB)
        chem = await make_class(ALICE, "Chemistry")
        bio = await make_class(BOB, "Biology")
        nudges = [(ALICE, chem.id, "first"), (BOB, bio.id, "bob's"), (ALICE, chem.id, "second")]
        for user_id, class_id, caption in nudges:
            await client.post(
                "/api/v1/nudges",
                json={"class_id": class_id, "minutes_studied": 20, "caption": caption},
                headers=auth_headers(user_id),
            )

        posts = (await client.get("/api/v1/users/me/posts", headers=auth_headers(ALICE))).json()["posts"]
        assert [p["caption"] for p in posts] == ["second", "first"]

    @pytest.mark.asyncio
    async def test_demo_posts(self, client, make_class, monkeypatch):
        await make_class(ALICE, "Chemistry")
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"success": True, "postsCreated": 3})

        http = httpx.AsyncClient(base_url="http://functions.test", transport=httpx.MockTransport(handler))

        def from_settings(cls, settings):
            return cls("http://functions.test", http_client=http)

        monkeypatch.setattr(FunctionsClient, "from_settings", classmethod(from_settings))

        response = await client.post("/api/v1/feed/demo-posts", headers=auth_headers(ALICE))
        assert response.json() == {"posts_created": 3}
        assert paths == ["/create-demo-posts"]

    @pytest.mark.asyncio
    async def test_demo_posts_need_a_class(self, client):
        response = await client.post("/api/v1/feed/demo-posts", headers=auth_headers(ALICE))
        assert response.status_code == 422
        assert response.json() == {"detail": "Please add some classes first"}


class TestBuddiesAndLeaderboardApi:

    @pytest.mark.asyncio
    async def test_add_buddy_and_rank(self, client, make_profile):
        await make_profile(ALICE, "alice", total_minutes=120)
        await make_profile(BOB, "bob", total_minutes=300)

        added = await client.post("/api/v1/buddies", json={"user_id": BOB}, headers=auth_headers(ALICE))
        assert added.status_code == 201
        again = await client.post("/api/v1/buddies", json={"user_id": ALICE}, headers=auth_headers(BOB))
        assert again.status_code == 409

        buddies = (await client.get("/api/v1/buddies", headers=auth_headers(BOB))).json()["buddies"]
        assert [b["username"] for b in buddies] == ["alice"]

        board = (
            await client.get(
                "/api/v1/leaderboard", params={"metric": "total_minutes", "scope": "friends"}, headers=auth_headers(ALICE)
            )
        ).json()
        assert [e["username"] for e in board["entries"]] == ["bob", "alice"]
        assert board["entries"][1]["is_viewer"] is True

    @pytest.mark.asyncio
    async def test_buddy_stale_streak_displays_zero(self, client, make_profile, befriend):
        today = local_today()
        await make_profile(ALICE, "alice")
        await make_profile(BOB, "bob", streak=7, last_study_date=today - timedelta(days=4))
        await make_profile(CAROL, "carol", streak=2, last_study_date=today)
        await befriend(ALICE, BOB)
        await befriend(CAROL, ALICE)

        buddies = (await client.get("/api/v1/buddies", headers=auth_headers(ALICE))).json()["buddies"]
        assert {b["username"]: b["streak"] for b in buddies} == {"bob": 0, "carol": 2}


class TestScheduleAndPromisesApi:

    @pytest.mark.asyncio
    async def test_week_view(self, client, make_class, make_block):
        chem = await make_class(ALICE, "Chemistry")
        await make_block(chem, date(2025, 3, 12), time(16, 5), duration_minutes=45)
        response = await client.get("/api/v1/schedule/week", params={"anchor": "2025-03-12"}, headers=auth_headers(ALICE))
        days = response.json()["days"]
        assert len(days) == 7
        assert days[0]["day"] == "2025-03-09"
        wednesday = days[3]
        assert wednesday["total_minutes"] == 45
        assert wednesday["blocks"][0]["time_label"] == "4:05 PM"
        assert wednesday["blocks"][0]["class_name"] == "Chemistry"

    @pytest.mark.asyncio
    async def test_promise_round_trip(self, client, make_class, make_block):
        chem = await make_class(ALICE, "Chemistry")
        block = await make_block(chem, local_today() + timedelta(days=1), time(9), duration_minutes=30)

        created = await client.post("/api/v1/promises", json={"block_id": block.id}, headers=auth_headers(ALICE))
        assert created.status_code == 201
        assert created.json()["status"] == "active"
        assert created.json()["class_name"] == "Chemistry"

        duplicate = await client.post("/api/v1/promises", json={"block_id": block.id}, headers=auth_headers(ALICE))
        assert duplicate.status_code == 409
        assert duplicate.json()["detail"] == "You've already made a pinky promise for this study block!"

        listed = await client.get("/api/v1/promises", params={"status": "active"}, headers=auth_headers(ALICE))
        assert len(listed.json()["promises"]) == 1


class TestOnboardingApi:

    @pytest.mark.asyncio
    async def test_unresolved_class_rejected(self, client, make_profile):
        await make_profile(ALICE, "alice")
        payload = {
            "weekday": {"study_range": "4-6pm"},
            "weekend": {"study_range": "10am-2pm"},
            "classes": [{"name": "Chemistry"}],
        }
        response = await client.post("/api/v1/onboarding/complete", json=payload, headers=auth_headers(ALICE))
        assert response.status_code == 422
        assert "Chemistry" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_complete(self, client, make_profile):
        await make_profile(ALICE, "alice")
        payload = {
            "weekday": {"study_range": "4-6pm", "earliest": "16:00"},
            "weekend": {"study_range": "10am-2pm"},
            "classes": [
                {"name": "Chemistry", "syllabus_uploaded": True, "syllabus_url": "https://files.example/c.pdf"},
                {"name": "Art", "onboarding_resolved": True},
            ],
        }
        response = await client.post("/api/v1/onboarding/complete", json=payload, headers=auth_headers(ALICE))
        assert response.status_code == 201
        classes = response.json()["classes"]
        assert [(c["name"], c["needs_parsing"]) for c in classes] == [("Chemistry", True), ("Art", False)]
