"""
Tests for leaderboard and activity API endpoints
"""

import uuid

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from skillpath.models import LeaderboardEntry, User
from skillpath.services import activity_service, leaderboard_service
from skillpath.services.activity_service import ActivityNotFound


class TestLeaderboardAPI:
    """Leaderboard read and generate endpoints"""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_first_read_generates_week(self, client, podium):
        response = client.get("/api/v1/leaderboard")

        assert response.status_code == 200
        data = response.json()
        assert [(row["user_name"], row["rank"], row["points"]) for row in data] == [
            ("Asha", 1, 110),
            ("Bilal", 2, 55),
            ("Chen", 3, 75),
        ]
        assert set(data[0]) >= {
            "user_id",
            "user_name",
            "points",
            "weekly_time_spent",
            "videos_watched",
            "assessments_completed",
            "rank",
        }

    def test_repeated_reads_do_not_award_bonus_again(self, client, db_session, podium):
        client.get("/api/v1/leaderboard")
        response = client.get("/api/v1/leaderboard")

        assert response.status_code == 200
        assert [row["points"] for row in response.json()] == [110, 55, 75]
        db_session.expire_all()
        assert db_session.get(User, podium[0].user_id).points == 110

    def test_limit_query(self, client, make_user):
        for index in range(5):
            make_user(f"Learner{index}", weekly_time=10 * index)

        response = client.get("/api/v1/leaderboard", params={"limit": 2})

        assert response.status_code == 200
        assert [row["rank"] for row in response.json()] == [1, 2]

    def test_limit_out_of_range_rejected(self, client):
        response = client.get("/api/v1/leaderboard", params={"limit": 0})

        assert response.status_code == 422

    def test_top3(self, client, make_user):
        for index in range(5):
            make_user(f"Learner{index}", weekly_time=10 * index)

        response = client.get("/api/v1/leaderboard/top3")

        assert response.status_code == 200
        assert [row["user_name"] for row in response.json()] == ["Learner4", "Learner3", "Learner2"]

    def test_my_rank_requires_identity(self, client):
        assert client.get("/api/v1/leaderboard/my-rank").status_code == 401
        assert client.get("/api/v1/leaderboard/my-rank", headers={"X-User-Id": "nope"}).status_code == 401

    def test_my_rank_unranked_sentinel(self, client, db_session, podium, auth_headers):
        response = client.get("/api/v1/leaderboard/my-rank", headers=auth_headers(podium[0]))

        assert response.status_code == 200
        assert response.json()["rank"] is None
        assert db_session.execute(select(LeaderboardEntry)).first() is None

    def test_my_rank_reports_persisted_rank(self, client, podium, auth_headers):
        chen = podium[2]
        client.get("/api/v1/leaderboard")
        client.post("/api/v1/activity/track-time", json={"seconds": 400}, headers=auth_headers(chen))

        live = client.get("/api/v1/leaderboard").json()
        mine = client.get("/api/v1/leaderboard/my-rank", headers=auth_headers(chen)).json()

        assert live[0]["user_name"] == "Chen"
        assert live[0]["rank"] == 1
        assert mine["rank"] == 3
        assert mine["weekly_time_spent"] == 600

    def test_generate_requires_identity(self, client, db_session, podium):
        response = client.post("/api/v1/leaderboard/generate")

        assert response.status_code == 401
        db_session.expire_all()
        assert db_session.get(User, podium[0].user_id).points == 10

    def test_generate_twice_is_additive(self, client, db_session, podium, auth_headers):
        asha = podium[0]

        first = client.post("/api/v1/leaderboard/generate", headers=auth_headers(asha))
        second = client.post("/api/v1/leaderboard/generate", headers=auth_headers(asha))

        assert first.status_code == 200
        assert second.status_code == 200
        body = second.json()
        assert body["message"] == "Leaderboard generated"
        assert [row["points"] for row in body["leaderboard"]] == [210, 105, 100]
        db_session.expire_all()
        assert db_session.get(User, asha.user_id).points == 210
        assert len(db_session.execute(select(LeaderboardEntry)).scalars().all()) == 3


class TestActivityAPI:
    """Activity tracking endpoints feeding the leaderboard"""

    def test_track_time_accumulates(self, client, podium, auth_headers):
        asha = podium[0]

        response = client.post("/api/v1/activity/track-time", json={"seconds": 60}, headers=auth_headers(asha))

        assert response.status_code == 200
        data = response.json()
        assert data["weekly_time_spent"] == 560
        assert data["total_time_spent"] == 60
        assert data["new_week"] is False

    def test_track_time_validation(self, client, podium, auth_headers):
        headers = auth_headers(podium[0])

        assert client.post("/api/v1/activity/track-time", json={"seconds": 0}, headers=headers).status_code == 422
        assert client.post("/api/v1/activity/track-time", json={"seconds": "10"}, headers=headers).status_code == 422

    def test_track_time_requires_identity(self, client):
        response = client.post("/api/v1/activity/track-time", json={"seconds": 5})

        assert response.status_code == 401

    def test_track_time_unknown_user(self, client):
        response = client.post(
            "/api/v1/activity/track-time",
            json={"seconds": 5},
            headers={"X-User-Id": str(uuid.uuid4())},
        )

        assert response.status_code == 404

    def test_video_completion_and_stats(self, client, make_user, auth_headers):
        user = make_user("Viewer", weekly_time=30)
        headers = auth_headers(user)

        progress = client.post(
            "/api/v1/activity/videos/intro/progress",
            json={"watched_duration": 90, "total_duration": 100},
            headers=headers,
        )
        assessment = client.post(
            "/api/v1/activity/assessments",
            json={"assessment_id": "js-basics", "score": 80},
            headers=headers,
        )
        stats = client.get("/api/v1/activity/stats", headers=headers)

        assert progress.status_code == 200
        assert progress.json()["completed"] is True
        assert progress.json()["points_awarded"] == 10
        assert assessment.status_code == 201
        assert stats.status_code == 200
        data = stats.json()
        assert data["points"] == 10
        assert data["videos_completed"] == 1
        assert data["assessments_completed"] == 1
        assert data["weekly_time_spent"]["total_seconds"] == 30
        assert data["weekly_points_earned"] == 10
        assert len(data["hourly_usage"]) == 24

    def test_video_progress_reports_furthest_point(self, client, make_user, auth_headers):
        headers = auth_headers(make_user("Rewatcher"))

        client.post(
            "/api/v1/activity/videos/intro/progress",
            json={"watched_duration": 60, "total_duration": 100},
            headers=headers,
        )
        response = client.post(
            "/api/v1/activity/videos/intro/progress",
            json={"watched_duration": 30, "total_duration": 100},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["watched_duration"] == 60
        assert response.json()["progress"] == 60.0


def _store_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("database is unavailable"))


class TestFailureResponses:
    """Store failures and bonus failures surfaced over HTTP"""

    def test_leaderboard_read_store_failure(self, client, podium, monkeypatch):
        monkeypatch.setattr(leaderboard_service, "get_weekly", _store_down)

        response = client.get("/api/v1/leaderboard")

        assert response.status_code == 503
        assert response.json()["detail"] == "Leaderboard store unavailable"

    def test_generate_store_failure(self, client, podium, auth_headers, monkeypatch):
        monkeypatch.setattr(leaderboard_service, "regenerate_leaderboard", _store_down)

        response = client.post("/api/v1/leaderboard/generate", headers=auth_headers(podium[0]))

        assert response.status_code == 503

    def test_track_time_store_failure(self, client, db_session, podium, auth_headers, monkeypatch):
        monkeypatch.setattr(activity_service, "record_time", _store_down)

        response = client.post("/api/v1/activity/track-time", json={"seconds": 60}, headers=auth_headers(podium[0]))

        assert response.status_code == 503
        assert response.json()["detail"] == "Activity store unavailable"
        db_session.expire_all()
        assert db_session.get(User, podium[0].user_id).weekly_time_spent == 500

    def test_bonus_failure_on_first_read(self, client, db_session, podium, monkeypatch):
        def missing_user(session, user_id, delta):
            raise ActivityNotFound(user_id)

        monkeypatch.setattr(activity_service, "apply_points_delta", missing_user)

        response = client.get("/api/v1/leaderboard/top3")

        assert response.status_code == 409
        assert db_session.execute(select(LeaderboardEntry)).first() is None
