from datetime import datetime, timedelta, timezone

import pytest

from coursegate.progress.types import parse_timestamp


def _answers(correct: int, total: int = 20):
    """Positional answers for the seeded 20-question quiz with `correct` right."""
    return [i % 4 if i < correct else (i + 1) % 4 for i in range(total)]


def _start(client, headers, module_id):
    return client.post("/assessment/start", json={"moduleId": module_id}, headers=headers)


def _submit(client, headers, module_id, attempt_id, answers):
    return client.post(
        "/assessment/submit",
        json={"moduleId": module_id, "answers": answers, "proctoringSessionId": attempt_id},
        headers=headers,
    )


def _take(client, headers, module_id, answers):
    started = _start(client, headers, module_id)
    assert started.status_code == 200, started.text
    res = _submit(client, headers, module_id, started.json()["attemptId"], answers)
    assert res.status_code == 200, res.text
    return res.json()


def _access(client, headers, course_id="course-1"):
    res = client.get(f"/courses/{course_id}/access", headers=headers)
    assert res.status_code == 200, res.text
    return {m["moduleId"]: m for m in res.json()["modules"]}


@pytest.mark.integration
class TestHealthAndAuth:
    def test_health(self, api_client):
        res = api_client.get("/")
        assert res.status_code == 200
        assert "Healthy" in res.json()["message"]

    def test_missing_token_is_rejected(self, api_client, seeded_course):
        res = api_client.get(f"/progress/{seeded_course}")
        assert res.status_code == 401

    def test_garbage_token_is_rejected(self, api_client, seeded_course):
        res = api_client.get(f"/progress/{seeded_course}", headers={"Authorization": "Bearer not-a-jwt"})
        assert res.status_code == 401

    def test_request_id_is_echoed(self, api_client):
        res = api_client.get("/", headers={"x-request-id": "abc123"})
        assert res.headers["x-request-id"] == "abc123"


@pytest.mark.integration
class TestProgressRoutes:
    def test_put_then_get_uses_camel_case(self, api_client, seeded_course, auth_headers):
        body = {"completed": True, "quizScore": 88, "completedTopics": ["xss", "csrf"]}
        res = api_client.put(f"/progress/{seeded_course}/m0", json=body, headers=auth_headers)
        assert res.status_code == 200, res.text
        data = res.json()
        assert data["moduleId"] == "m0"
        assert data["courseId"] == seeded_course
        assert data["quizScore"] == 88
        assert data["completedTopics"] == ["csrf", "xss"]

        res = api_client.get(f"/progress/{seeded_course}", headers=auth_headers)
        assert res.status_code == 200
        rows = res.json()
        assert set(rows) == {"m0"}
        assert rows["m0"]["completed"] is True
        assert rows["m0"]["quizScore"] == 88

    def test_put_is_idempotent(self, api_client, seeded_course, auth_headers):
        body = {"completed": True, "quizScore": 90}
        first = api_client.put(f"/progress/{seeded_course}/m0", json=body, headers=auth_headers)
        second = api_client.put(f"/progress/{seeded_course}/m0", json=body, headers=auth_headers)
        assert first.json() == second.json()
        rows = api_client.get(f"/progress/{seeded_course}", headers=auth_headers).json()
        assert len(rows) == 1

    def test_completed_is_required(self, api_client, seeded_course, auth_headers):
        res = api_client.put(f"/progress/{seeded_course}/m0", json={"quizScore": 50}, headers=auth_headers)
        assert res.status_code == 422

    def test_locked_until_never_moves_backwards(self, api_client, seeded_course, auth_headers):
        later = datetime.now(timezone.utc) + timedelta(hours=3)
        sooner = datetime.now(timezone.utc) + timedelta(hours=1)
        url = f"/progress/{seeded_course}/m2"
        api_client.put(url, json={"completed": False, "lockedUntil": later.isoformat()}, headers=auth_headers)
        res = api_client.put(url, json={"completed": False, "lockedUntil": sooner.isoformat()}, headers=auth_headers)
        stored = parse_timestamp(res.json()["lockedUntil"])
        assert abs((stored - later).total_seconds()) < 1

    def test_progress_is_per_student(self, api_client, seeded_course, auth_headers, admin_headers):
        api_client.put(f"/progress/{seeded_course}/m0", json={"completed": True}, headers=auth_headers)
        assert api_client.get(f"/progress/{seeded_course}", headers=admin_headers).json() == {}


@pytest.mark.integration
class TestAssessmentFlow:
    def test_start_hides_answer_key(self, api_client, seeded_course, auth_headers):
        res = _start(api_client, auth_headers, "m0")
        assert res.status_code == 200
        data = res.json()
        assert len(data["questions"]) == 20
        assert all("correctAnswer" not in q for q in data["questions"])
        assert data["proctored"] is False

    def test_failing_score_blocks_next_module_until_retake(self, api_client, seeded_course, auth_headers):
        result = _take(api_client, auth_headers, "m0", _answers(13))
        assert result["score"] == 65
        assert result["passed"] is False
        assert result["retakeRequired"] is True

        access = _access(api_client, auth_headers)
        assert access["m0"]["status"] == "retake_required"
        assert access["m1"]["accessible"] is False
        assert access["m1"]["status"] == "locked"

        result = _take(api_client, auth_headers, "m0", _answers(15))
        assert result["score"] == 75
        assert result["passed"] is True

        access = _access(api_client, auth_headers)
        assert access["m0"]["status"] == "completed"
        assert access["m1"]["accessible"] is True
        assert access["m2"]["accessible"] is False

    def test_failed_retake_keeps_passing_score(self, api_client, seeded_course, auth_headers):
        assert _take(api_client, auth_headers, "m0", _answers(18))["score"] == 90

        retake = _take(api_client, auth_headers, "m0", _answers(10))
        assert retake["score"] == 50
        assert retake["passed"] is False

        access = _access(api_client, auth_headers)
        assert access["m0"]["status"] == "completed"
        assert access["m0"]["quizScore"] == 90
        assert access["m1"]["accessible"] is True

    def test_start_on_gated_module_is_forbidden(self, api_client, seeded_course, auth_headers):
        res = _start(api_client, auth_headers, "m2")
        assert res.status_code == 403

    def test_admin_bypasses_gate(self, api_client, seeded_course, admin_headers):
        res = _start(api_client, admin_headers, "m2")
        assert res.status_code == 200
        assert res.json()["proctored"] is True
        assert all(m["accessible"] for m in _access(api_client, admin_headers).values())

    def test_module_without_questions_is_rejected(self, api_client, seeded_course, admin_headers):
        res = _start(api_client, admin_headers, "m1")
        assert res.status_code == 400

    def test_answers_by_question_id(self, api_client, seeded_course, auth_headers):
        started = _start(api_client, auth_headers, "m0").json()
        answers = {f"q{i}": i % 4 for i in range(20)}
        res = _submit(api_client, auth_headers, "m0", started["attemptId"], answers)
        assert res.status_code == 200
        assert res.json()["score"] == 100

    def test_resubmitting_returns_stored_result(self, api_client, seeded_course, auth_headers):
        started = _start(api_client, auth_headers, "m0").json()
        first = _submit(api_client, auth_headers, "m0", started["attemptId"], _answers(20)).json()
        again = _submit(api_client, auth_headers, "m0", started["attemptId"], _answers(0)).json()
        assert again["score"] == first["score"] == 100
        assert again["passed"] is True

    def test_unknown_attempt_is_not_found(self, api_client, seeded_course, auth_headers):
        res = _submit(api_client, auth_headers, "m0", "nope", _answers(20))
        assert res.status_code == 404

    def test_attempt_for_other_module_is_rejected(self, api_client, seeded_course, admin_headers):
        started = _start(api_client, admin_headers, "m0").json()
        res = _submit(api_client, admin_headers, "m2", started["attemptId"], [1, 0, 1, 0])
        assert res.status_code == 400

    def test_unknown_course_is_not_found(self, api_client, seeded_course, auth_headers):
        res = api_client.get("/courses/missing/access", headers=auth_headers)
        assert res.status_code == 404


@pytest.mark.integration
class TestLockout:
    def _open_final(self, client, headers):
        client.put("/progress/course-1/m0", json={"completed": True, "quizScore": 90}, headers=headers)
        client.put("/progress/course-1/m1", json={"completed": True}, headers=headers)

    def test_lockout_event_blocks_final_exam(self, api_client, seeded_course, auth_headers):
        self._open_final(api_client, auth_headers)
        started = _start(api_client, auth_headers, "m2")
        assert started.status_code == 200
        attempt_id = started.json()["attemptId"]

        until = datetime.now(timezone.utc) + timedelta(hours=3)
        res = api_client.post(
            "/proctor/ingest",
            json={
                "eventId": "evt-lock",
                "courseId": seeded_course,
                "attemptId": attempt_id,
                "eventType": "lockout",
                "details": {"lockedUntil": until.isoformat(), "tier": "final_exam"},
            },
            headers=auth_headers,
        )
        assert res.status_code == 202

        res = _start(api_client, auth_headers, "m2")
        assert res.status_code == 423
        body = res.json()
        assert body["tier"] == "final_exam"
        assert 10790 <= body["remainingSeconds"] <= 10800
        assert parse_timestamp(body["lockedUntil"]) is not None

        res = _submit(api_client, auth_headers, "m2", attempt_id, [1, 0, 1, 0])
        assert res.status_code == 423

        access = _access(api_client, auth_headers)
        assert access["m2"]["lockoutRemainingSeconds"] > 0

    def test_expired_lockout_does_not_block(self, api_client, seeded_course, auth_headers):
        self._open_final(api_client, auth_headers)
        past = datetime.now(timezone.utc) - timedelta(minutes=1)
        api_client.put("/progress/course-1/m2", json={"completed": False, "lockedUntil": past.isoformat()}, headers=auth_headers)
        assert _start(api_client, auth_headers, "m2").status_code == 200

    def test_standard_tier_for_quiz(self, api_client, seeded_course, auth_headers):
        until = datetime.now(timezone.utc) + timedelta(hours=1)
        api_client.put("/progress/course-1/m0", json={"completed": False, "lockedUntil": until.isoformat()}, headers=auth_headers)
        res = _start(api_client, auth_headers, "m0")
        assert res.status_code == 423
        assert res.json()["tier"] == "standard"

    def test_lockout_body_is_documented(self, api_client):
        paths = api_client.get("/openapi.json").json()["paths"]
        for path in ("/assessment/start", "/assessment/submit"):
            locked = paths[path]["post"]["responses"]["423"]
            assert locked["content"]["application/json"]["schema"]["$ref"].endswith("/LockedOutResponse")


@pytest.mark.integration
class TestTelemetryCollectors:
    def test_ingest_dedupes_by_event_id(self, api_client, seeded_course, auth_headers, session_factory):
        from api.models.models import ProctoringLog

        event = {
            "eventId": "evt-1",
            "courseId": seeded_course,
            "attemptId": "a-1",
            "eventType": "tab_switch",
            "details": {"count": 1},
            "timestamp": "2026-01-01T10:00:00Z",
        }
        first = api_client.post("/proctor/ingest", json=event, headers=auth_headers)
        second = api_client.post("/proctor/ingest", json=event, headers=auth_headers)
        assert first.status_code == second.status_code == 202
        assert first.json() == {"accepted": True, "duplicate": False}
        assert second.json()["duplicate"] is True

        db = session_factory()
        try:
            assert db.query(ProctoringLog).count() == 1
        finally:
            db.close()

    def test_lockout_event_for_unknown_attempt_is_still_accepted(self, api_client, seeded_course, auth_headers):
        until = datetime.now(timezone.utc) + timedelta(hours=1)
        res = api_client.post(
            "/proctor/ingest",
            json={"courseId": seeded_course, "attemptId": "ghost", "eventType": "lockout", "details": {"lockedUntil": until.isoformat()}},
            headers=auth_headers,
        )
        assert res.status_code == 202
        assert api_client.get(f"/progress/{seeded_course}", headers=auth_headers).json() == {}

    def test_heartbeat_dedupes_within_bucket(self, api_client, seeded_course, auth_headers):
        beat = {
            "courseId": seeded_course,
            "moduleStats": {"moduleId": "m1", "timeSpent": 30, "scrollDepth": 40},
            "timestamp": "2026-01-01T10:00:05Z",
        }
        first = api_client.post("/experience/sync", json=beat, headers=auth_headers).json()
        retry = api_client.post("/experience/sync", json={**beat, "timestamp": "2026-01-01T10:00:20Z"}, headers=auth_headers).json()
        assert first["duplicate"] is False
        assert retry["duplicate"] is True
        assert retry["timeSpent"] == 30

        nxt = {
            **beat,
            "moduleStats": {"moduleId": "m1", "timeSpent": 30, "scrollDepth": 25},
            "timestamp": "2026-01-01T10:00:35Z",
        }
        res = api_client.post("/experience/sync", json=nxt, headers=auth_headers).json()
        assert res["duplicate"] is False
        assert res["timeSpent"] == 60
        assert res["scrollDepth"] == 40

    def test_heartbeats_with_beat_ids_share_a_bucket(self, api_client, seeded_course, auth_headers):
        stats = {"moduleId": "m1", "timeSpent": 30, "scrollDepth": 10}
        tick = {"courseId": seeded_course, "beatId": "b1", "moduleStats": stats, "timestamp": "2026-01-01T12:00:05Z"}
        final = {**tick, "beatId": "b2", "timestamp": "2026-01-01T12:00:12Z"}
        assert api_client.post("/experience/sync", json=tick, headers=auth_headers).json()["duplicate"] is False
        res = api_client.post("/experience/sync", json=final, headers=auth_headers).json()
        assert res["duplicate"] is False
        assert res["timeSpent"] == 60

        replay = api_client.post("/experience/sync", json=final, headers=auth_headers).json()
        assert replay["duplicate"] is True
        assert replay["timeSpent"] == 60

    def test_scroll_depth_is_clamped(self, api_client, seeded_course, auth_headers):
        beat = {
            "courseId": seeded_course,
            "moduleStats": {"moduleId": "m1", "timeSpent": 30, "scrollDepth": 250},
            "timestamp": "2026-01-01T11:00:00Z",
        }
        res = api_client.post("/experience/sync", json=beat, headers=auth_headers).json()
        assert res["scrollDepth"] == 100


@pytest.mark.integration
class TestRebalance:
    def test_fresh_learner_starts_at_first_module(self, api_client, seeded_course, auth_headers):
        res = api_client.post(f"/learning-path/{seeded_course}/rebalance", headers=auth_headers)
        assert res.status_code == 200
        data = res.json()
        assert data["recommended"] == ["m0"]
        assert data["nextModuleId"] == "m0"

    def test_retake_is_recommended_first(self, api_client, seeded_course, auth_headers):
        _take(api_client, auth_headers, "m0", _answers(13))
        data = api_client.post(f"/learning-path/{seeded_course}/rebalance", headers=auth_headers).json()
        assert data["recommended"] == ["m0"]
        assert data["nextModuleId"] == "m0"

    def test_passing_moves_path_forward(self, api_client, seeded_course, auth_headers):
        _take(api_client, auth_headers, "m0", _answers(18))
        data = api_client.post(f"/learning-path/{seeded_course}/rebalance", headers=auth_headers).json()
        assert data["recommended"] == ["m1"]
        assert data["nextModuleId"] == "m1"

    def test_unknown_course(self, api_client, auth_headers):
        res = api_client.post("/learning-path/missing/rebalance", headers=auth_headers)
        assert res.status_code == 404
