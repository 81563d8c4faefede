"""
Tests for the HTTP surface
"""
from datetime import datetime, timedelta, timezone

from conftest import make_config


def _setup(client, **overrides):
    config = make_config(**overrides).model_dump(by_alias=True)
    response = client.put("/api/exam/setup", json=config)
    assert response.status_code == 200
    return response.json()["examId"]


class TestExamConfiguration:

    def test_no_active_exam(self, client):
        response = client.get("/api/exam/active")
        assert response.status_code == 404

    def test_active_exam_hides_solution_key(self, client):
        _setup(client, time_limit_minutes=30)

        data = client.get("/api/exam/active").json()

        assert data["title"] == "Geography Quiz"
        assert data["timeLimitMinutes"] == 30
        assert len(data["questions"]) == 2
        assert "solutionKey" not in data
        assert "examinerContact" not in data

    def test_misaligned_solution_key_rejected(self, client):
        config = make_config().model_dump(by_alias=True)
        config["solutionKey"] = ["Paris"]
        assert client.put("/api/exam/setup", json=config).status_code == 422

    def test_single_option_question_accepted(self, client):
        config = make_config().model_dump(by_alias=True)
        config["questions"][0]["options"] = ["Paris"]

        assert client.put("/api/exam/setup", json=config).status_code == 200
        assert client.get("/api/exam/active").json()["questions"][0]["options"] == ["Paris"]

    def test_sample_exam(self, client):
        assert client.post("/api/exam/sample").status_code == 200
        assert client.get("/api/exam/active").json()["title"] == "Sample Assessment"


class TestStatelessSubmit:

    def _body(self, responses, **extra):
        start = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)
        body = {
            "candidateName": "Ada",
            "responses": responses,
            "startTimestamp": start.isoformat(),
            "endTimestamp": (start + timedelta(seconds=95)).isoformat(),
        }
        body.update(extra)
        return body

    def test_submit_grades_and_reports(self, client, dispatcher):
        _setup(client)

        response = client.post("/api/exam/submit", json=self._body(["Paris", None]))

        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 1
        assert data["totalQuestions"] == 2
        assert data["terminationReason"] == "Normal Submission"

        result, recipient = dispatcher.delivered[0]
        assert recipient == "examiner@example.com"
        assert result.duration_seconds == 95
        assert result.evaluation[1].student_answer == "No Answer"

    def test_submit_keeps_reported_reason(self, client):
        _setup(client)
        body = self._body(["Paris", "Mars"], terminationReason="Window Focus Lost")
        assert client.post("/api/exam/submit", json=body).json()["terminationReason"] == "Window Focus Lost"

    def test_submit_without_exam(self, client):
        assert client.post("/api/exam/submit", json=self._body(["Paris"])).status_code == 404

    def test_wrong_response_count(self, client):
        _setup(client)
        assert client.post("/api/exam/submit", json=self._body(["Paris"])).status_code == 422

    def test_blank_candidate_name_rejected(self, client):
        _setup(client)
        response = client.post("/api/exam/submit", json=self._body(["Paris", "Mars"], candidateName="   "))
        assert response.status_code == 422

    def test_delivery_failure_does_not_change_response(self, client, dispatcher):
        _setup(client)
        dispatcher.fail = True
        response = client.post("/api/exam/submit", json=self._body(["Paris", "Mars"]))
        assert response.status_code == 200
        assert response.json()["score"] == 2


class TestSessionLifecycle:

    def test_start_requires_active_exam(self, client):
        response = client.post("/api/session/start", json={"candidateName": "Ada"})
        assert response.status_code == 404

    def test_full_attempt(self, client, dispatcher):
        _setup(client, time_limit_minutes=30)

        started = client.post("/api/session/start", json={"candidateName": "Ada"})
        assert started.status_code == 200
        assert started.json()["state"] == "Active"
        assert started.json()["remaining"] == "30:00"
        assert "solutionKey" not in started.json()["exam"]

        answered = client.post("/api/session/answer", json={"questionIndex": 0, "value": "Paris"})
        assert answered.json() == {"ok": True, "state": "Active", "answeredCount": 1}

        submitted = client.post("/api/session/submit")
        assert submitted.json() == {
            "score": 1, "totalQuestions": 2, "terminationReason": "Normal Submission",
        }

        again = client.post("/api/session/submit")
        assert again.json() == submitted.json()
        assert len(dispatcher.delivered) == 1

        result = client.get("/api/session/result").json()
        assert result["percentage"] == 50.0
        assert result["evaluation"][1]["studentAnswer"] == "No Answer"

    def test_blank_candidate_name_rejected(self, client):
        _setup(client)

        response = client.post("/api/session/start", json={"candidateName": "   "})

        assert response.status_code == 422
        assert client.get("/api/session/status").status_code == 404

    def test_candidate_name_is_trimmed(self, client):
        _setup(client)

        client.post("/api/session/start", json={"candidateName": "  Ada  "})

        assert client.get("/api/session/status").json()["candidateName"] == "Ada"

    def test_invalid_index(self, client):
        _setup(client)
        client.post("/api/session/start", json={"candidateName": "Ada"})

        response = client.post("/api/session/answer", json={"questionIndex": 5, "value": "Paris"})

        assert response.status_code == 400
        assert client.get("/api/session/status").json()["answeredCount"] == 0

    def test_violation_then_late_signal(self, client):
        _setup(client, time_limit_minutes=30)
        client.post("/api/session/start", json={"candidateName": "Ada"})
        client.post("/api/session/answer", json={"questionIndex": 1, "value": "Mars"})

        hidden = client.post("/api/session/signal", json={"signal": "visibility-hidden"})
        assert hidden.json()["terminationReason"] == "Tab Switch / Window Hidden"

        unload = client.post("/api/session/signal", json={"signal": "unload-attempted"})
        assert unload.json()["preventDefault"] is False
        assert unload.json()["terminationReason"] == "Tab Switch / Window Hidden"

        result = client.get("/api/session/result").json()
        assert result["terminationReason"] == "Tab Switch / Window Hidden"
        assert result["score"] == 1

        late_answer = client.post("/api/session/answer", json={"questionIndex": 0, "value": "Paris"})
        assert late_answer.json()["ok"] is False

    def test_submit_then_late_violation(self, client):
        _setup(client)
        client.post("/api/session/start", json={"candidateName": "Ada"})
        client.post("/api/session/submit")

        late = client.post("/api/session/signal", json={"signal": "visibility-hidden"})

        assert late.status_code == 200
        assert late.json()["terminationReason"] == "Normal Submission"
        assert late.json()["state"] == "Submitted"

    def test_unload_asks_to_block_navigation(self, client):
        _setup(client)
        client.post("/api/session/start", json={"candidateName": "Ada"})

        response = client.post("/api/session/signal", json={"signal": "unload-attempted"})

        assert response.json()["preventDefault"] is True

    def test_unknown_signal_rejected(self, client):
        _setup(client)
        client.post("/api/session/start", json={"candidateName": "Ada"})
        assert client.post("/api/session/signal", json={"signal": "mouse-moved"}).status_code == 422

    def test_single_attempt_and_reset(self, client):
        _setup(client)
        client.post("/api/session/start", json={"candidateName": "Ada"})

        assert client.post("/api/session/start", json={"candidateName": "Ada"}).status_code == 409
        assert client.post("/api/reset").status_code == 409

        client.post("/api/session/submit")
        assert client.post("/api/reset").status_code == 200
        assert client.get("/api/session/status").status_code == 404

    def test_result_before_submit(self, client):
        _setup(client)
        client.post("/api/session/start", json={"candidateName": "Ada"})
        assert client.get("/api/session/result").status_code == 409

    def test_session_without_start(self, client):
        assert client.post("/api/session/submit").status_code == 404
