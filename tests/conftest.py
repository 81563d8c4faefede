"""
Pytest configuration for SecureExam tests
"""
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from secure_exam.errors import DeliveryFailure
from secure_exam.models.question_model import ExamConfig, Question
from secure_exam.services.exam_store import ExamConfigStore
from secure_exam.services.report_dispatcher import ReportDispatcher
from secure_exam.services.submission import SubmissionPipeline


class RecordingDispatcher(ReportDispatcher):
    """Keeps delivered reports in memory; optionally fails every delivery."""

    def __init__(self, fail: bool = False):
        super().__init__(fallback_recipient=None)
        self.fail = fail
        self.delivered = []

    async def dispatch(self, result, recipient):
        self.delivered.append((result, recipient))
        if self.fail:
            raise DeliveryFailure("smtp relay unreachable")


class FakeClock:
    """Returns start, then advances by `step` seconds on every call."""

    def __init__(self, step: float = 10.4):
        self.now = datetime(2026, 1, 1, 9, 0, 0, tzinfo=timezone.utc)
        self.step = timedelta(seconds=step)
        self.calls = 0

    def __call__(self):
        value = self.now
        self.now += self.step
        self.calls += 1
        return value


def make_config(time_limit_minutes=None, **overrides) -> ExamConfig:
    data = dict(
        title="Geography Quiz",
        description="Capitals and planets",
        questions=[
            Question(id="1", text="What is the capital of France?",
                     options=["London", "Berlin", "Paris", "Madrid"]),
            Question(id="2", text="Which planet is known as the Red Planet?",
                     options=["Venus", "Mars", "Jupiter", "Saturn"]),
        ],
        solution_key=["Paris", "Mars"],
        examiner_contact="examiner@example.com",
        time_limit_minutes=time_limit_minutes,
    )
    data.update(overrides)
    return ExamConfig(**data)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def store():
    return ExamConfigStore()


@pytest.fixture
def pipeline(store, dispatcher):
    return SubmissionPipeline(store, dispatcher)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(store, dispatcher):
    """FastAPI test client sharing one event loop across requests."""
    from api.app import create_app
    app = create_app(store=store, dispatcher=dispatcher, cleanup=False)
    with TestClient(app) as test_client:
        yield test_client
