"""
Tests for report delivery
"""
import json

import httpx
import pytest

from secure_exam.errors import DeliveryFailure
from secure_exam.models.question_model import Question
from secure_exam.models.session_state import TerminationReason
from secure_exam.services.grading_service import grade
from secure_exam.services.report_dispatcher import (
    LoggingReportDispatcher, ResendReportDispatcher, build_dispatcher, render_report_html,
)


@pytest.fixture
def result():
    questions = [
        Question(id="1", text="Is 1 < 2?", options=["<yes>", "no"]),
        Question(id="2", text="Pick one", options=["a", "b"]),
    ]
    graded = grade(questions, ["<yes>", "a"], ["<yes>", ""],
                   termination_reason=TerminationReason.TAB_SWITCH)
    return graded.model_copy(update={"candidate_name": "Grace", "exam_title": "Logic"})


class TestResendReportDispatcher:

    @pytest.mark.asyncio
    async def test_posts_report(self, result):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "email_1"})

        dispatcher = ResendReportDispatcher(
            "re_test", fallback_recipient=None, transport=httpx.MockTransport(handler),
        )
        await dispatcher.dispatch(result, "examiner@example.com")

        assert captured["auth"] == "Bearer re_test"
        assert captured["body"]["to"] == "examiner@example.com"
        assert captured["body"]["subject"] == "Exam Result: Grace - Logic"
        assert "Tab Switch / Window Hidden" in captured["body"]["html"]

    @pytest.mark.asyncio
    async def test_rejected_delivery_raises(self, result):
        transport = httpx.MockTransport(lambda request: httpx.Response(422, text="invalid"))
        dispatcher = ResendReportDispatcher("re_test", transport=transport)

        with pytest.raises(DeliveryFailure):
            await dispatcher.dispatch(result, "examiner@example.com")

    @pytest.mark.asyncio
    async def test_unreachable_api_raises(self, result):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        dispatcher = ResendReportDispatcher("re_test", transport=httpx.MockTransport(handler))

        with pytest.raises(DeliveryFailure):
            await dispatcher.dispatch(result, "examiner@example.com")

    @pytest.mark.asyncio
    async def test_missing_recipient_falls_back_to_log(self, result, caplog):
        def handler(request):
            raise AssertionError("no request expected")

        dispatcher = ResendReportDispatcher(
            "re_test", fallback_recipient=None, transport=httpx.MockTransport(handler),
        )
        with caplog.at_level("INFO"):
            await dispatcher.dispatch(result, None)
        assert "Result Data" in caplog.text

    def test_fallback_recipient(self):
        dispatcher = ResendReportDispatcher("re_test", fallback_recipient="ops@example.com")
        assert dispatcher.resolve_recipient(None) == "ops@example.com"
        assert dispatcher.resolve_recipient("a@example.com") == "a@example.com"


def test_report_html_escapes_and_marks_blanks(result):
    body = render_report_html(result)

    assert "&lt;yes&gt;" in body
    assert "<yes>" not in body
    assert "No Answer" in body
    assert "1 / 2 (50.00%)" in body


def test_build_dispatcher_without_key_logs_only():
    assert isinstance(build_dispatcher(""), LoggingReportDispatcher)
    assert isinstance(build_dispatcher("re_live"), ResendReportDispatcher)
