"""
services/report_dispatcher.py

채점 결과를 출제자에게 전달하는 리포트 채널.

- ResendReportDispatcher : Resend 이메일 HTTP API 로 HTML 리포트 전송 (1회 시도, 재시도 없음)
- LoggingReportDispatcher: API 키/수신자가 없을 때 결과 JSON 을 로그로 남김
전달 실패는 DeliveryFailure 로 올라오며, 호출 측(SubmissionPipeline)이 로깅 후 삼킨다.
"""

import html
import logging
from typing import List, Optional

import httpx

from config import (
    EXAMINER_EMAIL, REPORT_API_URL, REPORT_SENDER, REPORT_TIMEOUT, RESEND_API_KEY,
)
from secure_exam.errors import DeliveryFailure
from secure_exam.models.result_model import GradedResult

logger = logging.getLogger(__name__)


class ReportDispatcher:
    """리포트 채널 인터페이스."""

    def __init__(self, fallback_recipient: Optional[str] = EXAMINER_EMAIL):
        self._fallback_recipient = fallback_recipient or None

    def resolve_recipient(self, recipient: Optional[str]) -> Optional[str]:
        return recipient or self._fallback_recipient

    async def dispatch(self, result: GradedResult, recipient: Optional[str]) -> None:
        raise NotImplementedError


class LoggingReportDispatcher(ReportDispatcher):

    async def dispatch(self, result: GradedResult, recipient: Optional[str]) -> None:
        logger.info("리포트 미전송: Resend API 키 또는 수신자 주소 없음")
        logger.info(f"Result Data: {result.model_dump_json(by_alias=True, indent=2)}")


class ResendReportDispatcher(ReportDispatcher):

    def __init__(
        self,
        api_key: str,
        sender: str = REPORT_SENDER,
        api_url: str = REPORT_API_URL,
        timeout: float = REPORT_TIMEOUT,
        fallback_recipient: Optional[str] = EXAMINER_EMAIL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(fallback_recipient)
        self._api_key = api_key
        self._sender = sender
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport

    async def dispatch(self, result: GradedResult, recipient: Optional[str]) -> None:
        to = self.resolve_recipient(recipient)
        if not to:
            await LoggingReportDispatcher().dispatch(result, None)
            return

        payload = {
            "from": self._sender,
            "to": to,
            "subject": report_subject(result),
            "html": render_report_html(result),
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise DeliveryFailure(f"report delivery to {to} failed: {e}") from e

        if response.status_code >= 300:
            raise DeliveryFailure(
                f"report delivery to {to} rejected: {response.status_code} - {response.text[:200]}"
            )
        logger.info(f"리포트 전송 완료: {to} ({result.candidate_name})")


def build_dispatcher(api_key: str = RESEND_API_KEY) -> ReportDispatcher:
    """API 키가 있으면 Resend, 없으면 로그 출력 디스패처."""
    if api_key:
        return ResendReportDispatcher(api_key)
    return LoggingReportDispatcher()


def report_subject(result: GradedResult) -> str:
    return f"Exam Result: {result.candidate_name} - {result.exam_title}"


def render_report_html(result: GradedResult) -> str:
    esc = html.escape
    items: List[str] = []
    for e in result.evaluation:
        mark = "✅ Correct" if e.is_correct else "❌ Incorrect"
        items.append(
            "<li>"
            f"<strong>Q:</strong> {esc(e.question)}<br/>"
            f"<strong>Student:</strong> {esc(e.student_answer)}<br/>"
            f"<strong>Correct:</strong> {esc(e.correct_answer)}<br/>"
            f"<strong>Result:</strong> {mark}"
            "</li>"
        )
    return (
        f"<h1>Exam Results for {esc(result.candidate_name or '')}</h1>"
        f"<p><strong>Exam:</strong> {esc(result.exam_title or '')}</p>"
        f"<p><strong>Score:</strong> {result.score} / {result.total_questions} "
        f"({result.percentage:.2f}%)</p>"
        f"<p><strong>Status:</strong> {esc(result.termination_reason.value)}</p>"
        f"<p><strong>Duration:</strong> {result.duration_seconds} seconds</p>"
        "<hr/>"
        "<h2>Detailed Responses</h2>"
        f"<ul>{''.join(items)}</ul>"
    )
