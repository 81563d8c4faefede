"""
api/routes.py — FastAPI 엔드포인트

/api/exam/*    : 시험 구성 저장소 / 채점 입구 (출제자, 외부 클라이언트용)
/api/session/* : 쿠키 세션에 묶인 응시 생명주기 (수험자용)
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

import api.session as session
from api.sample_exam import SAMPLE_EXAM
from secure_exam.errors import (
    DegenerateExam, ExamError, InvalidIndex, NoActiveExam, SessionStateError,
)
from secure_exam.models.question_model import ExamConfig
from secure_exam.models.result_model import GradedResult, GradingRequest
from secure_exam.models.session_state import CandidateName, SessionState
from secure_exam.services.countdown import format_remaining
from secure_exam.services.session_controller import SessionController
from secure_exam.services.signals import EnvironmentSignal

router = APIRouter()

logger = logging.getLogger(__name__)

# ── Pydantic request bodies ──────────────────────────────────────────────────

_BODY_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartSessionBody(BaseModel):
    model_config = _BODY_CONFIG

    candidate_name: CandidateName


class SaveAnswerBody(BaseModel):
    model_config = _BODY_CONFIG

    question_index: int
    value: Optional[str] = ""


class SignalBody(BaseModel):
    signal: EnvironmentSignal


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

_STATUS_CODES = {
    NoActiveExam: 404,
    InvalidIndex: 400,
    SessionStateError: 409,
    DegenerateExam: 422,
}


def _http_error(e: ExamError) -> HTTPException:
    return HTTPException(status_code=_STATUS_CODES.get(type(e), 400), detail=str(e))


def _controller(request: Request) -> Optional[SessionController]:
    return session.get(request.state.session_id, "controller")


def _require_controller(request: Request) -> SessionController:
    controller = _controller(request)
    if controller is None or controller.state is SessionState.CREATED:
        raise HTTPException(status_code=404, detail="No exam session")
    return controller


async def _await_result(controller: SessionController) -> GradedResult:
    # 요청이 끊겨도 제출 작업 자체는 취소되지 않도록 shield
    try:
        return await asyncio.shield(controller.completion)
    except ExamError as e:
        raise _http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _status(controller: SessionController) -> dict:
    record = controller.record
    remaining = controller.remaining_seconds
    reason = controller.termination_reason
    return {
        "state": controller.state.value,
        "candidateName": record.candidate_name,
        "examId": record.exam_id,
        "total": len(record.responses),
        "answeredCount": record.answered_count,
        "remainingSeconds": remaining,
        "remaining": format_remaining(remaining) if remaining is not None else None,
        "terminationReason": reason.value if reason else None,
    }


# ── 시험 구성 / 채점 입구 ─────────────────────────────────────────────────────

@router.api_route("/api/exam/setup", methods=["PUT", "POST"])
async def setup_exam(body: ExamConfig, request: Request):
    exam_id = request.app.state.store.put(body)
    return {"ok": True, "examId": exam_id}


@router.post("/api/exam/sample")
async def setup_sample_exam(request: Request):
    exam_id = request.app.state.store.put(SAMPLE_EXAM)
    return {"ok": True, "examId": exam_id}


@router.get("/api/exam/active")
async def get_active_exam(request: Request):
    try:
        exam = request.app.state.store.active()
    except NoActiveExam as e:
        raise _http_error(e)
    return exam.model_dump(by_alias=True)


@router.post("/api/exam/submit")
async def submit_exam(body: GradingRequest, request: Request):
    try:
        result = await request.app.state.pipeline.process(body)
    except ExamError as e:
        raise _http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"success": True, **result.summary()}


# ── 응시 세션 ─────────────────────────────────────────────────────────────────

@router.post("/api/session/start")
async def start_session(body: StartSessionBody, request: Request):
    sid = request.state.session_id
    controller = _controller(request)
    if controller is not None and controller.state is not SessionState.CREATED:
        raise HTTPException(status_code=409, detail="Exam already attempted in this session")

    try:
        exam = request.app.state.store.active()
        controller = SessionController(request.app.state.pipeline)
        record = controller.start(body.candidate_name, exam)
    except ExamError as e:
        raise _http_error(e)

    session.put(sid, "controller", controller)
    return {
        "ok": True,
        "exam": exam.model_dump(by_alias=True),
        "startTimestamp": record.start_timestamp.isoformat(),
        **_status(controller),
    }


@router.post("/api/session/answer")
async def save_answer(body: SaveAnswerBody, request: Request):
    controller = _require_controller(request)
    try:
        accepted = controller.record_answer(body.question_index, body.value)
    except InvalidIndex as e:
        raise _http_error(e)
    return {
        "ok": accepted,
        "state": controller.state.value,
        "answeredCount": controller.record.answered_count,
    }


@router.post("/api/session/signal")
async def report_signal(body: SignalBody, request: Request):
    controller = _require_controller(request)
    prevent_default = controller.signals.emit(body.signal)
    reason = controller.termination_reason
    return {
        "preventDefault": prevent_default,
        "state": controller.state.value,
        "terminationReason": reason.value if reason else None,
    }


@router.post("/api/session/submit")
async def submit_session(request: Request):
    controller = _require_controller(request)
    controller.submit()
    result = await _await_result(controller)
    return result.summary()


@router.get("/api/session/status")
async def session_status(request: Request):
    return _status(_require_controller(request))


@router.get("/api/session/result")
async def session_result(request: Request):
    controller = _require_controller(request)
    if controller.completion is None:
        raise HTTPException(status_code=409, detail="Exam has not been submitted")
    result = await _await_result(controller)
    return result.model_dump(mode="json", by_alias=True)


@router.post("/api/reset")
async def reset_session(request: Request):
    controller = _controller(request)
    if controller is not None and controller.state is SessionState.ACTIVE:
        raise HTTPException(status_code=409, detail="Exam in progress")
    session.reset(request.state.session_id)
    return {"ok": True}
