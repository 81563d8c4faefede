"""
api/app.py — FastAPI 앱 인스턴스 + 세션 미들웨어
"""

import logging
import threading
import time
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import SESSION_CLEANUP_INTERVAL, SESSION_TTL
from api.routes import router
import api.session as session
from secure_exam.services.exam_store import ExamConfigStore
from secure_exam.services.report_dispatcher import ReportDispatcher, build_dispatcher
from secure_exam.services.submission import SubmissionPipeline

SESSION_COOKIE = "exam_session"

logger = logging.getLogger(__name__)


def create_app(
    store: Optional[ExamConfigStore] = None,
    dispatcher: Optional[ReportDispatcher] = None,
    cleanup: bool = True,
) -> FastAPI:
    app = FastAPI(title="SecureExam", docs_url=None, redoc_url=None)

    # 시험 구성 저장소 / 채점·리포트 파이프라인 (앱 단위 인스턴스)
    app.state.store = store or ExamConfigStore()
    app.state.pipeline = SubmissionPipeline(app.state.store, dispatcher or build_dispatcher())

    # CORS (모바일 브라우저 등 다양한 출처 허용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 세션 미들웨어: 쿠키에서 세션 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=SESSION_TTL,
        )
        return response

    app.include_router(router)

    # 만료 세션 주기적 정리
    def _cleanup_loop():
        while True:
            time.sleep(SESSION_CLEANUP_INTERVAL)
            removed = session.cleanup_expired()
            if removed:
                logger.info(f"만료 세션 {removed}개 정리")

    if cleanup:
        t = threading.Thread(target=_cleanup_loop, daemon=True)
        t.start()

    return app
