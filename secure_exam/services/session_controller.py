"""
services/session_controller.py

수험자 1명의 1회 응시를 소유하는 상태 머신.

    CREATED → ACTIVE → TERMINATING → SUBMITTED

- 타이머 tick, 환경 신호, 답안 수정, 제출은 모두 같은 이벤트 루프에서 직렬로 처리된다.
- 종료는 TerminationGuard(단일 할당 슬롯)를 먼저 차지한 요청 하나만 유효하다.
  이후 요청은 사유와 무관하게 무시되고, 첫 요청의 결과(Future)를 그대로 돌려받는다.
- TERMINATING 진입 후의 답안 수정은 조용히 무시된다.
"""

import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from config import TIMER_TICK_SECONDS
from secure_exam.errors import InvalidIndex, NoActiveExam, SessionStateError
from secure_exam.models.question_model import ExamDefinition
from secure_exam.models.result_model import GradedResult
from secure_exam.models.session_state import SessionRecord, SessionState, TerminationReason
from secure_exam.services.countdown import CountdownTimer
from secure_exam.services.integrity_monitor import IntegrityMonitor
from secure_exam.services.signals import SignalSource
from secure_exam.services.submission import SubmissionPipeline

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TerminationGuard:
    """
    종료 사유 슬롯. compare-and-set 으로 최초 1회만 기록된다.
    승자의 완료 Future 도 같은 락 안에서 만들어지므로, 패자는 항상 그 Future 를 받는다.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._reason: Optional[TerminationReason] = None
        self._completion: Optional[asyncio.Future] = None

    @property
    def reason(self) -> Optional[TerminationReason]:
        return self._reason

    @property
    def completion(self) -> Optional[asyncio.Future]:
        return self._completion

    def claim(
        self,
        reason: TerminationReason,
        make_completion: Optional[Callable[[], asyncio.Future]] = None,
    ) -> bool:
        with self._lock:
            if self._reason is not None:
                return False
            self._reason = reason
            if make_completion is not None:
                self._completion = make_completion()
            return True


class SessionController:

    def __init__(
        self,
        pipeline: SubmissionPipeline,
        signals: Optional[SignalSource] = None,
        tick_seconds: float = TIMER_TICK_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.signals = signals or SignalSource()
        self._pipeline = pipeline
        self._tick_seconds = tick_seconds
        self._clock = clock
        self._guard = TerminationGuard()
        self._state = SessionState.CREATED
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._timer: Optional[CountdownTimer] = None
        self._monitor: Optional[IntegrityMonitor] = None

        self.exam: Optional[ExamDefinition] = None
        self.record: Optional[SessionRecord] = None
        self.result: Optional[GradedResult] = None
        self.error: Optional[BaseException] = None

    # ── 조회 ────────────────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def termination_reason(self) -> Optional[TerminationReason]:
        return self._guard.reason

    @property
    def timer(self) -> Optional[CountdownTimer]:
        return self._timer

    @property
    def remaining_seconds(self) -> Optional[int]:
        if self._timer is None:
            return None
        return self._timer.remaining

    @property
    def completion(self) -> Optional[asyncio.Future]:
        """첫 종료 요청이 만든 완료 Future (세션 루프 소속). 종료 전에는 None."""
        return self._guard.completion

    # ── 생명주기 ────────────────────────────────────────────────────────────

    def start(self, candidate_name: str, exam: Optional[ExamDefinition]) -> SessionRecord:
        """
        세션 시작. 실행 중인 이벤트 루프 안에서 호출해야 하며, 그 루프가 세션 루프가 된다.

        Raises:
            SessionStateError: CREATED 상태가 아님.
            NoActiveExam:      시험 정의가 없음.
            RuntimeError:      실행 중인 이벤트 루프가 없음.
        """
        if self._state is not SessionState.CREATED:
            raise SessionStateError(f"session already {self._state.value}")
        if exam is None:
            raise NoActiveExam()
        loop = asyncio.get_running_loop()

        record = SessionRecord(
            exam_id=exam.id,
            candidate_name=candidate_name,
            start_timestamp=self._clock(),
            responses=[""] * len(exam.questions),
        )
        self._loop = loop
        self.exam = exam
        self.record = record

        limit = exam.time_limit_seconds
        if limit:
            self._timer = CountdownTimer(limit, interval=self._tick_seconds)

        self._monitor = IntegrityMonitor(self.request_termination)
        self._monitor.attach(self.signals, self._timer)
        self._set_state(SessionState.ACTIVE)

        if self._timer is not None:
            self._timer.arm()
        logger.info(
            f"세션 시작: {candidate_name} / {exam.title} [{exam.id}] "
            f"({len(exam.questions)}문항, 제한시간 {limit or '없음'})"
        )
        return record

    def record_answer(self, question_index: int, value: Optional[str]) -> bool:
        """
        답안 기록 (마지막 값 우선). ACTIVE 가 아니면 조용히 무시하고 False.

        Raises:
            InvalidIndex: 인덱스 범위 밖.
        """
        if self._state is not SessionState.ACTIVE or self._guard.reason is not None:
            logger.debug(f"{self._state.value} 상태의 답안 수정 무시 (index={question_index})")
            return False
        total = len(self.record.responses)
        if not 0 <= question_index < total:
            raise InvalidIndex(question_index, total)
        self.record.responses[question_index] = value or ""
        return True

    def submit(self) -> asyncio.Future:
        """수험자의 명시적 제출. 자동 종료 신호와 같은 가드에서 경쟁한다."""
        return self.request_termination(TerminationReason.NORMAL_SUBMISSION)

    def request_termination(self, reason: TerminationReason) -> asyncio.Future:
        """
        세션 종료 요청. 최초 호출만 유효하고 이후 호출은 아무것도 바꾸지 않는다.
        다른 스레드에서 불러도 되며, 그 경우 정리/제출은 세션 루프에서 실행된다.

        Returns:
            세션 루프 소속 완료 Future (await 하면 GradedResult). 모든 호출이 같은 Future 를 받는다.

        Raises:
            SessionStateError: 시작되지 않은 세션.
        """
        if self._loop is None:
            raise SessionStateError("session has not started")

        if not self._guard.claim(reason, self._loop.create_future):
            logger.info(
                f"종료 요청 무시: {reason.value} "
                f"(이미 {self._guard.reason.value} 로 종료됨)"
            )
            return self._guard.completion

        ended_at = self._clock()
        if self._on_session_loop():
            self._begin_termination(reason, ended_at)
        else:
            self._loop.call_soon_threadsafe(self._begin_termination, reason, ended_at)
        return self._guard.completion

    def _on_session_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _begin_termination(self, reason: TerminationReason, ended_at: datetime) -> None:
        # 세션 루프에서만 실행. 취소/구독 해제는 무조건 수행하고,
        # 이미 전달 중인 신호는 가드에서 걸러진다.
        if self._timer is not None:
            self._timer.stop()
        if self._monitor is not None:
            self._monitor.detach()

        self.record.termination_reason = reason
        self.record.end_timestamp = ended_at
        self._set_state(SessionState.TERMINATING)
        logger.info(f"세션 종료 요청 수락: {self.record.candidate_name} - {reason.value}")

        task = self._loop.create_task(self._submit())
        task.add_done_callback(self._on_submit_done)

    async def _submit(self) -> GradedResult:
        result = await self._pipeline.submit(self.record)
        self.result = result
        self._set_state(SessionState.SUBMITTED)
        return result

    def _on_submit_done(self, task: asyncio.Task) -> None:
        completion = self._guard.completion
        if task.cancelled():
            logger.error(f"제출 작업 취소됨: {self.record.candidate_name}")
            completion.cancel()
            return
        error = task.exception()
        if error is not None:
            # 세션은 TERMINATING 에 남고 결과는 생성되지 않는다.
            self.error = error
            logger.error(f"채점 실패: {self.record.candidate_name} - {error!r}")
            completion.set_exception(error)
            return
        completion.set_result(task.result())

    def _set_state(self, state: SessionState) -> None:
        logger.debug(f"상태 전이: {self._state.value} → {state.value}")
        self._state = state
        if self.record is not None:
            self.record.state = state
