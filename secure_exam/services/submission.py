"""
services/submission.py

종료된 세션 기록 → 채점 요청 → 채점 입구 → 리포트 채널.
세션당 최대 1회 호출된다 (SessionController 의 종료 가드가 보장).
매 호출마다 기록에서 요청을 새로 조립하며 캐시를 두지 않는다.
"""

import logging

from secure_exam.errors import DeliveryFailure, SessionStateError
from secure_exam.models.result_model import GradedResult, GradingRequest
from secure_exam.models.session_state import SessionRecord, SessionState
from secure_exam.services.exam_store import ExamConfigStore
from secure_exam.services.report_dispatcher import ReportDispatcher

logger = logging.getLogger(__name__)


class SubmissionPipeline:

    def __init__(self, store: ExamConfigStore, dispatcher: ReportDispatcher):
        self._store = store
        self._dispatcher = dispatcher

    async def submit(self, record: SessionRecord) -> GradedResult:
        """TERMINATING 상태의 세션 기록을 채점하고 리포트를 보낸다."""
        if record.state is not SessionState.TERMINATING:
            raise SessionStateError(f"cannot submit a session in state {record.state.value}")
        request = GradingRequest(
            exam_id=record.exam_id,
            candidate_name=record.candidate_name,
            responses=list(record.responses),
            start_timestamp=record.start_timestamp,
            end_timestamp=record.end_timestamp,
            termination_reason=record.termination_reason,
        )
        return await self.process(request)

    async def process(self, request: GradingRequest) -> GradedResult:
        """채점 후 리포트 전달. 전달 실패는 결과에 영향을 주지 않는다."""
        result = self._store.grade_submission(request)
        recipient = self._dispatcher.resolve_recipient(self._store.report_recipient(result.exam_id))
        try:
            await self._dispatcher.dispatch(result, recipient)
        except DeliveryFailure as e:
            logger.error(f"리포트 전송 실패 (재시도 없음): {e}")
        return result
