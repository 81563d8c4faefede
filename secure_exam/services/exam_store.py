"""
services/exam_store.py

시험 구성 저장소 + 채점 입구.

- put() 은 새 리비전 id 를 발급하고 활성 시험을 교체한다.
- 이전 리비전은 유지되므로 진행 중인 세션은 시작 시점의 스냅샷으로 채점된다.
- 정답 키는 이 모듈 밖으로 나가지 않는다. 세션 쪽에는 ExamDefinition 만 전달.
"""

import logging
import threading
import uuid
from typing import Dict, Optional

from secure_exam.errors import NoActiveExam
from secure_exam.models.question_model import ExamConfig, ExamDefinition
from secure_exam.models.result_model import GradedResult, GradingRequest
from secure_exam.services.grading_service import grade

logger = logging.getLogger(__name__)


class ExamConfigStore:
    """인메모리 시험 구성 저장소 (단일 활성 시험)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._revisions: Dict[str, ExamConfig] = {}
        self._active_id: Optional[str] = None

    def put(self, config: ExamConfig) -> str:
        """시험 구성을 저장하고 활성 시험으로 지정. 새 리비전 id 반환."""
        exam_id = uuid.uuid4().hex[:12]
        snapshot = config.model_copy(deep=True)
        with self._lock:
            self._revisions[exam_id] = snapshot
            replaced = self._active_id
            self._active_id = exam_id
        if replaced:
            logger.info(f"활성 시험 교체: {replaced} → {exam_id} ({snapshot.title})")
        else:
            logger.info(f"활성 시험 등록: {exam_id} ({snapshot.title}, {len(snapshot.questions)}문항)")
        return exam_id

    def has_active(self) -> bool:
        with self._lock:
            return self._active_id is not None

    def active(self) -> ExamDefinition:
        """활성 시험의 공개 정의. 없으면 NoActiveExam."""
        with self._lock:
            exam_id = self._active_id
        if exam_id is None:
            raise NoActiveExam()
        return self.definition(exam_id)

    def definition(self, exam_id: str) -> ExamDefinition:
        return self._config(exam_id).public_definition(exam_id)

    def report_recipient(self, exam_id: str) -> Optional[str]:
        return self._config(exam_id).examiner_contact

    def clear(self) -> None:
        with self._lock:
            self._revisions.clear()
            self._active_id = None

    def grade_submission(self, request: GradingRequest) -> GradedResult:
        """
        채점 엔진 입구. request.exam_id 의 스냅샷(없으면 활성 시험)으로 채점한다.

        Raises:
            NoActiveExam:   해당 시험 구성이 없음.
            ValueError:     답안 개수가 문제 수와 다름.
            DegenerateExam: 문제가 0개.
        """
        exam_id = request.exam_id
        if exam_id is None:
            with self._lock:
                exam_id = self._active_id
            if exam_id is None:
                raise NoActiveExam()
        config = self._config(exam_id)

        result = grade(
            config.questions,
            config.solution_key,
            request.responses,
            termination_reason=request.termination_reason,
            start_timestamp=request.start_timestamp,
            end_timestamp=request.end_timestamp,
        )
        result = result.model_copy(update={
            "candidate_name": request.candidate_name,
            "exam_id": exam_id,
            "exam_title": config.title,
        })
        logger.info(
            f"채점 완료 [{exam_id}] {request.candidate_name}: "
            f"{result.score}/{result.total_questions} ({result.percentage:.2f}%), "
            f"사유={result.termination_reason.value}"
        )
        return result

    def _config(self, exam_id: str) -> ExamConfig:
        with self._lock:
            config = self._revisions.get(exam_id)
        if config is None:
            raise NoActiveExam(f"Exam {exam_id} not found")
        return config
