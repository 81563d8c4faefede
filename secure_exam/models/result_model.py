"""
models/result_model.py

채점 요청/결과 모델.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from secure_exam.models.session_state import CandidateName, TerminationReason

NO_ANSWER = "No Answer"

_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GradingRequest(BaseModel):
    """
    채점 엔진 입구로 들어가는 요청 (POST submit session 본문과 동일한 형태).
    exam_id 가 없으면 현재 활성 시험으로 채점한다.
    """
    model_config = _WIRE

    exam_id: Optional[str] = None
    candidate_name: CandidateName
    responses: List[str]
    start_timestamp: datetime
    end_timestamp: datetime
    termination_reason: TerminationReason = TerminationReason.NORMAL_SUBMISSION

    @field_validator('responses', mode='before')
    @classmethod
    def blank_missing_answers(cls, v):
        # 클라이언트가 미응답을 null 로 보내는 경우
        if isinstance(v, list):
            return ["" if item is None else item for item in v]
        return v

    @field_validator('termination_reason', mode='before')
    @classmethod
    def default_reason(cls, v):
        return v or TerminationReason.NORMAL_SUBMISSION

    @model_validator(mode='after')
    def validate_time_order(self) -> 'GradingRequest':
        if self.end_timestamp < self.start_timestamp:
            raise ValueError("endTimestamp precedes startTimestamp")
        return self


class QuestionEvaluation(BaseModel):
    """문제 한 개에 대한 채점 기록."""
    model_config = ConfigDict(frozen=True, **_WIRE)

    question: str
    student_answer: str
    correct_answer: str
    is_correct: bool


class GradedResult(BaseModel):
    """
    세션 1회당 한 번 생성되는 불변 채점 결과.
    0 <= score <= total_questions 가 항상 성립한다.
    """
    model_config = ConfigDict(frozen=True, **_WIRE)

    score: int = Field(..., ge=0)
    total_questions: int = Field(..., gt=0)
    percentage: float
    evaluation: List[QuestionEvaluation]
    termination_reason: TerminationReason
    duration_seconds: int = Field(..., ge=0)
    candidate_name: Optional[str] = None
    exam_id: Optional[str] = None
    exam_title: Optional[str] = None

    @model_validator(mode='after')
    def validate_score_bounds(self) -> 'GradedResult':
        if self.score > self.total_questions:
            raise ValueError("score exceeds totalQuestions")
        return self

    def summary(self) -> dict:
        """POST submit session 응답 형태."""
        return {
            "score": self.score,
            "totalQuestions": self.total_questions,
            "terminationReason": self.termination_reason.value,
        }
