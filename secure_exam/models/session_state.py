"""
models/session_state.py

시험 세션 상태를 담는 모델.
Pydantic BaseModel 기반 — 직렬화/역직렬화 및 타입 안전성 확보.
UI 코드 없음. 변경은 SessionController 만 수행한다.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel


# 앞뒤 공백 제거 후 비어 있으면 검증 실패 (422)
CandidateName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class SessionState(str, Enum):
    """세션 생명주기. CREATED → ACTIVE → TERMINATING → SUBMITTED (종료)."""
    CREATED = "Created"
    ACTIVE = "Active"
    TERMINATING = "Terminating"
    SUBMITTED = "Submitted"


class TerminationReason(str, Enum):
    """세션 종료 사유. 값은 리포트/화면에 그대로 노출되는 라벨."""
    NORMAL_SUBMISSION = "Normal Submission"
    TIME_EXPIRED = "Time Expired"
    TAB_SWITCH = "Tab Switch / Window Hidden"
    FOCUS_LOST = "Window Focus Lost"
    UNLOAD_ATTEMPTED = "Page Refresh Attempted"

    @property
    def is_violation(self) -> bool:
        """정상 제출/시간 만료 이외의 사유는 부정행위 감지로 본다."""
        return self not in (
            TerminationReason.NORMAL_SUBMISSION,
            TerminationReason.TIME_EXPIRED,
        )


class SessionRecord(BaseModel):
    """
    수험자 한 명의 1회 응시 기록.

    Attributes:
        exam_id:            응시 중인 시험 리비전 id (채점 시 스냅샷 조회 키).
        candidate_name:     수험자 이름.
        start_timestamp:    시작 시각 (UTC).
        end_timestamp:      종료 요청이 받아들여진 시각. 종료 전에는 None.
        responses:          문제 인덱스별 답안. 미응답은 "".
        termination_reason: 종료 사유. 한 번만 기록된다.
        state:              현재 생명주기 상태.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    exam_id: str
    candidate_name: CandidateName
    start_timestamp: datetime
    end_timestamp: Optional[datetime] = None
    responses: List[str] = Field(default_factory=list)
    termination_reason: Optional[TerminationReason] = None
    state: SessionState = SessionState.CREATED

    @property
    def answered_count(self) -> int:
        return sum(1 for r in self.responses if r)
