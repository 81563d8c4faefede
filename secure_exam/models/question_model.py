"""
models/question_model.py

시험 문제/시험 정의 모델.
Pydantic v2 적용. 외부 JSON 은 camelCase(timeLimitMinutes 등)로 주고받는다.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Question(BaseModel):
    """
    객관식 문제 한 개.
    options 순서가 의미를 가진다 (인덱스로 답을 가리킴).
    """
    model_config = ConfigDict(frozen=True, **WIRE_CONFIG)

    id: str = Field(
        ...,
        description="문제 식별자"
    )
    text: str = Field(
        ...,
        min_length=1,
        description="발문"
    )
    options: List[str] = Field(
        ...,
        description="보기 리스트"
    )

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        # 작성 UI 가 숫자 id 를 보내는 경우가 있음
        return str(v) if isinstance(v, int) else v


class ExamDefinition(BaseModel):
    """
    수험자 쪽에 노출되는 시험 정의 (정답 키 없음).
    세션이 시작되면 불변 스냅샷으로 취급된다.
    """
    model_config = ConfigDict(frozen=True, **WIRE_CONFIG)

    id: str = Field(..., description="시험 리비전 식별자")
    title: str = Field(..., description="시험 제목")
    description: str = Field("", description="시험 설명")
    time_limit_minutes: Optional[int] = Field(
        None,
        gt=0,
        description="제한 시간(분). None 이면 타이머 없음"
    )
    questions: List[Question] = Field(default_factory=list)

    @property
    def time_limit_seconds(self) -> Optional[int]:
        if not self.time_limit_minutes:
            return None
        return self.time_limit_minutes * 60


class ExamConfig(BaseModel):
    """
    출제자가 업로드하는 시험 구성 (PUT exam configuration 본문).
    solution_key 는 채점 엔진 쪽에서만 사용된다.
    """
    model_config = WIRE_CONFIG

    title: str = Field(..., min_length=1)
    description: str = ""
    questions: List[Question]
    solution_key: List[str] = Field(
        ...,
        description="문제 인덱스별 정답 보기 텍스트"
    )
    examiner_contact: Optional[str] = Field(
        None,
        description="결과 리포트 수신 주소"
    )
    time_limit_minutes: Optional[int] = Field(None, gt=0)

    @model_validator(mode='after')
    def validate_key_alignment(self) -> 'ExamConfig':
        """정답 키는 문제와 같은 길이, 같은 순서여야 한다."""
        if len(self.solution_key) != len(self.questions):
            raise ValueError(
                f"solutionKey has {len(self.solution_key)} entries "
                f"but there are {len(self.questions)} questions"
            )
        return self

    def public_definition(self, exam_id: str) -> ExamDefinition:
        """정답 키와 출제자 연락처를 제거한 공개 정의."""
        return ExamDefinition(
            id=exam_id,
            title=self.title,
            description=self.description,
            time_limit_minutes=self.time_limit_minutes,
            questions=list(self.questions),
        )
