"""
errors.py — 도메인 예외 정의

라우트 계층은 이 예외들을 HTTPException 으로 변환한다.
"""


class ExamError(Exception):
    """모든 시험 도메인 예외의 기반 클래스."""


class NoActiveExam(ExamError):
    """활성화된 시험 구성이 없음."""

    def __init__(self, message: str = "No active exam"):
        super().__init__(message)


class InvalidIndex(ExamError):
    """문제 인덱스가 [0, len(questions)) 범위를 벗어남."""

    def __init__(self, index: int, total: int):
        self.index = index
        self.total = total
        super().__init__(f"Question index {index} out of range (0..{total - 1})")


class DegenerateExam(ExamError):
    """문제가 0개인 시험은 채점할 수 없음 (백분율 정의 불가)."""

    def __init__(self, message: str = "Exam has no questions"):
        super().__init__(message)


class SessionStateError(ExamError):
    """현재 세션 상태에서 허용되지 않는 동작."""


class DeliveryFailure(ExamError):
    """결과 리포트 전달 실패. 경계에서 로깅 후 삼킨다."""
