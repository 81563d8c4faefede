"""
services/grading_service.py

시험 채점 비즈니스 로직.
순수 Python 함수로 구성 — 전역 상태 변경 없음, 같은 입력이면 같은 결과.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from secure_exam.errors import DegenerateExam
from secure_exam.models.question_model import Question
from secure_exam.models.result_model import NO_ANSWER, GradedResult, QuestionEvaluation
from secure_exam.models.session_state import TerminationReason


def grade(
    questions: Sequence[Question],
    solution_key: Sequence[str],
    responses: Sequence[str],
    *,
    termination_reason: TerminationReason = TerminationReason.NORMAL_SUBMISSION,
    start_timestamp: Optional[datetime] = None,
    end_timestamp: Optional[datetime] = None,
) -> GradedResult:
    """
    답안을 채점하여 GradedResult 를 반환한다.

    정답 판정 기준: responses[i] == solution_key[i]
    (보기 텍스트 그대로 비교, 대소문자 구분, 정규화 없음)
    빈 문자열 응답은 항상 오답이며 평가 기록에는 "No Answer" 로 표시.

    Args:
        questions:          채점 대상 Question 리스트.
        solution_key:       인덱스별 정답 보기 텍스트.
        responses:          인덱스별 수험자 답안. 길이는 questions 와 같아야 한다.
        termination_reason: 결과에 기록할 종료 사유.
        start_timestamp:    응시 시작 시각.
        end_timestamp:      응시 종료 시각.

    Returns:
        GradedResult (percentage 는 소수점 둘째 자리 반올림).

    Raises:
        DegenerateExam: 문제가 0개인 경우.
        ValueError:     정답 키/답안 길이가 문제 수와 다른 경우.
    """
    total = len(questions)
    if total == 0:
        raise DegenerateExam()
    if len(solution_key) != total or len(responses) != total:
        raise ValueError(
            f"length mismatch: {total} questions, {len(solution_key)} keys, "
            f"{len(responses)} responses"
        )

    evaluation: List[QuestionEvaluation] = []
    for q, correct, answer in zip(questions, solution_key, responses):
        is_correct = bool(answer) and answer == correct
        evaluation.append(QuestionEvaluation(
            question=q.text,
            student_answer=answer or NO_ANSWER,
            correct_answer=correct,
            is_correct=is_correct,
        ))

    score = sum(1 for e in evaluation if e.is_correct)

    return GradedResult(
        score=score,
        total_questions=total,
        percentage=round(score / total * 100, 2),
        evaluation=evaluation,
        termination_reason=termination_reason,
        duration_seconds=duration_seconds(start_timestamp, end_timestamp),
    )


def duration_seconds(
    start_timestamp: Optional[datetime],
    end_timestamp: Optional[datetime],
) -> int:
    """응시 시간(초, 반올림). 시각 정보가 없으면 0."""
    if start_timestamp is None or end_timestamp is None:
        return 0
    return max(0, round((end_timestamp - start_timestamp).total_seconds()))
