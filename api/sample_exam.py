"""
api/sample_exam.py — 데모용 샘플 시험
"""

from secure_exam.models.question_model import ExamConfig, Question

SAMPLE_EXAM = ExamConfig(
    title="Sample Assessment",
    description="Two general knowledge questions.",
    questions=[
        Question(id="1", text="What is the capital of France?",
                 options=["London", "Berlin", "Paris", "Madrid"]),
        Question(id="2", text="Which planet is known as the Red Planet?",
                 options=["Venus", "Mars", "Jupiter", "Saturn"]),
    ],
    solution_key=["Paris", "Mars"],
    time_limit_minutes=30,
)
