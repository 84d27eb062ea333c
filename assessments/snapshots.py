# assessments/snapshots.py
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ExamSnapshot:
    """
    Copy of the exam taken when the submission is created.

    Scoring and results read this, never the live exam row, so later edits to
    the competition or mock test do not change an attempt already under way.
    """
    title: str
    duration_minutes: int
    total_marks: int
    question_bank_id: int
    expected_question_count: int

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            title=data.get('title') or "Exam",
            duration_minutes=int(data.get('duration_minutes') or 60),
            total_marks=int(data.get('total_marks') or 0),
            question_bank_id=data.get('question_bank_id'),
            expected_question_count=int(data.get('expected_question_count') or 0),
        )
