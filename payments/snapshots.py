# payments/snapshots.py
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class CompetitionSnapshot:
    """What the student signed up for, frozen at enrollment time."""
    title: str
    exam_date: str
    enrollment_fee: str

    @classmethod
    def capture(cls, competition):
        return cls(
            title=competition.title,
            exam_date=competition.exam_date.isoformat(),
            enrollment_fee=str(competition.enrollment_fee),
        )

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class UserSnapshot:
    name: str
    email: str
    phone: str
    grade: int

    @classmethod
    def capture(cls, user):
        return cls(
            name=user.student_name,
            email=user.email,
            phone=user.phone_number,
            grade=user.student_grade,
        )

    def to_dict(self):
        return asdict(self)
