"""Fixture builders shared by the app test suites."""
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model

from exams.models import (
    Competition, CompetitionQuestionBank, MockTest, MockTestQuestionBank,
    Question, QuestionBank, QuestionOption,
)
from payments.models import Enrollment

User = get_user_model()

NOW = datetime(2026, 3, 1, 4, 30, tzinfo=dt_timezone.utc)


class FrozenClockMixin:
    """Pins django.utils.timezone.now() for the rest of the test."""

    def freeze(self, moment):
        patcher = mock.patch('django.utils.timezone.now', return_value=moment)
        patcher.start()
        self.addCleanup(patcher.stop)
        return moment


def make_student(email="asha@example.com", grade=7, **extra):
    profile = {
        'student_name': "Asha Rao",
        'student_grade': grade,
        'school_name': "Springfield High",
        'phone_number': "",
    }
    profile.update(extra)
    return User.objects.create_user(username=email, email=email, password="pass12345", **profile)


def make_bank(title="Grade 7 bank", correct_indexes=(1, 0, 2), option_count=4, marks=1, **extra):
    bank = QuestionBank.objects.create(title=title, **extra)
    for position, correct in enumerate(correct_indexes):
        question = Question.objects.create(
            question_bank=bank,
            question_text=f"Question {position + 1}",
            marks=marks,
            correct_option_index=correct,
            sort_order=position,
        )
        for index in range(option_count):
            QuestionOption.objects.create(question=question, option_index=index, text=f"Option {index}")
    return bank


def make_competition(bank=None, grades=(6, 7, 8), **overrides):
    fields = {
        'title': "National Science Olympiad",
        'slug': "nso-2026",
        'is_published': True,
        'registration_start_date': NOW - timedelta(days=10),
        'registration_end_date': NOW + timedelta(days=5),
        'exam_date': NOW.date(),
        'exam_window_start': NOW - timedelta(hours=1),
        'exam_window_end': NOW + timedelta(hours=5),
        'duration_minutes': 60,
        'enrollment_fee': Decimal("499.00"),
        'min_grade': 6,
        'max_grade': 10,
        'total_questions': 3,
        'total_marks': 3,
    }
    fields.update(overrides)
    competition = Competition.objects.create(**fields)
    if bank is not None:
        CompetitionQuestionBank.objects.create(competition=competition, question_bank=bank, grades=list(grades))
    return competition


def make_mock_test(bank=None, grades=(7,), **overrides):
    fields = {
        'title': "Practice Test 1",
        'is_published': True,
        'duration_minutes': 30,
        'min_grade': 6,
        'max_grade': 10,
        'total_questions': 3,
    }
    fields.update(overrides)
    mock_test = MockTest.objects.create(**fields)
    if bank is not None:
        MockTestQuestionBank.objects.create(mock_test=mock_test, question_bank=bank, grades=list(grades))
    return mock_test


def confirm_enrollment(user, competition, payment=None):
    return Enrollment.objects.create(
        user=user,
        competition=competition,
        payment=payment,
        status=Enrollment.Status.CONFIRMED,
        is_payment_confirmed=True,
    )
