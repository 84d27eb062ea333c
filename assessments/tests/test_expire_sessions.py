from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from cores.tests.factories import (
    NOW, FrozenClockMixin, confirm_enrollment, make_bank, make_competition, make_student,
)

from assessments.models import ExamSession
from assessments.services import start_exam


class ExpireSessionsCommandTests(FrozenClockMixin, TestCase):
    @classmethod
    def setUpTestData(cls):
        competition = make_competition(bank=make_bank())
        cls.early = make_student(email="early@example.com")
        cls.late = make_student(email="late@example.com")
        for student in (cls.early, cls.late):
            confirm_enrollment(student, competition)
        cls.competition = competition

    def setUp(self):
        self.freeze(NOW)
        early, _ = start_exam(self.early, 'competition', self.competition.id)
        self.freeze(NOW + timedelta(minutes=90))
        late, _ = start_exam(self.late, 'competition', self.competition.id)
        self.early_token = early['session_token']
        self.late_token = late['session_token']
        self.freeze(NOW + timedelta(hours=2))

    def status_of(self, token):
        return ExamSession.objects.get(session_token=token).status

    def test_expires_only_overdue_sessions(self):
        out = StringIO()
        call_command('expire_sessions', stdout=out)

        self.assertEqual(self.status_of(self.early_token), ExamSession.Status.EXPIRED)
        self.assertEqual(self.status_of(self.late_token), ExamSession.Status.IN_PROGRESS)
        self.assertIn("Expired 1 overdue exam sessions", out.getvalue())

    def test_dry_run_changes_nothing(self):
        out = StringIO()
        call_command('expire_sessions', '--dry-run', stdout=out)

        self.assertEqual(self.status_of(self.early_token), ExamSession.Status.IN_PROGRESS)
        self.assertIn("DRY RUN: would expire 1", out.getvalue())

    def test_submitted_sessions_are_left_alone(self):
        ExamSession.objects.filter(session_token=self.early_token).update(status=ExamSession.Status.SUBMITTED)

        out = StringIO()
        call_command('expire_sessions', stdout=out)

        self.assertEqual(self.status_of(self.early_token), ExamSession.Status.SUBMITTED)
        self.assertIn("No overdue exam sessions", out.getvalue())
