# assessments/models.py
import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q

from exams.models import Competition, MockTest, Question

from .snapshots import ExamSnapshot


class ExamType(models.TextChoices):
    COMPETITION = "competition", "Competition"
    MOCK_TEST = "mock-test", "Mock Test"


class Submission(models.Model):
    """One student's attempt at one exam; the scored result lives here."""

    class Status(models.TextChoices):
        IN_PROGRESS = "in-progress", "In progress"
        COMPLETED = "completed", "Completed"
        GRADED = "graded", "Graded"

    TERMINAL_STATUSES = (Status.COMPLETED, Status.GRADED)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='submissions')
    exam_type = models.CharField(max_length=20, choices=ExamType.choices)
    competition = models.ForeignKey(Competition, null=True, blank=True, on_delete=models.PROTECT, related_name='submissions')
    mock_test = models.ForeignKey(MockTest, null=True, blank=True, on_delete=models.PROTECT, related_name='submissions')

    exam_snapshot = models.JSONField(default=dict)
    total_questions = models.PositiveIntegerField(default=0)

    started_at = models.DateTimeField()
    submitted_at = models.DateTimeField(null=True, blank=True)

    # Written once, at finalization
    score = models.PositiveIntegerField(null=True, blank=True)
    correct_answers = models.PositiveIntegerField(null=True, blank=True)
    incorrect_answers = models.PositiveIntegerField(null=True, blank=True)
    unanswered = models.PositiveIntegerField(null=True, blank=True)
    time_taken = models.PositiveIntegerField(null=True, blank=True, help_text="Seconds")

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.IN_PROGRESS)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'competition'],
                condition=Q(competition__isnull=False),
                name='one_submission_per_competition',
            ),
            models.UniqueConstraint(
                fields=['user', 'mock_test'],
                condition=Q(mock_test__isnull=False),
                name='one_submission_per_mock_test',
            ),
        ]

    def __str__(self):
        return f"{self.user} - {self.snapshot.title} ({self.status})"

    @property
    def snapshot(self):
        return ExamSnapshot.from_dict(self.exam_snapshot)

    @property
    def exam_id(self):
        return self.competition_id if self.exam_type == ExamType.COMPETITION else self.mock_test_id

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES


class ExamSessionQuerySet(models.QuerySet):
    """
    Conditional transitions on session rows.

    Each method is a single UPDATE ... WHERE <expected state>; the returned
    boolean says whether this caller performed the transition.
    """

    def acquire_lock(self, pk):
        return bool(
            self.filter(
                pk=pk,
                is_locked=False,
                status__in=[ExamSession.Status.IN_PROGRESS, ExamSession.Status.EXPIRED],
            ).update(is_locked=True)
        )

    def release_lock(self, pk):
        return bool(self.filter(pk=pk, is_locked=True).update(is_locked=False))

    def mark_expired(self, pk):
        return bool(
            self.filter(pk=pk, status=ExamSession.Status.IN_PROGRESS).update(
                status=ExamSession.Status.EXPIRED
            )
        )

    def overdue(self, now):
        return self.filter(status=ExamSession.Status.IN_PROGRESS, end_time__lte=now)


class ExamSession(models.Model):
    """A live window on a submission, addressed by an unguessable token."""

    class Status(models.TextChoices):
        IN_PROGRESS = "in-progress", "In progress"
        SUBMITTED = "submitted", "Submitted"
        EXPIRED = "expired", "Expired"

    session_token = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='exam_sessions')
    exam_type = models.CharField(max_length=20, choices=ExamType.choices)
    exam_id = models.PositiveBigIntegerField()
    submission = models.ForeignKey(Submission, on_delete=models.CASCADE, related_name='sessions')

    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField()
    expires_at = models.DateTimeField()

    # {question_id: {"selected_option_index": int, "answered_at": epoch ms}}
    answers = models.JSONField(default=dict, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.IN_PROGRESS)
    is_locked = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ExamSessionQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['submission'],
                condition=Q(status="in-progress"),
                name='one_live_session_per_submission',
            ),
        ]

    def __str__(self):
        return f"{self.session_token} ({self.status})"

    @property
    def is_superseded(self):
        """A newer session was opened on the same submission."""
        return ExamSession.objects.filter(submission_id=self.submission_id, pk__gt=self.pk).exists()

    def time_remaining(self, now):
        return max(0, int((self.end_time - now).total_seconds()))

    def saved_answers(self):
        saved = {}
        for question_id, answer in (self.answers or {}).items():
            if isinstance(answer, dict) and 'selected_option_index' in answer:
                saved[question_id] = answer['selected_option_index']
        return saved


class SubmissionAnswer(models.Model):
    """Ledger row for one answered question; written at finalization only."""
    submission = models.ForeignKey(Submission, related_name='answers', on_delete=models.CASCADE)
    question = models.ForeignKey(Question, on_delete=models.PROTECT)
    question_text = models.TextField(blank=True)
    selected_option_index = models.PositiveSmallIntegerField()
    correct_option_index = models.PositiveSmallIntegerField()
    is_correct = models.BooleanField()
    marks_awarded = models.PositiveIntegerField(default=0)
    answered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = ('submission', 'question')


class MockTestAttempt(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='mock_test_attempts')
    mock_test = models.ForeignKey(MockTest, on_delete=models.CASCADE, related_name='attempts')
    submission = models.ForeignKey(Submission, on_delete=models.CASCADE, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('user', 'mock_test')
