# assessments/services.py
"""
Exam session lifecycle: start, init, answer, heartbeat, submit.

Every operation is an independent request. Nothing is kept in memory between
calls and there is no timer: a session that runs past its end_time is only
noticed the next time some call reads it. Concurrent calls coordinate
through conditional UPDATEs on the session and submission rows (see
ExamSessionQuerySet), never through in-process locks.
"""
import logging
from datetime import datetime, timedelta, timezone as dt_timezone

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from cores.exceptions import (
    Conflict, ExamConfigurationError, Expired, Forbidden, NotFound, ValidationFailed,
)
from cores.models import AuditLog
from exams.models import Competition, MockTest, Question
from exams.question_banks import (
    questions_for_client, questions_for_scoring, resolve_question_bank,
    validate_grade_compatibility, validate_question_count,
)
from exams.serializers import ClientQuestionSerializer
from payments.models import Enrollment

from .models import ExamSession, ExamType, MockTestAttempt, Submission, SubmissionAnswer
from .scoring import score_answers
from .snapshots import ExamSnapshot

logger = logging.getLogger(__name__)


def epoch_ms(value):
    return int(value.timestamp() * 1000)


def _from_epoch_ms(value):
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=dt_timezone.utc)


# --- Lookups ---

def _load_owned_session(user, session_token, for_update=False):
    queryset = ExamSession.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        session = queryset.get(session_token=session_token)
    except ExamSession.DoesNotExist:
        raise NotFound("Session not found or expired")
    if session.user_id != user.pk:
        raise Forbidden("This exam session belongs to another user")
    return session


def _find_submission(user, exam_type, exam_id):
    submissions = Submission.objects.filter(user=user, exam_type=exam_type)
    if exam_type == ExamType.COMPETITION:
        return submissions.filter(competition_id=exam_id).first()
    return submissions.filter(mock_test_id=exam_id).first()


def _open_session(submission, duration_minutes, now):
    end_time = now + timedelta(minutes=duration_minutes)
    return ExamSession.objects.create(
        user=submission.user,
        exam_type=submission.exam_type,
        exam_id=submission.exam_id,
        submission=submission,
        start_time=now,
        end_time=end_time,
        duration_minutes=duration_minutes,
        expires_at=end_time + timedelta(minutes=settings.EXAM_SESSION_EXPIRY_BUFFER_MINUTES),
        answers={},
        status=ExamSession.Status.IN_PROGRESS,
    )


def _start_payload(session, submission):
    return {
        "session_token": str(session.session_token),
        "submission_id": submission.pk,
        "exam_title": submission.snapshot.title,
        "duration_minutes": session.duration_minutes,
        "total_questions": submission.total_questions,
        "start_time": epoch_ms(session.start_time),
        "end_time": epoch_ms(session.end_time),
    }


def _result_payload(submission):
    return {
        "submission_id": submission.pk,
        "exam_type": submission.exam_type,
        "score": submission.score,
        "total_marks": submission.snapshot.total_marks,
        "correct_answers": submission.correct_answers,
        "incorrect_answers": submission.incorrect_answers,
        "unanswered": submission.unanswered,
        "time_taken": submission.time_taken,
    }


# --- Eligibility ---

def _grade_message(label, exam, grade):
    return (
        f"This {label} is for grades {exam.min_grade}-{exam.max_grade}. "
        f"Your grade is {grade if grade is not None else 'not set'}."
    )


def _competition_snapshot(user, exam_id, now):
    competition = Competition.objects.filter(pk=exam_id, is_published=True).first()
    if competition is None:
        raise NotFound("Competition not found")

    grade = user.student_grade
    if not competition.accepts_grade(grade):
        raise Forbidden(_grade_message("competition", competition, grade))

    enrolled = Enrollment.objects.filter(
        user=user,
        competition=competition,
        status=Enrollment.Status.CONFIRMED,
        is_payment_confirmed=True,
    ).exists()
    if not enrolled:
        raise Forbidden("You are not enrolled in this competition")

    if now < competition.exam_window_start:
        raise Forbidden("Exam has not started yet")
    if now > competition.exam_window_end:
        raise Forbidden("Exam window has closed")

    assignment = resolve_question_bank(competition.question_bank_assignments.all(), grade)
    validate_grade_compatibility(competition, assignment)
    question_count = assignment.question_bank.questions.count()

    return ExamSnapshot(
        title=competition.title,
        duration_minutes=competition.duration_minutes,
        total_marks=competition.total_marks,
        question_bank_id=assignment.question_bank_id,
        expected_question_count=question_count,
    )


def _mock_test_snapshot(user, exam_id):
    mock_test = MockTest.objects.filter(pk=exam_id, is_published=True).first()
    if mock_test is None:
        raise NotFound("Mock test not found")

    grade = user.student_grade
    if not mock_test.accepts_grade(grade):
        raise Forbidden(_grade_message("mock test", mock_test, grade))

    if MockTestAttempt.objects.filter(user=user, mock_test=mock_test).exists():
        raise Conflict("You have already attempted this mock test")

    assignment = resolve_question_bank(mock_test.question_bank_assignments.all(), grade)
    validate_grade_compatibility(mock_test, assignment)
    validate_question_count(assignment.question_bank, mock_test.total_questions)

    return ExamSnapshot(
        title=mock_test.title,
        duration_minutes=mock_test.duration_minutes,
        total_marks=mock_test.total_questions,
        question_bank_id=assignment.question_bank_id,
        expected_question_count=mock_test.total_questions,
    )


# --- Operations ---

def start_exam(user, exam_type, exam_id):
    """
    Creates (or resumes) the caller's attempt and returns the session timing.

    Returns (payload, message).
    """
    now = timezone.now()

    if not user.is_profile_complete:
        raise Forbidden("Please complete your profile before starting an exam")

    existing = _find_submission(user, exam_type, exam_id)
    if existing is not None:
        return _resume_or_recreate(existing, now)

    if exam_type == ExamType.COMPETITION:
        snapshot = _competition_snapshot(user, exam_id, now)
    else:
        snapshot = _mock_test_snapshot(user, exam_id)

    try:
        with transaction.atomic():
            submission = Submission.objects.create(
                user=user,
                exam_type=exam_type,
                competition_id=exam_id if exam_type == ExamType.COMPETITION else None,
                mock_test_id=exam_id if exam_type == ExamType.MOCK_TEST else None,
                exam_snapshot=snapshot.to_dict(),
                total_questions=snapshot.expected_question_count,
                started_at=now,
                status=Submission.Status.IN_PROGRESS,
            )
            session = _open_session(submission, snapshot.duration_minutes, now)

            if exam_type == ExamType.MOCK_TEST:
                MockTestAttempt.objects.create(user=user, mock_test_id=exam_id, submission=submission)
            else:
                Enrollment.objects.filter(user=user, competition_id=exam_id).update(submission=submission)
    except IntegrityError:
        logger.warning("Concurrent start for user %s on %s %s", user.pk, exam_type, exam_id)
        raise Conflict("This exam is already being started")

    logger.info(
        "Started %s %s for user %s: submission %s, session %s",
        exam_type, exam_id, user.pk, submission.pk, session.pk,
    )
    return _start_payload(session, submission), "Exam started"


def _resume_or_recreate(submission, now):
    if submission.is_terminal:
        raise Conflict("You have already attempted this exam")

    live = submission.sessions.filter(status=ExamSession.Status.IN_PROGRESS).first()
    if live is not None and now < live.end_time:
        logger.info("Resuming session %s for submission %s", live.pk, submission.pk)
        return _start_payload(live, submission), "Resuming existing session"

    if submission.exam_type == ExamType.COMPETITION:
        competition = Competition.objects.filter(pk=submission.competition_id).first()
        if competition is None:
            raise NotFound("Competition not found")
        if now > competition.exam_window_end:
            raise Expired("Exam window has closed. You can no longer restart this exam.")

    # The replacement session starts with an empty answers map: whatever the
    # previous session captured is not carried over.
    try:
        with transaction.atomic():
            if live is not None:
                ExamSession.objects.mark_expired(live.pk)
            session = _open_session(submission, submission.snapshot.duration_minutes, now)
    except IntegrityError:
        raise Conflict("This exam is already being resumed")

    logger.info(
        "Recreated session %s for in-progress submission %s (previous answers discarded)",
        session.pk, submission.pk,
    )
    return _start_payload(session, submission), "Session recreated for existing submission"


def init_exam(user, session_token):
    now = timezone.now()
    session = _load_owned_session(user, session_token)

    if session.status == ExamSession.Status.SUBMITTED:
        raise ValidationFailed("This exam has already been submitted")
    if session.status == ExamSession.Status.EXPIRED or now >= session.end_time:
        ExamSession.objects.mark_expired(session.pk)
        raise Expired("Exam session has expired")

    submission = session.submission
    snapshot = submission.snapshot
    if not snapshot.question_bank_id:
        raise ExamConfigurationError("Question bank not found in submission")

    questions = ClientQuestionSerializer(questions_for_client(snapshot.question_bank_id), many=True).data

    return {
        "session_token": str(session.session_token),
        "submission_id": submission.pk,
        "exam_type": session.exam_type,
        "exam_id": session.exam_id,
        "exam_title": snapshot.title,
        "duration_minutes": session.duration_minutes,
        "total_questions": len(questions),
        "time_remaining": session.time_remaining(now),
        "start_time": epoch_ms(session.start_time),
        "end_time": epoch_ms(session.end_time),
        "questions": questions,
        "saved_answers": session.saved_answers(),
    }


def save_answer(user, session_token, question_id, selected_option_index):
    now = timezone.now()

    with transaction.atomic():
        session = _load_owned_session(user, session_token, for_update=True)

        if session.status != ExamSession.Status.IN_PROGRESS:
            raise ValidationFailed(f"Cannot save answers - exam is {session.status}")
        if session.submission.is_terminal:
            raise ValidationFailed("Cannot save answers - exam is submitted")
        if session.is_locked:
            raise Conflict("Exam is being submitted")
        if now >= session.end_time:
            raise Expired("Exam time has expired")

        bank_id = session.submission.snapshot.question_bank_id
        question = Question.objects.filter(pk=question_id, question_bank_id=bank_id).first()
        if question is None:
            raise NotFound("Question not found in this exam")
        if not question.options.filter(option_index=selected_option_index).exists():
            raise ValidationFailed("selected_option_index is not an option of this question")

        saved_at = epoch_ms(now)
        answers = dict(session.answers or {})
        answers[str(question_id)] = {
            "selected_option_index": selected_option_index,
            "answered_at": saved_at,
        }
        session.answers = answers
        session.save(update_fields=['answers', 'updated_at'])

    return {
        "success": True,
        "question_id": question_id,
        "selected_option_index": selected_option_index,
        "saved_at": saved_at,
    }


def heartbeat(user, session_token):
    """
    Reports the session clock. Never writes: when time is up it only tells
    the client to call submit.
    """
    now = timezone.now()
    session = ExamSession.objects.filter(session_token=session_token).first()

    if session is None:
        return {
            "is_active": False,
            "time_remaining": 0,
            "answered_count": 0,
            "status": "not_found",
            "should_auto_submit": False,
        }
    if session.user_id != user.pk:
        raise Forbidden("This exam session belongs to another user")

    answered_count = len(session.answers or {})
    session_status = session.status
    if session_status == ExamSession.Status.IN_PROGRESS and session.submission.is_terminal:
        session_status = ExamSession.Status.SUBMITTED
    in_progress = session_status == ExamSession.Status.IN_PROGRESS
    time_up = now >= session.end_time

    return {
        "is_active": in_progress and not time_up,
        "time_remaining": session.time_remaining(now) if in_progress else 0,
        "answered_count": answered_count,
        "status": session_status,
        "should_auto_submit": in_progress and time_up,
    }


def submit_exam(user, session_token):
    """
    Scores and finalizes the attempt. Safe to repeat: once submitted, the
    stored result is returned unchanged.
    """
    session = _load_owned_session(user, session_token)

    if session.status == ExamSession.Status.SUBMITTED:
        return _result_payload(Submission.objects.get(pk=session.submission_id))
    if session.submission.is_terminal:
        return _close_session(session, session.submission)

    # Only the newest session of a submission may finalize it
    if session.is_superseded:
        raise Conflict("This session has been replaced by a newer one")

    if not ExamSession.objects.acquire_lock(session.pk):
        session.refresh_from_db(fields=['status'])
        if session.status == ExamSession.Status.SUBMITTED:
            return _result_payload(Submission.objects.get(pk=session.submission_id))
        raise Conflict("Exam is already being submitted")

    try:
        return _finalize(session)
    except Exception:
        # A crash before this line leaves the row locked; nothing else clears it
        ExamSession.objects.release_lock(session.pk)
        logger.warning("Released submit lock on session %s after a failure", session.pk)
        raise


def _close_session(session, submission):
    """Brings a session in line with a submission that is already terminal."""
    ExamSession.objects.filter(pk=session.pk).exclude(status=ExamSession.Status.SUBMITTED).update(
        status=ExamSession.Status.SUBMITTED, is_locked=False,
    )
    return _result_payload(submission)


def _finalize(session):
    now = timezone.now()
    session.refresh_from_db()
    submission = Submission.objects.get(pk=session.submission_id)
    snapshot = submission.snapshot

    questions = questions_for_scoring(snapshot.question_bank_id)
    card = score_answers(questions, session.answers)
    time_taken = max(0, int((now - submission.started_at).total_seconds()))

    with transaction.atomic():
        finalized = Submission.objects.filter(
            pk=submission.pk, status=Submission.Status.IN_PROGRESS,
        ).update(
            score=card.score,
            correct_answers=card.correct_answers,
            incorrect_answers=card.incorrect_answers,
            unanswered=card.unanswered,
            time_taken=time_taken,
            submitted_at=now,
            status=Submission.Status.COMPLETED,
        )
        if not finalized:
            submission.refresh_from_db()
            logger.info("Submission %s was already finalized, closing session %s", submission.pk, session.pk)
            return _close_session(session, submission)

        SubmissionAnswer.objects.bulk_create([
            SubmissionAnswer(
                submission=submission,
                question_id=answer.question_id,
                question_text=answer.question_text,
                selected_option_index=answer.selected_option_index,
                correct_option_index=answer.correct_option_index,
                is_correct=answer.is_correct,
                marks_awarded=answer.marks_awarded,
                answered_at=_from_epoch_ms(answer.answered_at),
            )
            for answer in card.answers
        ])

        ExamSession.objects.filter(pk=session.pk).update(
            status=ExamSession.Status.SUBMITTED, is_locked=False,
        )

        if session.exam_type == ExamType.MOCK_TEST:
            MockTestAttempt.objects.update_or_create(
                user_id=session.user_id,
                mock_test_id=submission.mock_test_id,
                defaults={'submission': submission},
            )

        AuditLog.record(
            submission.user, 'SUBMIT', submission,
            f"Scored {card.score}/{snapshot.total_marks} "
            f"({card.correct_answers} correct, {card.incorrect_answers} incorrect, {card.unanswered} unanswered)",
        )

    submission.refresh_from_db()
    logger.info(
        "Submission %s finalized via session %s: score %s", submission.pk, session.pk, submission.score,
    )
    return _result_payload(submission)


def expire_overdue_sessions(now=None, dry_run=False):
    """
    Marks every in-progress session past its end_time as expired.

    Uses the same conditional transition as the request path, so it can run
    alongside live traffic. Returns the overdue sessions considered.
    """
    now = now or timezone.now()
    overdue = list(ExamSession.objects.overdue(now).values_list('pk', flat=True))
    if dry_run:
        return overdue
    expired = [pk for pk in overdue if ExamSession.objects.mark_expired(pk)]
    if expired:
        logger.info("Expired %s overdue exam sessions", len(expired))
    return expired
