# olympiad_platform/exams/question_banks.py
"""
Read-side helpers over the question banks.

Banks are assigned per grade to a competition or a mock test. The exam core
only ever reads them: it resolves the bank for a student's grade at start
time, validates the assignment, and loads questions either for the client
(without answers) or for scoring (with answers).
"""
import logging

from cores.exceptions import ExamConfigurationError, NotFound

from .models import Question, QuestionBank

logger = logging.getLogger(__name__)

DEFAULT_MIN_GRADE = 0
DEFAULT_MAX_GRADE = 12


def resolve_question_bank(assignments, grade):
    """
    Returns the first assignment whose grades contain `grade`.

    `assignments` is the exam's assignment queryset; rows are walked in
    insertion order, so the oldest matching assignment wins.
    """
    for assignment in assignments.order_by('id').select_related('question_bank'):
        if grade in (assignment.grades or []):
            return assignment
    raise NotFound(f"No question bank for grade {grade}")


def validate_grade_compatibility(exam, assignment):
    bank = assignment.question_bank
    bank_min = bank.min_grade if bank.min_grade is not None else DEFAULT_MIN_GRADE
    bank_max = bank.max_grade if bank.max_grade is not None else DEFAULT_MAX_GRADE

    if bank_max < exam.min_grade or bank_min > exam.max_grade:
        raise ExamConfigurationError(
            f"Question bank grades ({bank_min}-{bank_max}) don't overlap with "
            f"exam grades ({exam.min_grade}-{exam.max_grade})"
        )

    invalid = [g for g in assignment.grades if g < exam.min_grade or g > exam.max_grade]
    if invalid:
        raise ExamConfigurationError(
            f"Question bank assigned for grades [{','.join(str(g) for g in invalid)}] "
            f"but exam only supports grades {exam.min_grade}-{exam.max_grade}"
        )


def validate_question_count(bank, expected_count):
    actual = bank.questions.count()
    if actual == 0:
        raise ExamConfigurationError(
            f'Question bank "{bank.title}" has no questions. Please contact support.'
        )
    if actual < expected_count:
        raise ExamConfigurationError(
            f'Question bank "{bank.title}" has only {actual} questions, but this test '
            f'requires {expected_count}. Please contact support.'
        )
    if actual > expected_count:
        logger.warning(
            "Question bank %s has %s questions but the exam expects %s",
            bank.pk, actual, expected_count,
        )
    return actual


def questions_for_client(question_bank_id):
    return (
        Question.objects.filter(question_bank_id=question_bank_id)
        .prefetch_related('options')
        .order_by('sort_order', 'id')
    )


def questions_for_scoring(question_bank_id):
    if not QuestionBank.objects.filter(pk=question_bank_id).exists():
        raise ExamConfigurationError("Question bank not found for this submission")
    return list(
        Question.objects.filter(question_bank_id=question_bank_id)
        .only('id', 'question_text', 'correct_option_index', 'marks')
        .order_by('sort_order', 'id')
    )
