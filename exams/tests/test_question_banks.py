from django.test import TestCase

from cores.exceptions import ExamConfigurationError, NotFound
from cores.tests.factories import make_bank, make_competition
from exams.models import CompetitionQuestionBank
from exams.question_banks import (
    questions_for_scoring, resolve_question_bank, validate_grade_compatibility, validate_question_count,
)


class ResolveQuestionBankTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.first = make_bank(title="First")
        cls.second = make_bank(title="Second")
        cls.competition = make_competition()
        CompetitionQuestionBank.objects.create(competition=cls.competition, question_bank=cls.first, grades=[6, 7])
        CompetitionQuestionBank.objects.create(competition=cls.competition, question_bank=cls.second, grades=[7, 8])

    def test_oldest_matching_assignment_wins(self):
        assignment = resolve_question_bank(self.competition.question_bank_assignments.all(), 7)
        self.assertEqual(assignment.question_bank, self.first)

    def test_later_assignment_used_for_its_own_grade(self):
        assignment = resolve_question_bank(self.competition.question_bank_assignments.all(), 8)
        self.assertEqual(assignment.question_bank, self.second)

    def test_unassigned_grade_is_not_found(self):
        with self.assertRaises(NotFound):
            resolve_question_bank(self.competition.question_bank_assignments.all(), 10)


class BankConfigurationTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.competition = make_competition()

    def assign(self, bank, grades):
        return CompetitionQuestionBank.objects.create(competition=self.competition, question_bank=bank, grades=grades)

    def test_bank_grade_band_must_overlap_exam(self):
        assignment = self.assign(make_bank(min_grade=1, max_grade=3), [6])
        with self.assertRaisesMessage(ExamConfigurationError, "don't overlap"):
            validate_grade_compatibility(self.competition, assignment)

    def test_assigned_grades_must_fit_exam(self):
        assignment = self.assign(make_bank(), [7, 11])
        with self.assertRaisesMessage(ExamConfigurationError, "[11]"):
            validate_grade_compatibility(self.competition, assignment)

    def test_open_ended_bank_is_compatible(self):
        validate_grade_compatibility(self.competition, self.assign(make_bank(), [6, 10]))

    def test_question_count(self):
        with self.assertRaisesMessage(ExamConfigurationError, "has no questions"):
            validate_question_count(make_bank(title="Empty", correct_indexes=()), 3)
        with self.assertRaisesMessage(ExamConfigurationError, "has only 2 questions"):
            validate_question_count(make_bank(title="Short", correct_indexes=(0, 1)), 3)
        self.assertEqual(validate_question_count(make_bank(title="Long", correct_indexes=(0, 1, 2, 3)), 3), 4)

    def test_scoring_questions_need_an_existing_bank(self):
        with self.assertRaises(ExamConfigurationError):
            questions_for_scoring(987654)
