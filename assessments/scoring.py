# assessments/scoring.py
from dataclasses import dataclass, field

UNANSWERED = -1


@dataclass(frozen=True)
class ScoredAnswer:
    question_id: int
    question_text: str
    selected_option_index: int
    correct_option_index: int
    is_correct: bool
    marks_awarded: int
    answered_at: int = None  # epoch ms as captured by the answer call


@dataclass(frozen=True)
class ScoreCard:
    score: int
    correct_answers: int
    incorrect_answers: int
    unanswered: int
    total_questions: int
    answers: tuple = field(default_factory=tuple)


def score_answers(questions, answers):
    """
    Grades the captured answers map against the bank.

    Every bank question counts towards the totals, but only answered
    questions yield a ScoredAnswer (and so a ledger row).
    """
    answers = answers or {}
    score = correct = incorrect = 0
    scored = []

    for question in questions:
        captured = answers.get(str(question.id)) or {}
        selected = captured.get('selected_option_index', UNANSWERED)
        if selected is None or selected < 0:
            continue

        is_correct = selected == question.correct_option_index
        if is_correct:
            score += question.marks
            correct += 1
        else:
            incorrect += 1

        scored.append(ScoredAnswer(
            question_id=question.id,
            question_text=question.question_text,
            selected_option_index=selected,
            correct_option_index=question.correct_option_index,
            is_correct=is_correct,
            marks_awarded=question.marks if is_correct else 0,
            answered_at=captured.get('answered_at'),
        ))

    total = len(questions)
    return ScoreCard(
        score=score,
        correct_answers=correct,
        incorrect_answers=incorrect,
        unanswered=total - correct - incorrect,
        total_questions=total,
        answers=tuple(scored),
    )
