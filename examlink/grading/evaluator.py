"""
Answer Evaluator

This module decides whether a submission answers a question correctly and
how many points it earns. Grading is binary: a correct answer earns the
question's full point value, anything else earns nothing.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from examlink.common.logger import app_logger
from examlink.domain.attempts.model import Submission
from examlink.domain.catalog.model import Question, QuestionModality
from .similarity import similarity

logger = app_logger.getChild("grading.evaluator")


@dataclass(frozen=True)
class EvaluationOutcome:
    """Result of grading one submission."""

    is_correct: bool
    earned_points: int

    def to_dict(self) -> Dict[str, Any]:
        return {"is_correct": self.is_correct, "earned_points": self.earned_points}


INCORRECT = EvaluationOutcome(is_correct=False, earned_points=0)


class AnswerEvaluator:
    """
    Grades submissions against question definitions.

    The evaluator never raises: malformed questions, unknown modalities and
    missing submissions all grade as incorrect.
    """

    def evaluate(self, question: Question, submission: Optional[Submission]) -> EvaluationOutcome:
        """
        Evaluate a submission.

        Args:
            question: The question being answered
            submission: The participant's answer payload

        Returns:
            The evaluation outcome
        """
        if submission is None:
            return INCORRECT

        if question.modality == QuestionModality.FREE_TEXT:
            is_correct = self._is_text_correct(question, submission.text_answer)
        elif question.modality == QuestionModality.SELECT:
            is_correct = self._is_selection_correct(question, submission.selected_option_ids)
        else:
            logger.warning(f"Question {question.id} has unknown modality {question.modality!r}")
            is_correct = False

        if not is_correct:
            return INCORRECT
        return EvaluationOutcome(is_correct=True, earned_points=question.points)

    def _is_text_correct(self, question: Question, text_answer: Optional[str]) -> bool:
        if not text_answer or not isinstance(text_answer, str):
            return False
        if not question.canonical_answer:
            return False

        submitted = text_answer.lower()
        expected = question.canonical_answer.lower()
        if submitted == expected:
            return True

        tolerance = question.tolerance or 0
        if tolerance <= 0:
            return False
        return similarity(submitted, expected) >= (100 - tolerance) / 100

    def _is_selection_correct(self, question: Question, selected_option_ids) -> bool:
        if not selected_option_ids:
            return False

        selected = set(selected_option_ids)
        correct = question.correct_option_ids
        if not correct:
            return False

        if question.is_multi_select:
            # Every correct option and nothing else.
            return selected == correct
        return len(selected) == 1 and selected <= correct
