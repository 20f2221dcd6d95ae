"""Final score calculation."""

from typing import Iterable

from examlink.domain.attempts.model import RecordedAnswer
from examlink.domain.catalog.model import Question


def compute_score(earned_points: int, total_points: int) -> int:
    """
    Percentage of points earned, rounded half up to an integer.

    Args:
        earned_points: Sum of points earned across recorded answers
        total_points: Sum of point values across the assessment's questions

    Returns:
        Score in 0-100; 0 when the assessment carries no points
    """
    if total_points <= 0:
        return 0
    # floor(100 * earned / total + 1/2) in integer arithmetic
    return (200 * earned_points + total_points) // (2 * total_points)


def score_attempt(questions: Iterable[Question], answers: Iterable[RecordedAnswer]) -> int:
    """
    Score an attempt from its assessment's questions and its recorded answers.

    Unanswered questions contribute their points to the total only.
    """
    total_points = sum(question.points for question in questions)
    earned_points = sum(answer.earned_points for answer in answers)
    return compute_score(earned_points, total_points)
