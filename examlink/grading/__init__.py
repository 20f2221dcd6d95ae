"""Answer grading: similarity, per-question evaluation and final scores."""

from .similarity import similarity
from .evaluator import AnswerEvaluator, EvaluationOutcome
from .scoring import compute_score, score_attempt

__all__ = ['similarity', 'AnswerEvaluator', 'EvaluationOutcome', 'compute_score', 'score_attempt']
