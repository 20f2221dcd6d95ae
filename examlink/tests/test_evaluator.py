"""Tests for answer evaluation across both modalities."""

import pytest

from examlink.domain.attempts.model import Submission
from examlink.domain.catalog.model import AnswerOption, QuestionModality
from examlink.grading.evaluator import AnswerEvaluator, EvaluationOutcome

from .conftest import make_question

evaluator = AnswerEvaluator()


def text(value):
    return Submission(text_answer=value)


def selection(*ids):
    return Submission(selected_option_ids=list(ids))


class TestFreeText:

    def test_case_insensitive_exact_match(self):
        question = make_question(points=3)
        assert evaluator.evaluate(question, text("paris")) == EvaluationOutcome(True, 3)
        assert evaluator.evaluate(question, text("PARIS")).is_correct

    def test_similarity_below_threshold_is_incorrect(self):
        # "parris" vs "paris" scores 0.5, under the 0.8 threshold of a 20% tolerance
        question = make_question(tolerance=20)
        assert evaluator.evaluate(question, text("parris")) == EvaluationOutcome(False, 0)

    def test_similarity_at_threshold_is_correct(self):
        # One substitution in five characters is exactly 0.8
        question = make_question(tolerance=20)
        assert evaluator.evaluate(question, text("parxs")).is_correct

    def test_zero_tolerance_requires_exact_match(self):
        question = make_question(tolerance=0)
        assert not evaluator.evaluate(question, text("parxs")).is_correct
        assert evaluator.evaluate(question, text("Paris")).is_correct

    def test_whitespace_is_not_trimmed(self):
        question = make_question(tolerance=0)
        assert not evaluator.evaluate(question, text(" Paris")).is_correct

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_answer_is_incorrect(self, value):
        question = make_question()
        assert evaluator.evaluate(question, text(value)) == EvaluationOutcome(False, 0)

    def test_full_tolerance_accepts_anything_non_empty(self):
        question = make_question(tolerance=100)
        assert evaluator.evaluate(question, text("zzz")).is_correct

    def test_question_without_canonical_answer_never_matches(self):
        question = make_question(canonical_answer=None)
        assert not evaluator.evaluate(question, text("Paris")).is_correct


class TestSelect:

    def test_multi_select_requires_exact_set(self):
        question = make_question(QuestionModality.SELECT, points=2)
        assert question.is_multi_select
        assert evaluator.evaluate(question, selection("A", "B")) == EvaluationOutcome(True, 2)
        assert evaluator.evaluate(question, selection("B", "A")).is_correct
        assert not evaluator.evaluate(question, selection("A")).is_correct
        assert not evaluator.evaluate(question, selection("A", "B", "C")).is_correct

    def test_duplicate_ids_count_once(self):
        question = make_question(QuestionModality.SELECT)
        assert evaluator.evaluate(question, selection("A", "B", "A")).is_correct

    def test_single_select(self):
        question = make_question(
            QuestionModality.SELECT,
            options=[
                AnswerOption(id="A", text="Alpha", is_correct=True),
                AnswerOption(id="B", text="Beta", is_correct=False)
            ]
        )
        assert not question.is_multi_select
        assert evaluator.evaluate(question, selection("A")).is_correct
        assert not evaluator.evaluate(question, selection("B")).is_correct
        assert not evaluator.evaluate(question, selection("A", "B")).is_correct

    @pytest.mark.parametrize("ids", [[], None])
    def test_empty_selection_is_incorrect(self, ids):
        question = make_question(QuestionModality.SELECT)
        submission = Submission(selected_option_ids=ids)
        assert evaluator.evaluate(question, submission) == EvaluationOutcome(False, 0)

    def test_unknown_option_is_incorrect(self):
        question = make_question(QuestionModality.SELECT)
        assert not evaluator.evaluate(question, selection("A", "Z")).is_correct

    def test_question_without_correct_options_never_matches(self):
        question = make_question(
            QuestionModality.SELECT,
            options=[AnswerOption(id="A", text="Alpha"), AnswerOption(id="B", text="Beta")]
        )
        assert not evaluator.evaluate(question, selection("A")).is_correct


def test_missing_submission_is_incorrect():
    assert evaluator.evaluate(make_question(), None) == EvaluationOutcome(False, 0)


def test_wrong_field_for_modality_is_incorrect():
    question = make_question(QuestionModality.SELECT)
    assert not evaluator.evaluate(question, text("A")).is_correct


def test_unknown_modality_is_incorrect():
    question = make_question()
    question.modality = "essay"
    assert evaluator.evaluate(question, text("Paris")) == EvaluationOutcome(False, 0)
