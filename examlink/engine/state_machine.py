"""
Attempt State Machine

This module owns a participant's progress through an assessment:
``created -> in_progress -> completed``. The pointer only ever moves forward
by one, each question is answered at most once, and the score is computed
exactly once.
"""

from typing import List, Optional, Tuple

from examlink.common.exceptions import (
    AttemptAlreadyAnsweredError,
    AttemptAlreadyCompletedError,
    AttemptNotFoundError,
    ConcurrentModificationError,
    DuplicateError,
    InvalidInputError,
    QuestionNotFoundError,
    QuestionOutOfOrderError
)
from examlink.common.locks import KeyedLock
from examlink.common.logger import app_logger, log_execution_time, with_context
from examlink.domain.attempts.model import Attempt, RecordedAnswer, Submission
from examlink.domain.attempts.repository import AttemptStore
from examlink.domain.catalog.model import Question, QuestionModality, utcnow
from examlink.domain.catalog.repository import AssessmentCatalog
from examlink.grading.evaluator import AnswerEvaluator, EvaluationOutcome
from examlink.grading.scoring import score_attempt

logger = app_logger.getChild("engine.state_machine")


def validate_submission(question: Question, submission: Optional[Submission]) -> None:
    """
    Check that a submission has the shape the question's modality expects.

    Raises:
        InvalidInputError: If neither or both answer fields are present, or
            the present field does not match the modality
    """
    if submission is None or (
        submission.text_answer is None and submission.selected_option_ids is None
    ):
        raise InvalidInputError(
            "Submission must contain a text answer or a selection",
            {"submission": "neither text_answer nor selected_option_ids present"}
        )

    if submission.text_answer is not None and submission.selected_option_ids is not None:
        raise InvalidInputError(
            "Submission must not contain both a text answer and a selection",
            {"submission": "both text_answer and selected_option_ids present"}
        )

    if question.modality == QuestionModality.FREE_TEXT and submission.text_answer is None:
        raise InvalidInputError(
            "Free-text questions expect a text answer",
            {"text_answer": "required for free_text questions"}
        )

    if question.modality == QuestionModality.SELECT and submission.selected_option_ids is None:
        raise InvalidInputError(
            "Selectable questions expect selected option ids",
            {"selected_option_ids": "required for single_or_multi_select questions"}
        )


class AttemptStateMachine:
    """
    Drives attempts through their lifecycle.

    ``record_answer`` and ``finalize`` are serialized per attempt id through
    a keyed lock; the store's conditional writes protect the same
    invariants when several processes share one database.
    """

    def __init__(
        self,
        store: AttemptStore,
        catalog: AssessmentCatalog,
        evaluator: Optional[AnswerEvaluator] = None,
        locks: Optional[KeyedLock] = None
    ):
        """
        Initialize the state machine.

        Args:
            store: Persistence for attempts and recorded answers
            catalog: Read access to assessments and questions
            evaluator: Answer evaluator, defaults to ``AnswerEvaluator()``
            locks: Per-attempt lock registry, defaults to a private one
        """
        self.store = store
        self.catalog = catalog
        self.evaluator = evaluator or AnswerEvaluator()
        self.locks = locks or KeyedLock("attempt")

    async def get_or_create(self, assessment_id: str, participant_id: str) -> Attempt:
        """
        Return the participant's attempt at an assessment, creating it if needed.

        Repeated calls return the same attempt and never reset its progress.

        Args:
            assessment_id: The assessment being taken
            participant_id: The participant taking it

        Returns:
            The existing or newly created Attempt
        """
        existing = await self.store.find_attempt(assessment_id, participant_id)
        if existing is not None:
            logger.debug(f"Resuming attempt {existing.id} at question {existing.current_question_index}")
            return existing

        try:
            attempt = await self.store.create_attempt(Attempt.create(assessment_id, participant_id))
        except DuplicateError:
            # Lost a creation race; the winner's attempt is the one to resume.
            winner = await self.store.find_attempt(assessment_id, participant_id)
            if winner is None:
                raise
            logger.debug(f"Concurrent creation for {assessment_id}/{participant_id}, resuming {winner.id}")
            return winner

        logger.info(f"Created attempt {attempt.id} for participant {participant_id} at assessment {assessment_id}")
        return attempt

    async def record_answer(
        self,
        attempt_id: str,
        question_id: str,
        submission: Optional[Submission]
    ) -> EvaluationOutcome:
        """
        Grade and record the answer to the attempt's current question.

        Args:
            attempt_id: The attempt being answered
            question_id: The question being answered
            submission: The participant's answer payload

        Returns:
            The evaluation outcome

        Raises:
            AttemptNotFoundError: If the attempt does not exist
            AttemptAlreadyCompletedError: If the attempt was finalized
            QuestionNotFoundError: If the question is not part of the assessment
            AttemptAlreadyAnsweredError: If the question already has an answer
            QuestionOutOfOrderError: If the question is not the current one
            InvalidInputError: If the submission shape does not fit the question
        """
        async with self.locks.acquire(attempt_id):
            attempt = await self._load(attempt_id)
            log = with_context(logger, attempt_id=attempt_id, participant_id=attempt.participant_id)

            if attempt.completed:
                raise AttemptAlreadyCompletedError(attempt_id)

            question, index = await self._locate_question(attempt, question_id)

            if await self.store.get_answer(attempt_id, question_id) is not None:
                raise AttemptAlreadyAnsweredError(attempt_id, question_id)

            if index != attempt.current_question_index:
                raise QuestionOutOfOrderError(attempt_id, question_id, attempt.current_question_index, index)

            validate_submission(question, submission)

            outcome = self.evaluator.evaluate(question, submission)
            answer = RecordedAnswer.create(
                attempt_id=attempt_id,
                question_id=question_id,
                submission=submission,
                is_correct=outcome.is_correct,
                earned_points=outcome.earned_points
            )

            try:
                updated = await self.store.save_answer(answer, expected_index=attempt.current_question_index)
            except DuplicateError:
                raise AttemptAlreadyAnsweredError(attempt_id, question_id)
            except ConcurrentModificationError:
                # Another process moved the attempt first.
                current = await self._load(attempt_id)
                if current.completed:
                    raise AttemptAlreadyCompletedError(attempt_id)
                raise QuestionOutOfOrderError(attempt_id, question_id, current.current_question_index, index)

            log.info(
                f"Recorded answer to question {question_id} (correct={outcome.is_correct}, "
                f"points={outcome.earned_points}); pointer now {updated.current_question_index}"
            )
            return outcome

    @log_execution_time(logger)
    async def finalize(self, attempt_id: str) -> int:
        """
        Compute and freeze the attempt's score.

        Finalizing a completed attempt returns its stored score without
        recomputing anything, so client retries are safe.

        Args:
            attempt_id: The attempt to finalize

        Returns:
            The final 0-100 score

        Raises:
            AttemptNotFoundError: If the attempt does not exist
        """
        async with self.locks.acquire(attempt_id):
            attempt = await self._load(attempt_id)
            if attempt.completed:
                logger.debug(f"Attempt {attempt_id} already finalized with score {attempt.score}")
                return attempt.score if attempt.score is not None else 0

            questions = await self.catalog.list_questions(attempt.assessment_id)
            answers = await self.store.list_answers(attempt_id)
            score = score_attempt(questions, answers)

            if not await self.store.complete_attempt(attempt_id, score, utcnow()):
                # Completed elsewhere between our read and write; theirs stands.
                current = await self._load(attempt_id)
                return current.score if current.score is not None else 0

            logger.info(
                f"Finalized attempt {attempt_id}: {len(answers)}/{len(questions)} answered, score {score}"
            )
            return score

    async def _load(self, attempt_id: str) -> Attempt:
        attempt = await self.store.get_attempt(attempt_id)
        if attempt is None:
            raise AttemptNotFoundError(attempt_id)
        return attempt

    async def _locate_question(self, attempt: Attempt, question_id: str) -> Tuple[Question, int]:
        questions: List[Question] = await self.catalog.list_questions(attempt.assessment_id)
        for index, question in enumerate(questions):
            if question.id == question_id:
                return question, index
        raise QuestionNotFoundError(question_id)
