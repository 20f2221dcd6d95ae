"""
Session Orchestrator

This module is the public entry surface of the attempt engine. It resolves
access tokens, enforces that callers only touch their own attempts, and
composes the catalog, the attempt store and the state machine.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from examlink.common.exceptions import (
    AssessmentNotFoundError,
    AttemptNotFoundError,
    ForbiddenError,
    InvalidInputError
)
from examlink.common.logger import app_logger, with_context
from examlink.domain.attempts.model import Attempt, LocationSample, RecordedAnswer, Submission
from examlink.domain.attempts.repository import AttemptStore
from examlink.domain.catalog.model import Assessment, Question, QuestionModality
from examlink.domain.catalog.repository import AssessmentCatalog
from examlink.grading.evaluator import EvaluationOutcome
from .state_machine import AttemptStateMachine

logger = app_logger.getChild("engine.orchestrator")

Location = Tuple[Optional[float], Optional[float]]


@dataclass
class AttemptSession:
    """What a participant needs to start or resume taking an assessment."""

    assessment: Assessment
    questions: List[Question]
    attempt_id: str
    current_question_index: int
    completed: bool

    def to_dict(self) -> Dict[str, Any]:
        assessment = self.assessment.to_dict()
        # Participants never see the owner or the answers.
        assessment.pop("owner_id", None)
        return {
            "assessment": assessment,
            "questions": [q.to_dict(include_answers=False) for q in self.questions],
            "attempt_id": self.attempt_id,
            "current_question_index": self.current_question_index,
            "completed": self.completed
        }


@dataclass
class QuestionResult:
    """One row of the results breakdown."""

    question_id: str
    prompt: str
    user_answer: str
    correct_answer: str
    is_correct: bool
    points: int
    earned_points: int
    answered: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "prompt": self.prompt,
            "user_answer": self.user_answer,
            "correct_answer": self.correct_answer,
            "is_correct": self.is_correct,
            "points": self.points,
            "earned_points": self.earned_points,
            "answered": self.answered
        }


@dataclass
class AttemptResults:
    """
    Outcome of an attempt.

    ``score`` is None while the attempt has not been finalized.
    """

    attempt_id: str
    assessment_id: str
    score: Optional[int]
    completed: bool
    total_questions: int
    correct_answers: int
    breakdown: List[QuestionResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempt_id": self.attempt_id,
            "assessment_id": self.assessment_id,
            "score": self.score,
            "completed": self.completed,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "breakdown": [row.to_dict() for row in self.breakdown]
        }


@dataclass
class AttemptSummary:
    """An attempt listed together with the assessment it belongs to."""

    attempt: Attempt
    assessment_title: str
    assessment_description: str
    access_token: str

    def to_dict(self) -> Dict[str, Any]:
        result = self.attempt.to_dict()
        result.update({
            "assessment_title": self.assessment_title,
            "assessment_description": self.assessment_description,
            "access_token": self.access_token
        })
        return result


def check_coordinates(latitude: Optional[float], longitude: Optional[float]) -> None:
    """Raise InvalidInputError unless both coordinates are present."""
    errors = {}
    if latitude is None:
        errors["latitude"] = "required"
    if longitude is None:
        errors["longitude"] = "required"
    if errors:
        raise InvalidInputError("Latitude and longitude are required", errors)


def describe_answer(question: Question, answer: Optional[RecordedAnswer]) -> str:
    """Render a recorded answer the way the results page shows it."""
    if answer is None:
        return ""
    if question.modality == QuestionModality.FREE_TEXT:
        return answer.text_answer or ""
    return ", ".join(question.option_texts(answer.selected_option_ids))


class SessionOrchestrator:
    """
    Participant and examiner facing operations on attempts.

    Every attempt operation checks that the caller is the attempt's
    participant; examiner listings check assessment ownership.
    """

    def __init__(
        self,
        catalog: AssessmentCatalog,
        store: AttemptStore,
        state_machine: Optional[AttemptStateMachine] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            catalog: Assessment catalog
            store: Attempt store
            state_machine: State machine to delegate to, built from the
                catalog and store when omitted
        """
        self.catalog = catalog
        self.store = store
        self.state_machine = state_machine or AttemptStateMachine(store, catalog)

    async def create_or_resume_attempt(
        self,
        access_token: str,
        participant_id: str,
        location: Optional[Location] = None
    ) -> AttemptSession:
        """
        Open the participant's attempt for the assessment behind a token.

        Args:
            access_token: Token from the shareable link
            participant_id: The participant opening the link
            location: Optional (latitude, longitude) sample to record

        Returns:
            The attempt session, with the pointer where the participant left off

        Raises:
            AssessmentNotFoundError: If no assessment has this token
        """
        assessment = await self.catalog.get_assessment_by_token(access_token)
        if assessment is None:
            raise AssessmentNotFoundError(access_token)

        if location is not None:
            check_coordinates(*location)

        attempt = await self.state_machine.get_or_create(assessment.id, participant_id)
        questions = await self.catalog.list_questions(assessment.id)

        if location is not None:
            latitude, longitude = location
            await self._record_location(attempt, latitude, longitude)

        with_context(logger, attempt_id=attempt.id, participant_id=participant_id).info(
            f"Opened attempt on assessment {assessment.id} at question "
            f"{attempt.current_question_index} of {len(questions)}"
        )
        return AttemptSession(
            assessment=assessment,
            questions=questions,
            attempt_id=attempt.id,
            current_question_index=attempt.current_question_index,
            completed=attempt.completed
        )

    async def submit_answer(
        self,
        attempt_id: str,
        question_id: str,
        submission: Optional[Submission],
        participant_id: str
    ) -> EvaluationOutcome:
        """
        Record the participant's answer to the current question.

        Raises:
            AttemptNotFoundError: If the attempt does not exist
            ForbiddenError: If the attempt belongs to someone else
            AttemptAlreadyCompletedError, QuestionNotFoundError,
            AttemptAlreadyAnsweredError, QuestionOutOfOrderError,
            InvalidInputError: As raised by the state machine
        """
        await self._authorize(attempt_id, participant_id, "submit_answer")
        return await self.state_machine.record_answer(attempt_id, question_id, submission)

    async def finalize_attempt(self, attempt_id: str, participant_id: str) -> int:
        """
        Finalize the attempt and return its score.

        Raises:
            AttemptNotFoundError: If the attempt does not exist
            ForbiddenError: If the attempt belongs to someone else
        """
        await self._authorize(attempt_id, participant_id, "finalize_attempt")
        return await self.state_machine.finalize(attempt_id)

    async def get_results(self, attempt_id: str, participant_id: str) -> AttemptResults:
        """
        Build the per-question results of an attempt.

        Every question of the assessment appears in the breakdown, answered
        or not.

        Args:
            attempt_id: The attempt to report on
            participant_id: The caller

        Returns:
            AttemptResults, with score None if the attempt is unfinished

        Raises:
            AttemptNotFoundError: If the attempt does not exist
            ForbiddenError: If the attempt belongs to someone else
        """
        attempt = await self._authorize(attempt_id, participant_id, "get_results")
        questions = await self.catalog.list_questions(attempt.assessment_id)
        answers = {a.question_id: a for a in await self.store.list_answers(attempt_id)}

        breakdown = []
        for question in questions:
            answer = answers.get(question.id)
            breakdown.append(QuestionResult(
                question_id=question.id,
                prompt=question.prompt,
                user_answer=describe_answer(question, answer),
                correct_answer=question.correct_answer_text(),
                is_correct=bool(answer and answer.is_correct),
                points=question.points,
                earned_points=answer.earned_points if answer else 0,
                answered=answer is not None
            ))

        return AttemptResults(
            attempt_id=attempt.id,
            assessment_id=attempt.assessment_id,
            score=attempt.score if attempt.completed else None,
            completed=attempt.completed,
            total_questions=len(questions),
            correct_answers=sum(1 for a in answers.values() if a.is_correct),
            breakdown=breakdown
        )

    async def record_location(
        self,
        attempt_id: str,
        participant_id: str,
        latitude: Optional[float],
        longitude: Optional[float]
    ) -> LocationSample:
        """
        Record a location sample against an attempt for audit.

        Raises:
            AttemptNotFoundError: If the attempt does not exist
            ForbiddenError: If the attempt belongs to someone else
            InvalidInputError: If either coordinate is missing
        """
        attempt = await self._authorize(attempt_id, participant_id, "record_location")
        return await self._record_location(attempt, latitude, longitude)

    async def list_participant_attempts(self, participant_id: str) -> List[AttemptSummary]:
        """List a participant's attempts, oldest first, with their assessments' details."""
        attempts = await self.store.list_attempts_for_participant(participant_id)
        summaries = []
        for attempt in attempts:
            assessment = await self.catalog.get_assessment(attempt.assessment_id)
            if assessment is None:
                logger.warning(f"Attempt {attempt.id} references missing assessment {attempt.assessment_id}")
                continue
            summaries.append(AttemptSummary(
                attempt=attempt,
                assessment_title=assessment.title,
                assessment_description=assessment.description,
                access_token=assessment.access_token
            ))
        return summaries

    async def list_assessment_attempts(self, assessment_id: str, owner_id: str) -> List[Attempt]:
        """
        List every attempt made on an assessment.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist
            ForbiddenError: If the caller does not own the assessment
        """
        assessment = await self.catalog.get_assessment(assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError(assessment_id)
        if not assessment.is_owned_by(owner_id):
            raise ForbiddenError(
                "Only the assessment owner can list its attempts",
                resource=f"assessment:{assessment_id}",
                action="list_attempts"
            )
        return await self.store.list_attempts_for_assessment(assessment_id)

    async def _authorize(self, attempt_id: str, participant_id: str, action: str) -> Attempt:
        attempt = await self.store.get_attempt(attempt_id)
        if attempt is None:
            raise AttemptNotFoundError(attempt_id)
        if not attempt.belongs_to(participant_id):
            logger.warning(f"Participant {participant_id} denied {action} on attempt {attempt_id}")
            raise ForbiddenError(
                "Attempt belongs to another participant",
                resource=f"attempt:{attempt_id}",
                action=action
            )
        return attempt

    async def _record_location(
        self,
        attempt: Attempt,
        latitude: Optional[float],
        longitude: Optional[float]
    ) -> LocationSample:
        check_coordinates(latitude, longitude)
        sample = await self.store.add_location_sample(
            LocationSample.create(attempt.id, float(latitude), float(longitude))
        )
        logger.debug(f"Recorded location sample {sample.id} for attempt {attempt.id}")
        return sample
