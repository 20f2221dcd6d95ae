"""
Authoring Service

Examiner-side writes to the assessment catalog: creating assessments with
a shareable access token, editing their metadata and building up the
ordered question list.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from examlink.common.exceptions import (
    AssessmentLockedError,
    AssessmentNotFoundError,
    DuplicateError,
    ForbiddenError,
    InvalidInputError,
    QuestionNotFoundError
)
from examlink.common.locks import KeyedLock
from examlink.common.logger import app_logger
from examlink.config import settings
from examlink.domain.attempts.repository import AttemptStore
from examlink.domain.catalog.model import (
    AnswerOption,
    Assessment,
    Question,
    QuestionModality,
    new_id
)
from examlink.domain.catalog.repository import AssessmentCatalog

logger = app_logger.getChild("engine.authoring")


@dataclass
class QuestionDraft:
    """
    A question as submitted by an examiner, before validation.

    ``options`` accepts ``{"text": ..., "is_correct": ...}`` dictionaries.
    """
    prompt: str
    modality: str
    time_budget_seconds: int
    points: int = 1
    canonical_answer: Optional[str] = None
    tolerance: int = 0
    options: List[Dict[str, Any]] = field(default_factory=list)
    attachment_type: Optional[str] = None
    attachment_url: Optional[str] = None

    def validate(self) -> None:
        """
        Check the draft for authoring mistakes.

        Raises:
            InvalidInputError: With one entry per offending field
        """
        errors: Dict[str, str] = {}

        if not self.prompt or not self.prompt.strip():
            errors["prompt"] = "required"

        modality = None
        try:
            modality = QuestionModality(self.modality)
        except ValueError:
            errors["modality"] = f"must be one of {[m.value for m in QuestionModality]}"

        if self.time_budget_seconds is None or self.time_budget_seconds <= 0:
            errors["time_budget_seconds"] = "must be greater than zero"

        if self.points is None or self.points < 1:
            errors["points"] = "must be at least 1"

        if self.tolerance is None or not 0 <= self.tolerance <= 100:
            errors["tolerance"] = "must be between 0 and 100"

        if modality == QuestionModality.FREE_TEXT and not self.canonical_answer:
            errors["canonical_answer"] = "required for free_text questions"

        if modality == QuestionModality.SELECT:
            texts = [(option.get("text") or "").strip() for option in self.options or []]
            if len(texts) < 2:
                errors["options"] = "at least two options are required"
            elif not all(texts):
                errors["options"] = "every option needs text"
            elif not any(option.get("is_correct") for option in self.options):
                errors["options"] = "at least one option must be correct"

        if errors:
            raise InvalidInputError("Invalid question", errors)

    def build(self, assessment_id: str) -> Question:
        """Validate the draft and turn it into a Question of the given assessment."""
        self.validate()
        modality = QuestionModality(self.modality)
        try:
            return Question(
                id=new_id(),
                assessment_id=assessment_id,
                prompt=self.prompt,
                modality=modality,
                time_budget_seconds=self.time_budget_seconds,
                points=self.points,
                canonical_answer=self.canonical_answer if modality == QuestionModality.FREE_TEXT else None,
                tolerance=self.tolerance if modality == QuestionModality.FREE_TEXT else 0,
                options=[
                    AnswerOption.create(option["text"], bool(option.get("is_correct")))
                    for option in self.options
                ] if modality == QuestionModality.SELECT else [],
                attachment_type=self.attachment_type,
                attachment_url=self.attachment_url
            )
        except ValueError as e:
            raise InvalidInputError(str(e))


class AuthoringService:
    """Examiner operations on assessments and their questions."""

    def __init__(
        self,
        catalog: AssessmentCatalog,
        store: AttemptStore,
        token_length: Optional[int] = None,
        token_attempts: Optional[int] = None
    ):
        """
        Initialize the authoring service.

        Args:
            catalog: Assessment catalog to write to
            store: Attempt store, consulted for the question lock and
                cleaned up when an assessment is deleted
            token_length: Length of generated access tokens
            token_attempts: How many tokens to try before giving up on collisions
        """
        self.catalog = catalog
        self.store = store
        self.token_length = token_length or settings.ACCESS_TOKEN_LENGTH
        self.token_attempts = token_attempts or settings.ACCESS_TOKEN_ATTEMPTS
        self.question_locks = KeyedLock("assessment questions")

    def generate_token(self) -> str:
        return uuid.uuid4().hex[:self.token_length]

    async def create_assessment(
        self,
        owner_id: str,
        title: str,
        description: str = "",
        audience: str = ""
    ) -> Assessment:
        """
        Create an empty assessment with a fresh access token.

        Args:
            owner_id: The authoring examiner
            title: Display title
            description: Free-form description
            audience: Audience tag

        Returns:
            The stored Assessment

        Raises:
            InvalidInputError: If the title is missing
            DuplicateError: If no unique token was found in the allotted tries
        """
        if not title or not title.strip():
            raise InvalidInputError("Invalid assessment", {"title": "required"})

        last_error: Optional[DuplicateError] = None
        for _ in range(self.token_attempts):
            assessment = Assessment(
                id=new_id(),
                title=title.strip(),
                description=description or "",
                audience=audience or "",
                owner_id=owner_id,
                access_token=self.generate_token()
            )
            try:
                stored = await self.catalog.save_assessment(assessment)
            except DuplicateError as e:
                logger.debug(f"Access token {assessment.access_token} already taken, retrying")
                last_error = e
                continue
            logger.info(f"Assessment {stored.id} created by {owner_id} with token {stored.access_token}")
            return stored

        logger.error(f"Could not allocate a unique access token after {self.token_attempts} tries")
        raise last_error

    async def update_assessment(
        self,
        assessment_id: str,
        owner_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        audience: Optional[str] = None
    ) -> Assessment:
        """Edit an assessment's metadata; omitted fields are left unchanged."""
        assessment = await self._owned(assessment_id, owner_id, "update_assessment")

        if title is not None:
            if not title.strip():
                raise InvalidInputError("Invalid assessment", {"title": "must not be empty"})
            assessment.title = title.strip()
        if description is not None:
            assessment.description = description
        if audience is not None:
            assessment.audience = audience

        return await self.catalog.save_assessment(assessment)

    async def add_question(self, assessment_id: str, owner_id: str, draft: QuestionDraft) -> Question:
        """
        Append a question to an assessment.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist
            ForbiddenError: If the caller does not own it
            AssessmentLockedError: If attempts already exist
            InvalidInputError: If the draft is invalid
        """
        await self._owned(assessment_id, owner_id, "add_question")
        question = draft.build(assessment_id)

        async with self.question_locks.acquire(assessment_id):
            await self._ensure_unlocked(assessment_id)
            question = await self.catalog.add_question(question)
        logger.info(f"Question {question.id} ({question.modality.value}) added to assessment {assessment_id}")
        return question

    async def delete_question(self, assessment_id: str, question_id: str, owner_id: str) -> None:
        await self._owned(assessment_id, owner_id, "delete_question")

        question = await self.catalog.get_question(question_id)
        if question is None or question.assessment_id != assessment_id:
            raise QuestionNotFoundError(question_id)

        async with self.question_locks.acquire(assessment_id):
            await self._ensure_unlocked(assessment_id)
            # The catalog re-checks for attempts in the same write as the delete.
            if not await self.catalog.delete_question(question_id, unless_attempted=True):
                raise QuestionNotFoundError(question_id)
        logger.info(f"Question {question_id} removed from assessment {assessment_id}")

    async def delete_assessment(self, assessment_id: str, owner_id: str) -> None:
        """Delete an assessment, its questions and every attempt made on it."""
        await self._owned(assessment_id, owner_id, "delete_assessment")

        removed = await self.store.delete_attempts_for_assessment(assessment_id)
        await self.catalog.delete_assessment(assessment_id)
        logger.info(f"Assessment {assessment_id} deleted along with {removed} attempts")

    async def list_owner_assessments(self, owner_id: str) -> List[Assessment]:
        return await self.catalog.list_assessments_by_owner(owner_id)

    async def get_assessment(self, assessment_id: str, owner_id: str) -> Dict[str, Any]:
        """
        Owner preview of an assessment, correct answers included.

        Returns:
            The assessment dictionary with a ``questions`` list
        """
        assessment = await self._owned(assessment_id, owner_id, "get_assessment")
        questions = await self.catalog.list_questions(assessment_id)
        result = assessment.to_dict()
        result["questions"] = [q.to_dict(include_answers=True) for q in questions]
        return result

    async def _owned(self, assessment_id: str, owner_id: str, action: str) -> Assessment:
        assessment = await self.catalog.get_assessment(assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError(assessment_id)
        if not assessment.is_owned_by(owner_id):
            raise ForbiddenError(
                "Only the assessment owner can do this",
                resource=f"assessment:{assessment_id}",
                action=action
            )
        return assessment

    async def _ensure_unlocked(self, assessment_id: str) -> None:
        if await self.store.list_attempts_for_assessment(assessment_id):
            raise AssessmentLockedError(assessment_id)
