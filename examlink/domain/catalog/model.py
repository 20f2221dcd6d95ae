"""
Assessment Catalog Domain Model

This module defines the authored entities the engine reads: assessments,
their ordered questions, and the options of selectable questions.
"""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class QuestionModality(enum.Enum):
    """
    The answer type a question expects.

    Free-text answers are compared to a canonical string; selectable
    questions are single-select or multi-select depending on how many of
    their options are flagged correct.
    """
    FREE_TEXT = "free_text"
    SELECT = "single_or_multi_select"


@dataclass
class AnswerOption:
    """A selectable option of a ``single_or_multi_select`` question."""

    id: str
    text: str
    is_correct: bool = False

    @classmethod
    def create(cls, text: str, is_correct: bool = False) -> 'AnswerOption':
        return cls(id=new_id(), text=text, is_correct=is_correct)

    def to_dict(self, include_answers: bool = True) -> Dict[str, Any]:
        result = {"id": self.id, "text": self.text}
        if include_answers:
            result["is_correct"] = self.is_correct
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnswerOption':
        return cls(
            id=data.get("id") or new_id(),
            text=data.get("text", ""),
            is_correct=bool(data.get("is_correct", False))
        )


@dataclass
class Question:
    """
    Represents a question of an assessment.

    Attributes:
        id: Unique identifier for the question
        assessment_id: The assessment this question belongs to
        prompt: The question text shown to the participant
        modality: Free text or single/multi select
        time_budget_seconds: Per-question countdown enforced by the client
        points: Points awarded for a correct answer
        canonical_answer: Expected answer for free-text questions
        tolerance: Leniency percentage (0-100) for free-text matching
        options: Ordered options for selectable questions
        attachment_type: Optional kind of attached media (e.g. "image")
        attachment_url: Optional location of the attached media
        created_at: When the question was authored
    """
    id: str
    assessment_id: str
    prompt: str
    modality: QuestionModality
    time_budget_seconds: int
    points: int = 1
    canonical_answer: Optional[str] = None
    tolerance: int = 0
    options: List[AnswerOption] = field(default_factory=list)
    attachment_type: Optional[str] = None
    attachment_url: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        """Validate and normalize after creation."""
        if isinstance(self.modality, str):
            try:
                self.modality = QuestionModality(self.modality)
            except ValueError:
                raise ValueError(f"Invalid question modality: {self.modality}")

        if not self.prompt:
            raise ValueError("Question prompt is required")

        if self.time_budget_seconds is None or self.time_budget_seconds <= 0:
            raise ValueError("Question time budget must be greater than zero")

        if self.points is None or self.points < 1:
            raise ValueError("Question points must be at least 1")

        if not 0 <= (self.tolerance or 0) <= 100:
            raise ValueError(f"Tolerance must be between 0 and 100, got {self.tolerance}")
        self.tolerance = self.tolerance or 0

        self.options = [
            option if isinstance(option, AnswerOption) else AnswerOption.from_dict(option)
            for option in self.options or []
        ]

    @property
    def correct_option_ids(self) -> Set[str]:
        """Ids of the options flagged correct."""
        return {option.id for option in self.options if option.is_correct}

    @property
    def is_multi_select(self) -> bool:
        """A selectable question is multi-select iff more than one option is correct."""
        return self.modality == QuestionModality.SELECT and len(self.correct_option_ids) > 1

    def option_texts(self, option_ids) -> List[str]:
        """Texts of the given options, in the question's option order."""
        wanted = set(option_ids or [])
        return [option.text for option in self.options if option.id in wanted]

    def correct_answer_text(self) -> str:
        """Human readable correct answer, as shown on the results page."""
        if self.modality == QuestionModality.FREE_TEXT:
            return self.canonical_answer or ""
        return ", ".join(option.text for option in self.options if option.is_correct)

    def to_dict(self, include_answers: bool = True) -> Dict[str, Any]:
        """
        Convert the question to a dictionary.

        Args:
            include_answers: Whether to include the canonical answer, the
                tolerance and option correctness flags. Participant-facing
                views pass False.

        Returns:
            Dictionary representation of the question
        """
        result = {
            "id": self.id,
            "assessment_id": self.assessment_id,
            "prompt": self.prompt,
            "modality": self.modality.value,
            "time_budget_seconds": self.time_budget_seconds,
            "points": self.points,
            "attachment_type": self.attachment_type,
            "attachment_url": self.attachment_url,
            "created_at": self.created_at.isoformat()
        }

        if self.modality == QuestionModality.SELECT:
            result["options"] = [option.to_dict(include_answers) for option in self.options]
            result["multiple_answers"] = self.is_multi_select

        if include_answers and self.modality == QuestionModality.FREE_TEXT:
            result["canonical_answer"] = self.canonical_answer
            result["tolerance"] = self.tolerance

        return result


@dataclass
class Assessment:
    """
    An authored, timed set of questions reachable via an access token.

    Attributes:
        id: Unique identifier for the assessment
        title: Display title
        description: Free-form description
        audience: Audience tag (e.g. a class or cohort name)
        owner_id: Identifier of the authoring examiner
        access_token: Short opaque string used in the shareable link
        question_ids: Ordered ids of the assessment's questions
        created_at: When the assessment was created
    """
    id: str
    title: str
    description: str
    audience: str
    owner_id: str
    access_token: str
    question_ids: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if not self.title:
            raise ValueError("Assessment title is required")
        if not self.owner_id:
            raise ValueError("Assessment owner is required")
        if not self.access_token:
            raise ValueError("Assessment access token is required")

    @property
    def question_count(self) -> int:
        return len(self.question_ids)

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "audience": self.audience,
            "owner_id": self.owner_id,
            "access_token": self.access_token,
            "question_count": self.question_count,
            "created_at": self.created_at.isoformat()
        }
