"""
Attempt Domain Model Module

This module defines the entities owned by the attempt engine: attempts,
the answers recorded against them, and audit location samples.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from examlink.domain.catalog.model import new_id, utcnow


class AttemptStatus(enum.Enum):
    """Lifecycle status of an attempt, derived from its fields."""
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class Submission:
    """
    A participant's answer payload for one question.

    Exactly one of the two fields is expected to be present. An empty
    string or empty list is a valid (and incorrect) answer, as sent by a
    client whose countdown expired; ``None`` means the field was omitted.
    """
    text_answer: Optional[str] = None
    selected_option_ids: Optional[List[str]] = None


@dataclass
class Attempt:
    """
    One participant's pass through one assessment.

    Attributes:
        id: Unique identifier for the attempt
        assessment_id: The assessment being taken
        participant_id: The participant taking it
        created_at: When the attempt was first opened
        completed_at: When the attempt was finalized
        completed: Whether the attempt has been finalized
        current_question_index: Zero-based pointer to the next question
        score: Final 0-100 score, set on finalize
    """
    id: str
    assessment_id: str
    participant_id: str
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    completed: bool = False
    current_question_index: int = 0
    score: Optional[int] = None

    @classmethod
    def create(cls, assessment_id: str, participant_id: str) -> 'Attempt':
        """
        Create a fresh attempt with a generated ID and the pointer at 0.

        Args:
            assessment_id: The assessment being taken
            participant_id: The participant taking it

        Returns:
            A new Attempt instance
        """
        if not assessment_id or not participant_id:
            raise ValueError("Assessment and participant are required")
        return cls(id=new_id(), assessment_id=assessment_id, participant_id=participant_id)

    @property
    def status(self) -> AttemptStatus:
        if self.completed:
            return AttemptStatus.COMPLETED
        if self.current_question_index > 0:
            return AttemptStatus.IN_PROGRESS
        return AttemptStatus.CREATED

    def belongs_to(self, participant_id: str) -> bool:
        return self.participant_id == participant_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "assessment_id": self.assessment_id,
            "participant_id": self.participant_id,
            "status": self.status.value,
            "current_question_index": self.current_question_index,
            "completed": self.completed,
            "score": self.score,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None
        }


@dataclass
class RecordedAnswer:
    """
    The graded answer of one question within one attempt.

    Attributes:
        id: Unique identifier for the answer
        attempt_id: The owning attempt
        question_id: The answered question
        text_answer: Submitted text, for free-text questions
        selected_option_ids: Selected options, for selectable questions
        is_correct: Outcome of the evaluation
        earned_points: 0 or the question's full point value
        submitted_at: When the answer was recorded
    """
    id: str
    attempt_id: str
    question_id: str
    text_answer: Optional[str] = None
    selected_option_ids: Optional[List[str]] = None
    is_correct: bool = False
    earned_points: int = 0
    submitted_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        attempt_id: str,
        question_id: str,
        submission: Submission,
        is_correct: bool,
        earned_points: int
    ) -> 'RecordedAnswer':
        return cls(
            id=new_id(),
            attempt_id=attempt_id,
            question_id=question_id,
            text_answer=submission.text_answer,
            selected_option_ids=(
                list(submission.selected_option_ids)
                if submission.selected_option_ids is not None else None
            ),
            is_correct=is_correct,
            earned_points=earned_points
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "attempt_id": self.attempt_id,
            "question_id": self.question_id,
            "text_answer": self.text_answer,
            "selected_option_ids": self.selected_option_ids,
            "is_correct": self.is_correct,
            "earned_points": self.earned_points,
            "submitted_at": self.submitted_at.isoformat()
        }


@dataclass
class LocationSample:
    """A latitude/longitude pair recorded against an attempt for audit."""

    id: str
    attempt_id: str
    latitude: float
    longitude: float
    recorded_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(cls, attempt_id: str, latitude: float, longitude: float) -> 'LocationSample':
        return cls(id=new_id(), attempt_id=attempt_id, latitude=latitude, longitude=longitude)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "attempt_id": self.attempt_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "recorded_at": self.recorded_at.isoformat()
        }
