"""
Memory Assessment Catalog Module

This module provides an in-memory implementation of the AssessmentCatalog
interface for development and testing purposes.
"""

import copy
import threading
from typing import Callable, Dict, List, Optional

from examlink.common.exceptions import AssessmentLockedError, AssessmentNotFoundError, DuplicateError
from examlink.common.logger import app_logger
from .model import Assessment, Question
from .repository import AssessmentCatalog

logger = app_logger.getChild("catalog.memory")


class MemoryAssessmentCatalog(AssessmentCatalog):
    """
    In-memory implementation of the AssessmentCatalog.

    Entities are copied on the way in and out so callers cannot mutate the
    stored state behind the catalog's back.
    """

    def __init__(
        self,
        assessments: Optional[List[Assessment]] = None,
        questions: Optional[List[Question]] = None,
        has_attempts: Optional[Callable[[str], bool]] = None
    ):
        """
        Initialize the catalog with optional initial data.

        Args:
            assessments: Optional assessments to start with
            questions: Optional questions to start with; each one is appended
                to its assessment's order unless already listed there
            has_attempts: Tells whether an assessment has attempts, used to
                refuse guarded question deletes. Without it every
                assessment counts as unattempted.
        """
        self._lock = threading.RLock()
        self._assessments: Dict[str, Assessment] = {}
        self._questions: Dict[str, Question] = {}
        self._has_attempts = has_attempts

        for assessment in assessments or []:
            self._assessments[assessment.id] = copy.deepcopy(assessment)

        for question in questions or []:
            self._questions[question.id] = copy.deepcopy(question)
            owner = self._assessments.get(question.assessment_id)
            if owner is not None and question.id not in owner.question_ids:
                owner.question_ids.append(question.id)

    async def get_assessment(self, assessment_id: str) -> Optional[Assessment]:
        with self._lock:
            assessment = self._assessments.get(assessment_id)
            return copy.deepcopy(assessment) if assessment else None

    async def get_assessment_by_token(self, access_token: str) -> Optional[Assessment]:
        with self._lock:
            for assessment in self._assessments.values():
                if assessment.access_token == access_token:
                    return copy.deepcopy(assessment)
            return None

    async def list_assessments_by_owner(self, owner_id: str) -> List[Assessment]:
        with self._lock:
            owned = [a for a in self._assessments.values() if a.owner_id == owner_id]
            owned.sort(key=lambda a: a.created_at)
            return [copy.deepcopy(a) for a in owned]

    async def save_assessment(self, assessment: Assessment) -> Assessment:
        with self._lock:
            for other in self._assessments.values():
                if other.id != assessment.id and other.access_token == assessment.access_token:
                    raise DuplicateError("assessment access token", assessment.access_token)

            stored = copy.deepcopy(assessment)
            existing = self._assessments.get(assessment.id)
            if existing is not None:
                stored.question_ids = list(existing.question_ids)
            else:
                stored.question_ids = [qid for qid in stored.question_ids if qid in self._questions]
            self._assessments[stored.id] = stored
            return copy.deepcopy(stored)

    async def delete_assessment(self, assessment_id: str) -> bool:
        with self._lock:
            assessment = self._assessments.pop(assessment_id, None)
            if assessment is None:
                return False
            for question_id in assessment.question_ids:
                self._questions.pop(question_id, None)
            logger.debug(f"Deleted assessment {assessment_id} and {len(assessment.question_ids)} questions")
            return True

    async def get_question(self, question_id: str) -> Optional[Question]:
        with self._lock:
            question = self._questions.get(question_id)
            return copy.deepcopy(question) if question else None

    async def list_questions(self, assessment_id: str) -> List[Question]:
        with self._lock:
            assessment = self._assessments.get(assessment_id)
            if assessment is None:
                return []
            return [
                copy.deepcopy(self._questions[qid])
                for qid in assessment.question_ids
                if qid in self._questions
            ]

    async def add_question(self, question: Question) -> Question:
        with self._lock:
            assessment = self._assessments.get(question.assessment_id)
            if assessment is None:
                raise AssessmentNotFoundError(question.assessment_id)
            if question.id in self._questions:
                raise DuplicateError("question", question.id)
            self._questions[question.id] = copy.deepcopy(question)
            assessment.question_ids.append(question.id)
            return copy.deepcopy(question)

    async def delete_question(self, question_id: str, unless_attempted: bool = False) -> bool:
        with self._lock:
            question = self._questions.get(question_id)
            if question is None:
                return False
            if unless_attempted and self._has_attempts and self._has_attempts(question.assessment_id):
                raise AssessmentLockedError(question.assessment_id)
            del self._questions[question_id]
            assessment = self._assessments.get(question.assessment_id)
            if assessment is not None and question_id in assessment.question_ids:
                assessment.question_ids.remove(question_id)
            return True

    def clear(self) -> None:
        """
        Clear all assessments and questions.

        This method is specific to the memory implementation and not part of
        the AssessmentCatalog interface.
        """
        with self._lock:
            self._assessments.clear()
            self._questions.clear()
