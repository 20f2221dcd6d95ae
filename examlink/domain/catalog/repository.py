"""
Assessment Catalog Repository Module

This module defines the repository interface for reading and authoring
assessments and their questions.
"""

import abc
from typing import List, Optional

from .model import Assessment, Question


class AssessmentCatalog(abc.ABC):
    """
    Abstract base class for assessment catalogs.

    The attempt engine only uses the read methods; the write methods are
    used by the authoring service.
    """

    @abc.abstractmethod
    async def get_assessment(self, assessment_id: str) -> Optional[Assessment]:
        """
        Get an assessment by its ID.

        Args:
            assessment_id: The ID of the assessment to retrieve

        Returns:
            The Assessment if found, None otherwise
        """
        pass

    @abc.abstractmethod
    async def get_assessment_by_token(self, access_token: str) -> Optional[Assessment]:
        """
        Get an assessment by its shareable access token.

        Args:
            access_token: The token embedded in the shareable link

        Returns:
            The Assessment if found, None otherwise
        """
        pass

    @abc.abstractmethod
    async def list_assessments_by_owner(self, owner_id: str) -> List[Assessment]:
        """
        List the assessments authored by an examiner, oldest first.

        Args:
            owner_id: The examiner's identifier

        Returns:
            List of Assessment entities
        """
        pass

    @abc.abstractmethod
    async def save_assessment(self, assessment: Assessment) -> Assessment:
        """
        Create or update an assessment's metadata.

        The question order is owned by ``add_question``/``delete_question``
        and is not changed by this call.

        Args:
            assessment: The Assessment to save

        Returns:
            The saved Assessment

        Raises:
            DuplicateError: If another assessment already uses the access token
        """
        pass

    @abc.abstractmethod
    async def delete_assessment(self, assessment_id: str) -> bool:
        """
        Delete an assessment together with its questions.

        Args:
            assessment_id: The ID of the assessment to delete

        Returns:
            True if the assessment was deleted, False otherwise
        """
        pass

    @abc.abstractmethod
    async def get_question(self, question_id: str) -> Optional[Question]:
        """
        Get a question by its ID.

        Args:
            question_id: The ID of the question to retrieve

        Returns:
            The Question if found, None otherwise
        """
        pass

    @abc.abstractmethod
    async def list_questions(self, assessment_id: str) -> List[Question]:
        """
        List an assessment's questions in their authored order.

        Args:
            assessment_id: The owning assessment's ID

        Returns:
            Ordered list of Question entities (empty for unknown assessments)
        """
        pass

    @abc.abstractmethod
    async def add_question(self, question: Question) -> Question:
        """
        Append a question to the end of its assessment's question list.

        Concurrent appends to one assessment all succeed, each at its own
        position.

        Args:
            question: The Question to add

        Returns:
            The stored Question

        Raises:
            AssessmentNotFoundError: If the owning assessment does not exist
            DuplicateError: If a question with the same ID already exists
        """
        pass

    @abc.abstractmethod
    async def delete_question(self, question_id: str, unless_attempted: bool = False) -> bool:
        """
        Delete a question and remove it from its assessment's order.

        Args:
            question_id: The ID of the question to delete
            unless_attempted: Refuse the delete if the assessment has any
                attempt, checked in the same write as the delete

        Returns:
            True if the question was deleted, False otherwise

        Raises:
            AssessmentLockedError: If ``unless_attempted`` is set and an
                attempt exists
        """
        pass
