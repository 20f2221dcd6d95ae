"""
Attempt Store Module

This module defines the persistence boundary of the attempt engine. Any
backing representation satisfies the same contract; the atomicity
requirements below are what make the engine safe across processes.
"""

import abc
from datetime import datetime
from typing import List, Optional

from .model import Attempt, LocationSample, RecordedAnswer


class AttemptStore(abc.ABC):
    """
    Abstract base class for attempt stores.

    Implementations must raise ``StorageUnavailableError`` for failures of
    the backing store and must never swallow them.
    """

    @abc.abstractmethod
    async def create_attempt(self, attempt: Attempt) -> Attempt:
        """
        Insert a new attempt.

        The check for an existing (assessment, participant) pair and the
        insert happen atomically.

        Args:
            attempt: The Attempt to insert

        Returns:
            The stored Attempt

        Raises:
            DuplicateError: If the participant already has an attempt at
                this assessment
        """
        pass

    @abc.abstractmethod
    async def get_attempt(self, attempt_id: str) -> Optional[Attempt]:
        """
        Get an attempt by its ID.

        Args:
            attempt_id: The ID of the attempt

        Returns:
            The Attempt if found, None otherwise
        """
        pass

    @abc.abstractmethod
    async def find_attempt(self, assessment_id: str, participant_id: str) -> Optional[Attempt]:
        """
        Find the attempt of a participant at an assessment.

        Args:
            assessment_id: The assessment's ID
            participant_id: The participant's ID

        Returns:
            The Attempt if found, None otherwise
        """
        pass

    @abc.abstractmethod
    async def list_attempts_for_participant(self, participant_id: str) -> List[Attempt]:
        """List a participant's attempts, oldest first."""
        pass

    @abc.abstractmethod
    async def list_attempts_for_assessment(self, assessment_id: str) -> List[Attempt]:
        """List every attempt at an assessment, oldest first."""
        pass

    @abc.abstractmethod
    async def save_answer(self, answer: RecordedAnswer, expected_index: int) -> Attempt:
        """
        Persist an answer and advance the attempt's pointer by one.

        Both writes succeed or neither does. The pointer only moves if it
        still equals ``expected_index`` and the attempt is not completed.

        Args:
            answer: The graded answer to record
            expected_index: The pointer value the caller observed

        Returns:
            The Attempt with its advanced pointer

        Raises:
            DuplicateError: If an answer already exists for the
                (attempt, question) pair
            ConcurrentModificationError: If the pointer moved or the
                attempt was completed in the meantime
            AttemptNotFoundError: If the attempt does not exist
        """
        pass

    @abc.abstractmethod
    async def get_answer(self, attempt_id: str, question_id: str) -> Optional[RecordedAnswer]:
        """Get the answer recorded for an (attempt, question) pair."""
        pass

    @abc.abstractmethod
    async def list_answers(self, attempt_id: str) -> List[RecordedAnswer]:
        """List an attempt's answers in submission order."""
        pass

    @abc.abstractmethod
    async def complete_attempt(self, attempt_id: str, score: int, completed_at: datetime) -> bool:
        """
        Mark an attempt completed with its final score.

        This is a conditional update: it only applies to an attempt that is
        not completed yet.

        Args:
            attempt_id: The ID of the attempt
            score: The final 0-100 score
            completed_at: The completion timestamp

        Returns:
            True if this call completed the attempt, False if it was already
            completed (or does not exist)
        """
        pass

    @abc.abstractmethod
    async def add_location_sample(self, sample: LocationSample) -> LocationSample:
        """
        Record a location sample for an attempt.

        Raises:
            AttemptNotFoundError: If the attempt does not exist
        """
        pass

    @abc.abstractmethod
    async def list_location_samples(self, attempt_id: str) -> List[LocationSample]:
        """List the location samples of an attempt, oldest first."""
        pass

    @abc.abstractmethod
    async def delete_attempts_for_assessment(self, assessment_id: str) -> int:
        """
        Delete every attempt at an assessment with its answers and samples.

        Returns:
            Number of attempts deleted
        """
        pass
