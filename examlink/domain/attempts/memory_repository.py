"""
Memory Attempt Store Module

This module provides an in-memory implementation of the AttemptStore
interface for development and testing purposes.
"""

import copy
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from examlink.common.exceptions import (
    AttemptNotFoundError,
    ConcurrentModificationError,
    DuplicateError
)
from examlink.common.logger import app_logger
from .model import Attempt, LocationSample, RecordedAnswer
from .repository import AttemptStore

logger = app_logger.getChild("attempts.memory")


class MemoryAttemptStore(AttemptStore):
    """
    In-memory implementation of the AttemptStore.

    A single re-entrant lock guards all maps, which makes every method an
    atomic check-and-write.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._attempts: Dict[str, Attempt] = {}
        self._by_pair: Dict[Tuple[str, str], str] = {}
        self._answers: Dict[str, List[RecordedAnswer]] = {}
        self._samples: Dict[str, List[LocationSample]] = {}

    async def create_attempt(self, attempt: Attempt) -> Attempt:
        pair = (attempt.assessment_id, attempt.participant_id)
        with self._lock:
            if pair in self._by_pair:
                raise DuplicateError("attempt", f"{pair[0]}/{pair[1]}")
            if attempt.id in self._attempts:
                raise DuplicateError("attempt", attempt.id)
            self._attempts[attempt.id] = copy.deepcopy(attempt)
            self._by_pair[pair] = attempt.id
            return copy.deepcopy(attempt)

    async def get_attempt(self, attempt_id: str) -> Optional[Attempt]:
        with self._lock:
            attempt = self._attempts.get(attempt_id)
            return copy.deepcopy(attempt) if attempt else None

    async def find_attempt(self, assessment_id: str, participant_id: str) -> Optional[Attempt]:
        with self._lock:
            attempt_id = self._by_pair.get((assessment_id, participant_id))
            if attempt_id is None:
                return None
            return copy.deepcopy(self._attempts[attempt_id])

    async def list_attempts_for_participant(self, participant_id: str) -> List[Attempt]:
        with self._lock:
            attempts = [a for a in self._attempts.values() if a.participant_id == participant_id]
            attempts.sort(key=lambda a: a.created_at)
            return [copy.deepcopy(a) for a in attempts]

    async def list_attempts_for_assessment(self, assessment_id: str) -> List[Attempt]:
        with self._lock:
            attempts = [a for a in self._attempts.values() if a.assessment_id == assessment_id]
            attempts.sort(key=lambda a: a.created_at)
            return [copy.deepcopy(a) for a in attempts]

    def has_attempts(self, assessment_id: str) -> bool:
        """
        Whether any attempt exists for an assessment.

        Synchronous so the in-memory catalog can call it while holding its
        own lock.
        """
        with self._lock:
            return any(a.assessment_id == assessment_id for a in self._attempts.values())

    async def save_answer(self, answer: RecordedAnswer, expected_index: int) -> Attempt:
        with self._lock:
            attempt = self._attempts.get(answer.attempt_id)
            if attempt is None:
                raise AttemptNotFoundError(answer.attempt_id)

            answers = self._answers.setdefault(answer.attempt_id, [])
            if any(existing.question_id == answer.question_id for existing in answers):
                raise DuplicateError("answer", f"{answer.attempt_id}/{answer.question_id}")

            if attempt.completed or attempt.current_question_index != expected_index:
                raise ConcurrentModificationError("attempt", answer.attempt_id)

            answers.append(copy.deepcopy(answer))
            attempt.current_question_index = expected_index + 1
            return copy.deepcopy(attempt)

    async def get_answer(self, attempt_id: str, question_id: str) -> Optional[RecordedAnswer]:
        with self._lock:
            for answer in self._answers.get(attempt_id, []):
                if answer.question_id == question_id:
                    return copy.deepcopy(answer)
            return None

    async def list_answers(self, attempt_id: str) -> List[RecordedAnswer]:
        with self._lock:
            return [copy.deepcopy(a) for a in self._answers.get(attempt_id, [])]

    async def complete_attempt(self, attempt_id: str, score: int, completed_at: datetime) -> bool:
        with self._lock:
            attempt = self._attempts.get(attempt_id)
            if attempt is None or attempt.completed:
                return False
            attempt.completed = True
            attempt.completed_at = completed_at
            attempt.score = score
            return True

    async def add_location_sample(self, sample: LocationSample) -> LocationSample:
        with self._lock:
            if sample.attempt_id not in self._attempts:
                raise AttemptNotFoundError(sample.attempt_id)
            self._samples.setdefault(sample.attempt_id, []).append(copy.deepcopy(sample))
            return copy.deepcopy(sample)

    async def list_location_samples(self, attempt_id: str) -> List[LocationSample]:
        with self._lock:
            return [copy.deepcopy(s) for s in self._samples.get(attempt_id, [])]

    async def delete_attempts_for_assessment(self, assessment_id: str) -> int:
        with self._lock:
            doomed = [a for a in self._attempts.values() if a.assessment_id == assessment_id]
            for attempt in doomed:
                del self._attempts[attempt.id]
                self._by_pair.pop((attempt.assessment_id, attempt.participant_id), None)
                self._answers.pop(attempt.id, None)
                self._samples.pop(attempt.id, None)
            if doomed:
                logger.debug(f"Deleted {len(doomed)} attempts of assessment {assessment_id}")
            return len(doomed)
