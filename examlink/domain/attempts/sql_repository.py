"""
SQL Attempt Store Module

This module provides the SQLAlchemy implementation of the AttemptStore.
Unique constraints back the one-attempt-per-participant and
one-answer-per-question rules; pointer moves and completion are
conditional UPDATEs, so concurrent writers in other processes cannot
skip or repeat a transition.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from examlink.common.exceptions import (
    AttemptNotFoundError,
    ConcurrentModificationError,
    DuplicateError
)
from examlink.common.logger import app_logger
from examlink.database.models import AttemptRecord, LocationSampleRecord, RecordedAnswerRecord
from examlink.database.session import SqlRepository, as_utc
from .model import Attempt, LocationSample, RecordedAnswer
from .repository import AttemptStore

logger = app_logger.getChild("attempts.sql")


def _to_attempt(record: AttemptRecord) -> Attempt:
    data = record.to_dict()
    data["created_at"] = as_utc(data["created_at"])
    data["completed_at"] = as_utc(data["completed_at"])
    return Attempt(**data)


def _to_answer(record: RecordedAnswerRecord) -> RecordedAnswer:
    data = record.to_dict()
    data["submitted_at"] = as_utc(data["submitted_at"])
    return RecordedAnswer(**data)


def _to_sample(record: LocationSampleRecord) -> LocationSample:
    data = record.to_dict()
    data["recorded_at"] = as_utc(data["recorded_at"])
    return LocationSample(**data)


class SqlAttemptStore(SqlRepository, AttemptStore):
    """SQLAlchemy implementation of the AttemptStore."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        super().__init__("attempt", session_factory)

    async def create_attempt(self, attempt: Attempt) -> Attempt:
        try:
            async with self._session_scope() as session:
                session.add(AttemptRecord(
                    id=attempt.id,
                    assessment_id=attempt.assessment_id,
                    participant_id=attempt.participant_id,
                    created_at=attempt.created_at,
                    completed_at=attempt.completed_at,
                    completed=attempt.completed,
                    current_question_index=attempt.current_question_index,
                    score=attempt.score
                ))
        except IntegrityError:
            raise DuplicateError("attempt", f"{attempt.assessment_id}/{attempt.participant_id}")
        return attempt

    async def get_attempt(self, attempt_id: str) -> Optional[Attempt]:
        async with self._session_scope() as session:
            record = await session.get(AttemptRecord, attempt_id)
            return _to_attempt(record) if record else None

    async def find_attempt(self, assessment_id: str, participant_id: str) -> Optional[Attempt]:
        async with self._session_scope() as session:
            result = await session.execute(
                select(AttemptRecord).where(
                    AttemptRecord.assessment_id == assessment_id,
                    AttemptRecord.participant_id == participant_id
                )
            )
            record = result.scalar_one_or_none()
            return _to_attempt(record) if record else None

    async def list_attempts_for_participant(self, participant_id: str) -> List[Attempt]:
        async with self._session_scope() as session:
            result = await session.execute(
                select(AttemptRecord)
                .where(AttemptRecord.participant_id == participant_id)
                .order_by(AttemptRecord.created_at)
            )
            return [_to_attempt(record) for record in result.scalars()]

    async def list_attempts_for_assessment(self, assessment_id: str) -> List[Attempt]:
        async with self._session_scope() as session:
            result = await session.execute(
                select(AttemptRecord)
                .where(AttemptRecord.assessment_id == assessment_id)
                .order_by(AttemptRecord.created_at)
            )
            return [_to_attempt(record) for record in result.scalars()]

    async def save_answer(self, answer: RecordedAnswer, expected_index: int) -> Attempt:
        try:
            async with self._session_scope() as session:
                moved = await session.execute(
                    update(AttemptRecord)
                    .where(
                        AttemptRecord.id == answer.attempt_id,
                        AttemptRecord.completed.is_(False),
                        AttemptRecord.current_question_index == expected_index
                    )
                    .values(current_question_index=expected_index + 1)
                    .execution_options(synchronize_session=False)
                )
                if moved.rowcount != 1:
                    await self._explain_missed_update(session, answer)

                session.add(RecordedAnswerRecord(
                    id=answer.id,
                    attempt_id=answer.attempt_id,
                    question_id=answer.question_id,
                    text_answer=answer.text_answer,
                    selected_option_ids=answer.selected_option_ids,
                    is_correct=answer.is_correct,
                    earned_points=answer.earned_points,
                    submitted_at=answer.submitted_at
                ))
                await session.flush()

                record = await session.get(AttemptRecord, answer.attempt_id)
                return _to_attempt(record)
        except IntegrityError:
            raise DuplicateError("answer", f"{answer.attempt_id}/{answer.question_id}")

    async def _explain_missed_update(self, session, answer: RecordedAnswer) -> None:
        if await session.get(AttemptRecord, answer.attempt_id) is None:
            raise AttemptNotFoundError(answer.attempt_id)
        existing = await session.scalar(
            select(RecordedAnswerRecord.id).where(
                RecordedAnswerRecord.attempt_id == answer.attempt_id,
                RecordedAnswerRecord.question_id == answer.question_id
            )
        )
        if existing is not None:
            raise DuplicateError("answer", f"{answer.attempt_id}/{answer.question_id}")
        raise ConcurrentModificationError("attempt", answer.attempt_id)

    async def get_answer(self, attempt_id: str, question_id: str) -> Optional[RecordedAnswer]:
        async with self._session_scope() as session:
            result = await session.execute(
                select(RecordedAnswerRecord).where(
                    RecordedAnswerRecord.attempt_id == attempt_id,
                    RecordedAnswerRecord.question_id == question_id
                )
            )
            record = result.scalar_one_or_none()
            return _to_answer(record) if record else None

    async def list_answers(self, attempt_id: str) -> List[RecordedAnswer]:
        async with self._session_scope() as session:
            result = await session.execute(
                select(RecordedAnswerRecord)
                .where(RecordedAnswerRecord.attempt_id == attempt_id)
                .order_by(RecordedAnswerRecord.submitted_at)
            )
            return [_to_answer(record) for record in result.scalars()]

    async def complete_attempt(self, attempt_id: str, score: int, completed_at: datetime) -> bool:
        async with self._session_scope() as session:
            result = await session.execute(
                update(AttemptRecord)
                .where(AttemptRecord.id == attempt_id, AttemptRecord.completed.is_(False))
                .values(completed=True, score=score, completed_at=completed_at)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    async def add_location_sample(self, sample: LocationSample) -> LocationSample:
        async with self._session_scope() as session:
            if await session.get(AttemptRecord, sample.attempt_id) is None:
                raise AttemptNotFoundError(sample.attempt_id)
            session.add(LocationSampleRecord(
                id=sample.id,
                attempt_id=sample.attempt_id,
                latitude=sample.latitude,
                longitude=sample.longitude,
                recorded_at=sample.recorded_at
            ))
        return sample

    async def list_location_samples(self, attempt_id: str) -> List[LocationSample]:
        async with self._session_scope() as session:
            result = await session.execute(
                select(LocationSampleRecord)
                .where(LocationSampleRecord.attempt_id == attempt_id)
                .order_by(LocationSampleRecord.recorded_at)
            )
            return [_to_sample(record) for record in result.scalars()]

    async def delete_attempts_for_assessment(self, assessment_id: str) -> int:
        async with self._session_scope() as session:
            attempt_ids = select(AttemptRecord.id).where(AttemptRecord.assessment_id == assessment_id)
            await session.execute(
                delete(RecordedAnswerRecord).where(RecordedAnswerRecord.attempt_id.in_(attempt_ids))
                .execution_options(synchronize_session=False)
            )
            await session.execute(
                delete(LocationSampleRecord).where(LocationSampleRecord.attempt_id.in_(attempt_ids))
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(
                delete(AttemptRecord).where(AttemptRecord.assessment_id == assessment_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                logger.debug(f"Deleted {result.rowcount} attempts of assessment {assessment_id}")
            return result.rowcount
