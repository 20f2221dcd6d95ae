"""
SQL Assessment Catalog Module

This module provides the SQLAlchemy implementation of the AssessmentCatalog
interface.
"""

from typing import List, Optional

from sqlalchemy import delete, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from examlink.common.exceptions import (
    AssessmentLockedError,
    AssessmentNotFoundError,
    ConcurrentModificationError,
    DuplicateError
)
from examlink.common.logger import app_logger
from examlink.database.models import (
    AssessmentRecord,
    AttemptRecord,
    QuestionOptionRecord,
    QuestionRecord
)
from examlink.database.session import SqlRepository, as_utc
from .model import AnswerOption, Assessment, Question
from .repository import AssessmentCatalog

logger = app_logger.getChild("catalog.sql")


def _to_assessment(record: AssessmentRecord) -> Assessment:
    return Assessment(
        id=record.id,
        title=record.title,
        description=record.description,
        audience=record.audience,
        owner_id=record.owner_id,
        access_token=record.access_token,
        question_ids=[question.id for question in record.questions],
        created_at=as_utc(record.created_at)
    )


def _to_question(record: QuestionRecord) -> Question:
    return Question(
        id=record.id,
        assessment_id=record.assessment_id,
        prompt=record.prompt,
        modality=record.modality,
        time_budget_seconds=record.time_budget_seconds,
        points=record.points,
        canonical_answer=record.canonical_answer,
        tolerance=record.tolerance,
        options=[
            AnswerOption(id=option.id, text=option.text, is_correct=option.is_correct)
            for option in record.options
        ],
        attachment_type=record.attachment_type,
        attachment_url=record.attachment_url,
        created_at=as_utc(record.created_at)
    )


class SqlAssessmentCatalog(SqlRepository, AssessmentCatalog):
    """
    SQLAlchemy implementation of the AssessmentCatalog.

    Question positions are unique per assessment; an append that loses the
    race for the next position is retried up to ``position_retries`` times.
    """

    position_retries = 5

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        super().__init__("assessment", session_factory)

    async def get_assessment(self, assessment_id: str) -> Optional[Assessment]:
        async with self._session_scope() as session:
            record = await session.get(AssessmentRecord, assessment_id)
            return _to_assessment(record) if record else None

    async def get_assessment_by_token(self, access_token: str) -> Optional[Assessment]:
        async with self._session_scope() as session:
            result = await session.execute(
                select(AssessmentRecord).where(AssessmentRecord.access_token == access_token)
            )
            record = result.scalar_one_or_none()
            return _to_assessment(record) if record else None

    async def list_assessments_by_owner(self, owner_id: str) -> List[Assessment]:
        async with self._session_scope() as session:
            result = await session.execute(
                select(AssessmentRecord)
                .where(AssessmentRecord.owner_id == owner_id)
                .order_by(AssessmentRecord.created_at)
            )
            return [_to_assessment(record) for record in result.scalars()]

    async def save_assessment(self, assessment: Assessment) -> Assessment:
        try:
            async with self._session_scope() as session:
                record = await session.get(AssessmentRecord, assessment.id)
                if record is None:
                    record = AssessmentRecord(id=assessment.id, created_at=assessment.created_at)
                    session.add(record)
                record.title = assessment.title
                record.description = assessment.description
                record.audience = assessment.audience
                record.owner_id = assessment.owner_id
                record.access_token = assessment.access_token
                await session.flush()
                await session.refresh(record, ["questions"])
                return _to_assessment(record)
        except IntegrityError:
            raise DuplicateError("assessment access token", assessment.access_token)

    async def delete_assessment(self, assessment_id: str) -> bool:
        async with self._session_scope() as session:
            record = await session.get(AssessmentRecord, assessment_id)
            if record is None:
                return False
            await session.delete(record)
            logger.debug(f"Deleted assessment {assessment_id}")
            return True

    async def get_question(self, question_id: str) -> Optional[Question]:
        async with self._session_scope() as session:
            record = await session.get(QuestionRecord, question_id)
            return _to_question(record) if record else None

    async def list_questions(self, assessment_id: str) -> List[Question]:
        async with self._session_scope() as session:
            result = await session.execute(
                select(QuestionRecord)
                .where(QuestionRecord.assessment_id == assessment_id)
                .order_by(QuestionRecord.position)
            )
            return [_to_question(record) for record in result.scalars()]

    async def add_question(self, question: Question) -> Question:
        for _ in range(self.position_retries):
            try:
                return await self._insert_question(question)
            except IntegrityError:
                if await self.get_question(question.id) is not None:
                    raise DuplicateError("question", question.id)
                # Another writer took the next position first.
                logger.debug(f"Position clash appending question {question.id}, retrying")

        raise ConcurrentModificationError("assessment", question.assessment_id)

    async def _insert_question(self, question: Question) -> Question:
        async with self._session_scope() as session:
            if await session.get(AssessmentRecord, question.assessment_id) is None:
                raise AssessmentNotFoundError(question.assessment_id)

            last_position = await session.scalar(
                select(func.max(QuestionRecord.position))
                .where(QuestionRecord.assessment_id == question.assessment_id)
            )
            record = QuestionRecord(
                id=question.id,
                assessment_id=question.assessment_id,
                position=0 if last_position is None else last_position + 1,
                prompt=question.prompt,
                modality=question.modality.value,
                time_budget_seconds=question.time_budget_seconds,
                points=question.points,
                canonical_answer=question.canonical_answer,
                tolerance=question.tolerance,
                attachment_type=question.attachment_type,
                attachment_url=question.attachment_url,
                created_at=question.created_at,
                options=[
                    QuestionOptionRecord(
                        id=option.id,
                        position=position,
                        text=option.text,
                        is_correct=option.is_correct
                    )
                    for position, option in enumerate(question.options)
                ]
            )
            session.add(record)
            await session.flush()
            return _to_question(record)

    async def delete_question(self, question_id: str, unless_attempted: bool = False) -> bool:
        async with self._session_scope() as session:
            assessment_id = await session.scalar(
                select(QuestionRecord.assessment_id).where(QuestionRecord.id == question_id)
            )
            if assessment_id is None:
                return False

            # Options go with the question through the ON DELETE CASCADE key.
            statement = delete(QuestionRecord).where(QuestionRecord.id == question_id)
            if unless_attempted:
                statement = statement.where(
                    ~exists().where(AttemptRecord.assessment_id == assessment_id)
                )
            result = await session.execute(statement.execution_options(synchronize_session=False))

            if result.rowcount == 1:
                return True
            if unless_attempted:
                raise AssessmentLockedError(assessment_id)
            return False
