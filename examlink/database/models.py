"""
Database Models

SQLAlchemy tables backing the SQL assessment catalog and attempt store.
The unique constraints on attempts and recorded answers are what make
attempt creation and answer recording safe across processes.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint
)
from sqlalchemy.orm import relationship

from examlink.database.base import ModelBase
from examlink.domain.catalog.model import utcnow

ID_LENGTH = 36


class AssessmentRecord(ModelBase):
    __tablename__ = "assessments"

    id = Column(String(ID_LENGTH), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    audience = Column(String(255), nullable=False, default="")
    owner_id = Column(String(255), nullable=False, index=True)
    access_token = Column(String(32), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    questions = relationship(
        "QuestionRecord",
        back_populates="assessment",
        order_by="QuestionRecord.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin"
    )


class QuestionRecord(ModelBase):
    __tablename__ = "questions"
    __table_args__ = (
        UniqueConstraint("assessment_id", "position"),
    )

    id = Column(String(ID_LENGTH), primary_key=True)
    assessment_id = Column(
        String(ID_LENGTH),
        ForeignKey("assessments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    position = Column(Integer, nullable=False)
    prompt = Column(Text, nullable=False)
    modality = Column(String(32), nullable=False)
    time_budget_seconds = Column(Integer, nullable=False)
    points = Column(Integer, nullable=False, default=1)
    canonical_answer = Column(Text, nullable=True)
    tolerance = Column(Integer, nullable=False, default=0)
    attachment_type = Column(String(32), nullable=True)
    attachment_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    assessment = relationship("AssessmentRecord", back_populates="questions")
    options = relationship(
        "QuestionOptionRecord",
        back_populates="question",
        order_by="QuestionOptionRecord.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin"
    )


class QuestionOptionRecord(ModelBase):
    __tablename__ = "question_options"

    id = Column(String(ID_LENGTH), primary_key=True)
    question_id = Column(
        String(ID_LENGTH),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    position = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    question = relationship("QuestionRecord", back_populates="options")


class AttemptRecord(ModelBase):
    __tablename__ = "attempts"
    __table_args__ = (
        UniqueConstraint("assessment_id", "participant_id"),
    )

    id = Column(String(ID_LENGTH), primary_key=True)
    assessment_id = Column(
        String(ID_LENGTH),
        ForeignKey("assessments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    participant_id = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    completed = Column(Boolean, nullable=False, default=False)
    current_question_index = Column(Integer, nullable=False, default=0)
    score = Column(Integer, nullable=True)


class RecordedAnswerRecord(ModelBase):
    __tablename__ = "recorded_answers"
    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id"),
    )

    id = Column(String(ID_LENGTH), primary_key=True)
    attempt_id = Column(
        String(ID_LENGTH),
        ForeignKey("attempts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    question_id = Column(
        String(ID_LENGTH),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False
    )
    text_answer = Column(Text, nullable=True)
    selected_option_ids = Column(JSON(none_as_null=True), nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    earned_points = Column(Integer, nullable=False, default=0)
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class LocationSampleRecord(ModelBase):
    __tablename__ = "location_samples"

    id = Column(String(ID_LENGTH), primary_key=True)
    attempt_id = Column(
        String(ID_LENGTH),
        ForeignKey("attempts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    recorded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
