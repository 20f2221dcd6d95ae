"""
Request models for the exam endpoints.

Responses are plain dictionaries wrapped in the ``APIResponse`` envelope.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from examlink.domain.attempts.model import Submission
from examlink.engine.authoring import QuestionDraft


class OpenAttemptRequest(BaseModel):
    access_token: str = Field(..., min_length=1, description="Token from the shareable link")
    latitude: Optional[float] = Field(None, ge=-90, le=90, description="Optional location sample")
    longitude: Optional[float] = Field(None, ge=-180, le=180, description="Optional location sample")


class SubmitAnswerRequest(BaseModel):
    question_id: str = Field(..., description="Question identifier")
    text_answer: Optional[str] = Field(None, description="Answer to a free_text question")
    selected_option_ids: Optional[List[str]] = Field(
        None, description="Selected options of a single_or_multi_select question"
    )

    def to_submission(self) -> Submission:
        return Submission(text_answer=self.text_answer, selected_option_ids=self.selected_option_ids)


class LocationRequest(BaseModel):
    # Missing coordinates are rejected by the engine with field errors
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class CreateAssessmentRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", description="Free-form description")
    audience: str = Field("", max_length=255, description="Audience tag, e.g. a class name")


class UpdateAssessmentRequest(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    audience: Optional[str] = Field(None, max_length=255)


class OptionDraft(BaseModel):
    text: str
    is_correct: bool = False


class QuestionDraftRequest(BaseModel):
    prompt: str = Field(..., description="Question text")
    modality: str = Field(..., description="free_text or single_or_multi_select")
    time_budget_seconds: int = Field(..., description="Per-question countdown in seconds")
    points: int = Field(1, description="Points for a correct answer")
    canonical_answer: Optional[str] = None
    tolerance: int = Field(0, description="Free-text leniency percentage (0-100)")
    options: List[OptionDraft] = Field(default_factory=list)
    attachment_type: Optional[str] = None
    attachment_url: Optional[str] = None

    def to_draft(self) -> QuestionDraft:
        data = self.model_dump()
        return QuestionDraft(**data)
