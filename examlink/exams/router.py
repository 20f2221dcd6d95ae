"""
Exam Router

Participant endpoints for taking assessments and examiner endpoints for
authoring them. Handlers translate requests into engine calls; errors
raised by the engine are rendered by the handlers registered in
``examlink.api``.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from examlink.api import APIResponse
from examlink.common.auth.dependencies import get_current_user_id
from examlink.common.logger import app_logger
from examlink.engine.authoring import AuthoringService
from examlink.engine.orchestrator import SessionOrchestrator
from examlink.services import get_authoring, get_orchestrator
from .schemas import (
    CreateAssessmentRequest,
    LocationRequest,
    OpenAttemptRequest,
    QuestionDraftRequest,
    SubmitAnswerRequest,
    UpdateAssessmentRequest
)

logger = app_logger.getChild("exams.router")

router = APIRouter()


# Participant endpoints

@router.post("/attempts")
async def open_attempt(
    payload: OpenAttemptRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """Create the caller's attempt for an access token, or resume it."""
    location = None
    if payload.latitude is not None or payload.longitude is not None:
        location = (payload.latitude, payload.longitude)

    session = await orchestrator.create_or_resume_attempt(payload.access_token, user_id, location)
    return APIResponse.success(session.to_dict())


@router.get("/attempts")
async def list_my_attempts(
    user_id: str = Depends(get_current_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    summaries = await orchestrator.list_participant_attempts(user_id)
    return APIResponse.success([summary.to_dict() for summary in summaries])


@router.post("/attempts/{attempt_id}/answers")
async def submit_answer(
    attempt_id: str,
    payload: SubmitAnswerRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    outcome = await orchestrator.submit_answer(
        attempt_id, payload.question_id, payload.to_submission(), user_id
    )
    return APIResponse.success(outcome.to_dict(), "Answer recorded")


@router.post("/attempts/{attempt_id}/finalize")
async def finalize_attempt(
    attempt_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    score = await orchestrator.finalize_attempt(attempt_id, user_id)
    return APIResponse.success({"attempt_id": attempt_id, "score": score}, "Attempt finalized")


@router.get("/attempts/{attempt_id}/results")
async def get_results(
    attempt_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    results = await orchestrator.get_results(attempt_id, user_id)
    return APIResponse.success(results.to_dict())


@router.post("/attempts/{attempt_id}/location", status_code=status.HTTP_201_CREATED)
async def record_location(
    attempt_id: str,
    payload: LocationRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    sample = await orchestrator.record_location(attempt_id, user_id, payload.latitude, payload.longitude)
    return APIResponse.success(sample.to_dict(), "Location recorded")


# Examiner endpoints

@router.post("/assessments", status_code=status.HTTP_201_CREATED)
async def create_assessment(
    payload: CreateAssessmentRequest,
    user_id: str = Depends(get_current_user_id),
    authoring: AuthoringService = Depends(get_authoring)
) -> Dict[str, Any]:
    assessment = await authoring.create_assessment(
        user_id, payload.title, payload.description, payload.audience
    )
    return APIResponse.success(assessment.to_dict(), "Assessment created")


@router.get("/assessments")
async def list_my_assessments(
    user_id: str = Depends(get_current_user_id),
    authoring: AuthoringService = Depends(get_authoring)
) -> Dict[str, Any]:
    assessments = await authoring.list_owner_assessments(user_id)
    return APIResponse.success([assessment.to_dict() for assessment in assessments])


@router.get("/assessments/{assessment_id}")
async def get_assessment(
    assessment_id: str,
    user_id: str = Depends(get_current_user_id),
    authoring: AuthoringService = Depends(get_authoring)
) -> Dict[str, Any]:
    return APIResponse.success(await authoring.get_assessment(assessment_id, user_id))


@router.patch("/assessments/{assessment_id}")
async def update_assessment(
    assessment_id: str,
    payload: UpdateAssessmentRequest,
    user_id: str = Depends(get_current_user_id),
    authoring: AuthoringService = Depends(get_authoring)
) -> Dict[str, Any]:
    assessment = await authoring.update_assessment(
        assessment_id,
        user_id,
        title=payload.title,
        description=payload.description,
        audience=payload.audience
    )
    return APIResponse.success(assessment.to_dict(), "Assessment updated")


@router.delete("/assessments/{assessment_id}")
async def delete_assessment(
    assessment_id: str,
    user_id: str = Depends(get_current_user_id),
    authoring: AuthoringService = Depends(get_authoring)
) -> Dict[str, Any]:
    await authoring.delete_assessment(assessment_id, user_id)
    return APIResponse.success({"id": assessment_id}, "Assessment deleted")


@router.post("/assessments/{assessment_id}/questions", status_code=status.HTTP_201_CREATED)
async def add_question(
    assessment_id: str,
    payload: QuestionDraftRequest,
    user_id: str = Depends(get_current_user_id),
    authoring: AuthoringService = Depends(get_authoring)
) -> Dict[str, Any]:
    question = await authoring.add_question(assessment_id, user_id, payload.to_draft())
    return APIResponse.success(question.to_dict(include_answers=True), "Question added")


@router.delete("/assessments/{assessment_id}/questions/{question_id}")
async def delete_question(
    assessment_id: str,
    question_id: str,
    user_id: str = Depends(get_current_user_id),
    authoring: AuthoringService = Depends(get_authoring)
) -> Dict[str, Any]:
    await authoring.delete_question(assessment_id, question_id, user_id)
    return APIResponse.success({"id": question_id}, "Question deleted")


@router.get("/assessments/{assessment_id}/attempts")
async def list_assessment_attempts(
    assessment_id: str,
    user_id: str = Depends(get_current_user_id),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    attempts = await orchestrator.list_assessment_attempts(assessment_id, user_id)
    return APIResponse.success([attempt.to_dict() for attempt in attempts])


logger.debug(f"Exam router loaded with {len(router.routes)} routes")
