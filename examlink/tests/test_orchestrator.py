"""Tests for the participant and examiner facing session operations."""

import pytest

from examlink.common.exceptions import (
    AssessmentNotFoundError,
    AttemptNotFoundError,
    ForbiddenError,
    InvalidInputError
)
from examlink.domain.attempts.model import Submission

from .conftest import EXAMINER_ID, OTHER_PARTICIPANT_ID, PARTICIPANT_ID, option_id


@pytest.mark.asyncio
async def test_end_to_end_half_score(orchestrator, two_question_exam):
    assessment, (free_text, multi) = two_question_exam

    session = await orchestrator.create_or_resume_attempt(assessment.access_token, PARTICIPANT_ID)
    assert session.current_question_index == 0
    assert not session.completed
    assert [q.id for q in session.questions] == [free_text.id, multi.id]

    correct = await orchestrator.submit_answer(
        session.attempt_id, free_text.id, Submission(text_answer="PARIS"), PARTICIPANT_ID
    )
    wrong = await orchestrator.submit_answer(
        session.attempt_id, multi.id, Submission(selected_option_ids=[option_id(multi, "4")]), PARTICIPANT_ID
    )
    assert correct.is_correct and not wrong.is_correct

    assert await orchestrator.finalize_attempt(session.attempt_id, PARTICIPANT_ID) == 50

    resumed = await orchestrator.create_or_resume_attempt(assessment.access_token, PARTICIPANT_ID)
    assert resumed.attempt_id == session.attempt_id
    assert resumed.completed
    assert resumed.current_question_index == 2


@pytest.mark.asyncio
async def test_session_hides_answers(orchestrator, two_question_exam):
    assessment, _ = two_question_exam
    session = await orchestrator.create_or_resume_attempt(assessment.access_token, PARTICIPANT_ID)

    data = session.to_dict()
    free_text, multi = data["questions"]
    assert "canonical_answer" not in free_text
    assert "tolerance" not in free_text
    assert all("is_correct" not in option for option in multi["options"])
    assert multi["multiple_answers"] is True
    assert "owner_id" not in data["assessment"]


@pytest.mark.asyncio
async def test_unknown_token(orchestrator):
    with pytest.raises(AssessmentNotFoundError) as exc_info:
        await orchestrator.create_or_resume_attempt("nope", PARTICIPANT_ID)
    assert exc_info.value.code == "ASSESSMENT_NOT_FOUND"


@pytest.mark.asyncio
async def test_foreign_participant_is_forbidden(orchestrator, store, two_question_exam):
    assessment, (free_text, _) = two_question_exam
    session = await orchestrator.create_or_resume_attempt(assessment.access_token, PARTICIPANT_ID)

    with pytest.raises(ForbiddenError):
        await orchestrator.submit_answer(
            session.attempt_id, free_text.id, Submission(text_answer="Paris"), OTHER_PARTICIPANT_ID
        )
    with pytest.raises(ForbiddenError):
        await orchestrator.finalize_attempt(session.attempt_id, OTHER_PARTICIPANT_ID)
    with pytest.raises(ForbiddenError):
        await orchestrator.get_results(session.attempt_id, OTHER_PARTICIPANT_ID)
    with pytest.raises(ForbiddenError):
        await orchestrator.record_location(session.attempt_id, OTHER_PARTICIPANT_ID, 1.0, 2.0)

    attempt = await store.get_attempt(session.attempt_id)
    assert attempt.current_question_index == 0 and not attempt.completed


@pytest.mark.asyncio
async def test_unknown_attempt(orchestrator):
    with pytest.raises(AttemptNotFoundError):
        await orchestrator.submit_answer("missing", "q", Submission(text_answer="x"), PARTICIPANT_ID)
    with pytest.raises(AttemptNotFoundError):
        await orchestrator.finalize_attempt("missing", PARTICIPANT_ID)
    with pytest.raises(AttemptNotFoundError):
        await orchestrator.get_results("missing", PARTICIPANT_ID)


@pytest.mark.asyncio
async def test_each_participant_gets_own_attempt(orchestrator, two_question_exam):
    assessment, _ = two_question_exam
    mine = await orchestrator.create_or_resume_attempt(assessment.access_token, PARTICIPANT_ID)
    theirs = await orchestrator.create_or_resume_attempt(assessment.access_token, OTHER_PARTICIPANT_ID)
    assert mine.attempt_id != theirs.attempt_id


@pytest.mark.asyncio
async def test_results_breakdown(orchestrator, two_question_exam):
    assessment, (free_text, multi) = two_question_exam
    session = await orchestrator.create_or_resume_attempt(assessment.access_token, PARTICIPANT_ID)
    await orchestrator.submit_answer(
        session.attempt_id, free_text.id, Submission(text_answer="Pariz"), PARTICIPANT_ID
    )

    pending = await orchestrator.get_results(session.attempt_id, PARTICIPANT_ID)
    assert pending.score is None
    assert not pending.completed

    await orchestrator.submit_answer(
        session.attempt_id,
        multi.id,
        Submission(selected_option_ids=[option_id(multi, "3"), option_id(multi, "2")]),
        PARTICIPANT_ID
    )
    await orchestrator.finalize_attempt(session.attempt_id, PARTICIPANT_ID)
    results = await orchestrator.get_results(session.attempt_id, PARTICIPANT_ID)

    assert results.score == 100
    assert results.total_questions == 2
    assert results.correct_answers == 2
    first, second = results.breakdown
    assert first.user_answer == "Pariz"
    assert first.correct_answer == "Paris"
    assert first.is_correct and first.earned_points == 1
    # Option texts come back in authored order
    assert second.user_answer == "2, 3"
    assert second.correct_answer == "2, 3"


@pytest.mark.asyncio
async def test_results_list_unanswered_questions(orchestrator, two_question_exam):
    assessment, _ = two_question_exam
    session = await orchestrator.create_or_resume_attempt(assessment.access_token, PARTICIPANT_ID)
    await orchestrator.finalize_attempt(session.attempt_id, PARTICIPANT_ID)

    results = await orchestrator.get_results(session.attempt_id, PARTICIPANT_ID)
    assert results.score == 0
    assert [row.answered for row in results.breakdown] == [False, False]
    assert all(row.user_answer == "" for row in results.breakdown)


@pytest.mark.asyncio
async def test_location_samples(orchestrator, store, two_question_exam):
    assessment, _ = two_question_exam
    session = await orchestrator.create_or_resume_attempt(
        assessment.access_token, PARTICIPANT_ID, location=(48.85, 2.35)
    )
    await orchestrator.record_location(session.attempt_id, PARTICIPANT_ID, 48.86, 2.34)

    samples = await store.list_location_samples(session.attempt_id)
    assert [(s.latitude, s.longitude) for s in samples] == [(48.85, 2.35), (48.86, 2.34)]


@pytest.mark.asyncio
async def test_location_requires_both_coordinates(orchestrator, store, two_question_exam):
    assessment, _ = two_question_exam
    session = await orchestrator.create_or_resume_attempt(assessment.access_token, PARTICIPANT_ID)

    with pytest.raises(InvalidInputError) as exc_info:
        await orchestrator.record_location(session.attempt_id, PARTICIPANT_ID, None, 2.0)
    assert exc_info.value.errors == {"latitude": "required"}

    with pytest.raises(InvalidInputError):
        await orchestrator.create_or_resume_attempt(
            assessment.access_token, OTHER_PARTICIPANT_ID, location=(1.0, None)
        )
    assert await store.find_attempt(assessment.id, OTHER_PARTICIPANT_ID) is None


@pytest.mark.asyncio
async def test_list_participant_attempts(orchestrator, authoring, two_question_exam):
    assessment, _ = two_question_exam
    other = await authoring.create_assessment(EXAMINER_ID, "History")
    await orchestrator.create_or_resume_attempt(assessment.access_token, PARTICIPANT_ID)
    await orchestrator.create_or_resume_attempt(other.access_token, PARTICIPANT_ID)

    summaries = await orchestrator.list_participant_attempts(PARTICIPANT_ID)
    assert [s.assessment_title for s in summaries] == ["Geography", "History"]
    assert summaries[0].to_dict()["access_token"] == assessment.access_token
    assert await orchestrator.list_participant_attempts(OTHER_PARTICIPANT_ID) == []


@pytest.mark.asyncio
async def test_list_assessment_attempts_is_owner_only(orchestrator, two_question_exam):
    assessment, _ = two_question_exam
    await orchestrator.create_or_resume_attempt(assessment.access_token, PARTICIPANT_ID)
    await orchestrator.create_or_resume_attempt(assessment.access_token, OTHER_PARTICIPANT_ID)

    attempts = await orchestrator.list_assessment_attempts(assessment.id, EXAMINER_ID)
    assert {a.participant_id for a in attempts} == {PARTICIPANT_ID, OTHER_PARTICIPANT_ID}

    with pytest.raises(ForbiddenError):
        await orchestrator.list_assessment_attempts(assessment.id, PARTICIPANT_ID)
    with pytest.raises(AssessmentNotFoundError):
        await orchestrator.list_assessment_attempts("missing", EXAMINER_ID)
