"""
Shared fixtures for the ExamLink tests.

Most tests run against the in-memory stores; the SQL store tests build
their own temporary SQLite database.
"""

import pytest
import pytest_asyncio

from examlink.domain.attempts.memory_repository import MemoryAttemptStore
from examlink.domain.catalog.memory_repository import MemoryAssessmentCatalog
from examlink.domain.catalog.model import AnswerOption, Question, QuestionModality
from examlink.engine.authoring import AuthoringService, QuestionDraft
from examlink.engine.orchestrator import SessionOrchestrator
from examlink.engine.state_machine import AttemptStateMachine

EXAMINER_ID = "examiner-1"
PARTICIPANT_ID = "participant-1"
OTHER_PARTICIPANT_ID = "participant-2"


def free_text_draft(prompt="Capital of France?", answer="Paris", tolerance=20, points=1) -> QuestionDraft:
    return QuestionDraft(
        prompt=prompt,
        modality="free_text",
        time_budget_seconds=30,
        points=points,
        canonical_answer=answer,
        tolerance=tolerance
    )


def select_draft(prompt="Pick the primes", options=None, points=1) -> QuestionDraft:
    return QuestionDraft(
        prompt=prompt,
        modality="single_or_multi_select",
        time_budget_seconds=45,
        points=points,
        options=options or [
            {"text": "2", "is_correct": True},
            {"text": "3", "is_correct": True},
            {"text": "4", "is_correct": False}
        ]
    )


def make_question(modality=QuestionModality.FREE_TEXT, **overrides) -> Question:
    """Build a Question directly, bypassing the authoring service."""
    values = {
        "id": "q-1",
        "assessment_id": "a-1",
        "prompt": "Capital of France?",
        "modality": modality,
        "time_budget_seconds": 30,
        "points": 1
    }
    if modality == QuestionModality.FREE_TEXT:
        values.update({"canonical_answer": "Paris", "tolerance": 20})
    else:
        values["options"] = [
            AnswerOption(id="A", text="Alpha", is_correct=True),
            AnswerOption(id="B", text="Beta", is_correct=True),
            AnswerOption(id="C", text="Gamma", is_correct=False)
        ]
    values.update(overrides)
    return Question(**values)


def option_id(question: Question, text: str) -> str:
    return next(option.id for option in question.options if option.text == text)


@pytest.fixture
def store():
    return MemoryAttemptStore()


@pytest.fixture
def catalog(store):
    return MemoryAssessmentCatalog(has_attempts=store.has_attempts)


@pytest.fixture
def state_machine(store, catalog):
    return AttemptStateMachine(store, catalog)


@pytest.fixture
def orchestrator(catalog, store, state_machine):
    return SessionOrchestrator(catalog, store, state_machine)


@pytest.fixture
def authoring(catalog, store):
    return AuthoringService(catalog, store, token_length=8, token_attempts=5)


@pytest_asyncio.fixture
async def two_question_exam(authoring):
    """An assessment with a free-text question and a multi-select question, 1 point each."""
    assessment = await authoring.create_assessment(EXAMINER_ID, "Geography", "Warm-up quiz", "class-7b")
    first = await authoring.add_question(assessment.id, EXAMINER_ID, free_text_draft())
    second = await authoring.add_question(assessment.id, EXAMINER_ID, select_draft())
    return assessment, [first, second]
