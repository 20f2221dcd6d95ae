"""
Repository contract tests.

Every test runs against the in-memory stores and against the SQLAlchemy
stores on a temporary SQLite database.
"""

import asyncio
from datetime import timezone

import pytest
import pytest_asyncio

from examlink.common.exceptions import (
    AssessmentLockedError,
    AssessmentNotFoundError,
    AttemptNotFoundError,
    ConcurrentModificationError,
    DuplicateError
)
from examlink.database.init_db import close_database, get_session_factory, initialize_database
from examlink.domain.attempts.memory_repository import MemoryAttemptStore
from examlink.domain.attempts.model import Attempt, LocationSample, RecordedAnswer, Submission
from examlink.domain.attempts.sql_repository import SqlAttemptStore
from examlink.domain.catalog.memory_repository import MemoryAssessmentCatalog
from examlink.domain.catalog.model import AnswerOption, Assessment, Question, QuestionModality, utcnow
from examlink.domain.catalog.sql_repository import SqlAssessmentCatalog
from examlink.engine.authoring import AuthoringService

from .conftest import EXAMINER_ID, free_text_draft


@pytest_asyncio.fixture(params=["memory", "sql"])
async def stores(request, tmp_path):
    if request.param == "memory":
        store = MemoryAttemptStore()
        yield MemoryAssessmentCatalog(has_attempts=store.has_attempts), store
        return

    await initialize_database(f"sqlite+aiosqlite:///{tmp_path / 'examlink.db'}", create_tables=True)
    factory = get_session_factory()
    yield SqlAssessmentCatalog(factory), SqlAttemptStore(factory)
    await close_database()


def assessment(token="tok12345", assessment_id="a-1", owner="examiner-1") -> Assessment:
    return Assessment(
        id=assessment_id,
        title="Geography",
        description="Warm-up",
        audience="class-7b",
        owner_id=owner,
        access_token=token
    )


def free_text(question_id="q-1", assessment_id="a-1") -> Question:
    return Question(
        id=question_id,
        assessment_id=assessment_id,
        prompt="Capital of France?",
        modality=QuestionModality.FREE_TEXT,
        time_budget_seconds=30,
        canonical_answer="Paris",
        tolerance=20
    )


def multi_select(question_id="q-2", assessment_id="a-1") -> Question:
    return Question(
        id=question_id,
        assessment_id=assessment_id,
        prompt="Pick the primes",
        modality=QuestionModality.SELECT,
        time_budget_seconds=45,
        points=2,
        options=[
            AnswerOption(id=f"{question_id}-a", text="2", is_correct=True),
            AnswerOption(id=f"{question_id}-b", text="3", is_correct=True),
            AnswerOption(id=f"{question_id}-c", text="4", is_correct=False)
        ],
        attachment_type="image",
        attachment_url="https://example.org/primes.png"
    )


async def seed(catalog):
    await catalog.save_assessment(assessment())
    await catalog.add_question(free_text())
    await catalog.add_question(multi_select())


def answer(attempt_id, question_id="q-1", text="Paris") -> RecordedAnswer:
    return RecordedAnswer.create(attempt_id, question_id, Submission(text_answer=text), True, 1)


class TestCatalog:

    @pytest.mark.asyncio
    async def test_assessment_round_trip(self, stores):
        catalog, _ = stores
        await seed(catalog)

        by_id = await catalog.get_assessment("a-1")
        by_token = await catalog.get_assessment_by_token("tok12345")

        assert by_id == by_token
        assert by_id.question_ids == ["q-1", "q-2"]
        assert by_id.created_at.tzinfo is not None
        assert await catalog.get_assessment("missing") is None
        assert await catalog.get_assessment_by_token("missing") is None

    @pytest.mark.asyncio
    async def test_questions_in_order_with_options(self, stores):
        catalog, _ = stores
        await seed(catalog)

        questions = await catalog.list_questions("a-1")

        assert [q.id for q in questions] == ["q-1", "q-2"]
        assert questions[0].canonical_answer == "Paris" and questions[0].tolerance == 20
        assert [o.text for o in questions[1].options] == ["2", "3", "4"]
        assert questions[1].correct_option_ids == {"q-2-a", "q-2-b"}
        assert questions[1].attachment_url == "https://example.org/primes.png"
        assert await catalog.list_questions("missing") == []

    @pytest.mark.asyncio
    async def test_duplicate_token(self, stores):
        catalog, _ = stores
        await catalog.save_assessment(assessment())

        with pytest.raises(DuplicateError):
            await catalog.save_assessment(assessment(assessment_id="a-2"))

    @pytest.mark.asyncio
    async def test_save_keeps_question_order(self, stores):
        catalog, _ = stores
        await seed(catalog)
        stored = await catalog.get_assessment("a-1")
        stored.title = "World Geography"
        stored.question_ids = []

        saved = await catalog.save_assessment(stored)

        assert saved.title == "World Geography"
        assert saved.question_ids == ["q-1", "q-2"]

    @pytest.mark.asyncio
    async def test_add_question_to_missing_assessment(self, stores):
        catalog, _ = stores
        with pytest.raises(AssessmentNotFoundError):
            await catalog.add_question(free_text(assessment_id="missing"))

    @pytest.mark.asyncio
    async def test_delete_question_then_append(self, stores):
        catalog, _ = stores
        await seed(catalog)

        assert await catalog.delete_question("q-1")
        assert not await catalog.delete_question("q-1")
        await catalog.add_question(free_text(question_id="q-3"))

        assert [q.id for q in await catalog.list_questions("a-1")] == ["q-2", "q-3"]
        assert (await catalog.get_assessment("a-1")).question_ids == ["q-2", "q-3"]

    @pytest.mark.asyncio
    async def test_list_by_owner_and_delete(self, stores):
        catalog, _ = stores
        await seed(catalog)
        await catalog.save_assessment(assessment(token="tok99999", assessment_id="a-2", owner="someone"))

        assert [a.id for a in await catalog.list_assessments_by_owner("examiner-1")] == ["a-1"]
        assert await catalog.delete_assessment("a-1")
        assert not await catalog.delete_assessment("a-1")
        assert await catalog.get_question("q-1") is None
        assert await catalog.get_question("q-2") is None

    @pytest.mark.asyncio
    async def test_duplicate_question_id(self, stores):
        catalog, _ = stores
        await seed(catalog)

        with pytest.raises(DuplicateError):
            await catalog.add_question(free_text())
        assert [q.id for q in await catalog.list_questions("a-1")] == ["q-1", "q-2"]

    @pytest.mark.asyncio
    async def test_concurrent_appends_all_land(self, stores):
        catalog, _ = stores
        await catalog.save_assessment(assessment())

        await asyncio.gather(*[
            catalog.add_question(free_text(question_id=f"q-{i}")) for i in range(4)
        ])

        stored = await catalog.list_questions("a-1")
        assert sorted(q.id for q in stored) == ["q-0", "q-1", "q-2", "q-3"]
        assert (await catalog.get_assessment("a-1")).question_ids == [q.id for q in stored]

    @pytest.mark.asyncio
    async def test_guarded_delete_refuses_attempted_assessment(self, stores):
        catalog, store = stores
        await seed(catalog)

        # Unattempted: the question goes, options included, so it can be re-added
        assert await catalog.delete_question("q-2", unless_attempted=True)
        await catalog.add_question(multi_select())
        assert not await catalog.delete_question("missing", unless_attempted=True)

        await store.create_attempt(Attempt.create("a-1", "p-1"))
        with pytest.raises(AssessmentLockedError):
            await catalog.delete_question("q-1", unless_attempted=True)
        assert [q.id for q in await catalog.list_questions("a-1")] == ["q-1", "q-2"]

        assert await catalog.delete_question("q-1")


class TestAttemptStore:

    @pytest.mark.asyncio
    async def test_one_attempt_per_pair(self, stores):
        catalog, store = stores
        await seed(catalog)
        attempt = await store.create_attempt(Attempt.create("a-1", "p-1"))

        with pytest.raises(DuplicateError):
            await store.create_attempt(Attempt.create("a-1", "p-1"))

        found = await store.find_attempt("a-1", "p-1")
        assert found.id == attempt.id
        assert found.created_at.tzinfo == timezone.utc
        assert await store.find_attempt("a-1", "p-2") is None
        assert await store.get_attempt("missing") is None

    @pytest.mark.asyncio
    async def test_save_answer_moves_pointer(self, stores):
        catalog, store = stores
        await seed(catalog)
        attempt = await store.create_attempt(Attempt.create("a-1", "p-1"))

        updated = await store.save_answer(answer(attempt.id), expected_index=0)
        assert updated.current_question_index == 1

        selection = RecordedAnswer.create(
            attempt.id, "q-2", Submission(selected_option_ids=["q-2-a", "q-2-b"]), True, 2
        )
        await store.save_answer(selection, expected_index=1)

        answers = await store.list_answers(attempt.id)
        assert {a.question_id for a in answers} == {"q-1", "q-2"}
        stored = await store.get_answer(attempt.id, "q-2")
        assert stored.selected_option_ids == ["q-2-a", "q-2-b"]
        assert stored.text_answer is None
        assert (await store.get_answer(attempt.id, "q-1")).selected_option_ids is None

    @pytest.mark.asyncio
    async def test_save_answer_conflicts(self, stores):
        catalog, store = stores
        await seed(catalog)
        attempt = await store.create_attempt(Attempt.create("a-1", "p-1"))
        await store.save_answer(answer(attempt.id), expected_index=0)

        with pytest.raises(DuplicateError):
            await store.save_answer(answer(attempt.id), expected_index=1)
        with pytest.raises(ConcurrentModificationError):
            await store.save_answer(answer(attempt.id, "q-2"), expected_index=0)
        with pytest.raises(AttemptNotFoundError):
            await store.save_answer(answer("missing"), expected_index=0)

        assert (await store.get_attempt(attempt.id)).current_question_index == 1
        assert len(await store.list_answers(attempt.id)) == 1

    @pytest.mark.asyncio
    async def test_complete_only_once(self, stores):
        catalog, store = stores
        await seed(catalog)
        attempt = await store.create_attempt(Attempt.create("a-1", "p-1"))

        assert await store.complete_attempt(attempt.id, 75, utcnow())
        assert not await store.complete_attempt(attempt.id, 10, utcnow())
        assert not await store.complete_attempt("missing", 10, utcnow())

        stored = await store.get_attempt(attempt.id)
        assert stored.completed and stored.score == 75
        assert stored.completed_at is not None

        with pytest.raises(ConcurrentModificationError):
            await store.save_answer(answer(attempt.id), expected_index=0)

    @pytest.mark.asyncio
    async def test_location_samples(self, stores):
        catalog, store = stores
        await seed(catalog)
        attempt = await store.create_attempt(Attempt.create("a-1", "p-1"))

        await store.add_location_sample(LocationSample.create(attempt.id, 48.85, 2.35))
        with pytest.raises(AttemptNotFoundError):
            await store.add_location_sample(LocationSample.create("missing", 0.0, 0.0))

        samples = await store.list_location_samples(attempt.id)
        assert [(s.latitude, s.longitude) for s in samples] == [(48.85, 2.35)]

    @pytest.mark.asyncio
    async def test_listing_and_cascade_delete(self, stores):
        catalog, store = stores
        await seed(catalog)
        await catalog.save_assessment(assessment(token="tok99999", assessment_id="a-2"))
        first = await store.create_attempt(Attempt.create("a-1", "p-1"))
        await store.create_attempt(Attempt.create("a-1", "p-2"))
        await store.create_attempt(Attempt.create("a-2", "p-1"))
        await store.save_answer(answer(first.id), expected_index=0)
        await store.add_location_sample(LocationSample.create(first.id, 1.0, 2.0))

        assert len(await store.list_attempts_for_assessment("a-1")) == 2
        assert {a.assessment_id for a in await store.list_attempts_for_participant("p-1")} == {"a-1", "a-2"}

        assert await store.delete_attempts_for_assessment("a-1") == 2
        assert await store.list_attempts_for_assessment("a-1") == []
        assert await store.list_answers(first.id) == []
        assert await store.list_location_samples(first.id) == []
        assert len(await store.list_attempts_for_participant("p-1")) == 1


def test_memory_catalog_clear():
    catalog = MemoryAssessmentCatalog(assessments=[assessment()], questions=[free_text()])
    assert catalog._assessments["a-1"].question_ids == ["q-1"]

    catalog.clear()

    assert catalog._assessments == {}
    assert catalog._questions == {}


class TestAuthoringOnStores:

    @pytest.mark.asyncio
    async def test_concurrent_question_appends(self, stores):
        catalog, store = stores
        authoring = AuthoringService(catalog, store)
        exam = await authoring.create_assessment(EXAMINER_ID, "Geography")

        added = await asyncio.gather(*[
            authoring.add_question(exam.id, EXAMINER_ID, free_text_draft(prompt=f"Question {i}"))
            for i in range(4)
        ])

        stored = await catalog.list_questions(exam.id)
        assert {q.id for q in stored} == {q.id for q in added}
        assert len(authoring.question_locks) == 0

    @pytest.mark.asyncio
    async def test_delete_rechecks_attempts_in_the_write(self, stores):
        catalog, store = stores
        authoring = AuthoringService(catalog, store)
        exam = await authoring.create_assessment(EXAMINER_ID, "Geography")
        first = await authoring.add_question(exam.id, EXAMINER_ID, free_text_draft())
        await store.create_attempt(Attempt.create(exam.id, "p-1"))

        # A stale lock check must not let the delete through
        async def stale_check(assessment_id):
            return None

        authoring._ensure_unlocked = stale_check
        with pytest.raises(AssessmentLockedError):
            await authoring.delete_question(exam.id, first.id, EXAMINER_ID)
        assert [q.id for q in await catalog.list_questions(exam.id)] == [first.id]
