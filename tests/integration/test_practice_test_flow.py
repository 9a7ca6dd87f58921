"""
Integration tests for a full practice-test attempt.

These run the real session, sequencer, timer, handlers and recording
together against the in-memory LMS fake and audio device.
"""

import asyncio

import pytest
import pytest_asyncio

from lmsplayer.core.errors import InvalidTransition, NotFound, UnsupportedQuestionType
from lmsplayer.core.events import EngineEvent
from lmsplayer.core.models import Test, TestResult
from lmsplayer.engine.session import PracticeTestSession
from lmsplayer.engine.session_store import SessionStore
from lmsplayer.engine.sequencer import Transition


@pytest_asyncio.fixture
async def session(fake_api, fake_audio, settings):
    session = await PracticeTestSession.open(fake_api, "test-1", device=fake_audio, settings=settings)
    yield session
    await session.close()


class TestPracticeTestFlow:

    @pytest.mark.asyncio
    async def test_complete_attempt(self, session, fake_api, fake_audio):
        finished = []
        session.events.on(EngineEvent.FINISHED, finished.append)
        session.start()

        # Section 1: reading
        session.answer("q1", 1)
        session.answer("q2", "true")
        session.answer("q3", 0)
        session.answer("q3", 2)
        session.answer("q4", (0, "2"))
        session.answer("q5", "silica")
        assert await session.advance() == Transition.ADVANCED

        # Section 2: writing and speaking
        session.answer("q6", "Technology changes how we learn.")
        session.answer("q8", 1)
        await session.start_recording()
        await session.stop_recording("q7")
        with pytest.raises(UnsupportedQuestionType):
            session.answer("q9", "hello")

        assert await session.advance() == Transition.FINISHED

        _, answers, _ = fake_api.submit_calls[0]
        assert answers == {
            "q1": 1,
            "q2": "TRUE",
            "q3": [0, 2],
            "q4_match_0": "2",
            "q5": "silica",
            "q6": "Technology changes how we learn.",
            "q8": [1],
            "q7": "AUDIO_NODE_CAPTURED",
        }
        assert fake_audio.streams[0].stop_count == 1
        assert session.is_finished
        assert finished == [session.result]

    @pytest.mark.asyncio
    async def test_manual_evaluation_derived_from_question_types(self, session):
        session.start()
        await session.advance()
        await session.advance()

        assert session.has_subjective_questions
        assert session.result.requires_manual_evaluation is True

    @pytest.mark.asyncio
    async def test_objective_test_not_manually_evaluated(self, fake_api, objective_test, settings):
        fake_api.test = objective_test
        fake_api.result = TestResult(test_id="test-2", overall_band="8.0")

        async with await PracticeTestSession.open(fake_api, "test-2", settings=settings) as session:
            session.start()
            session.answer("g1", 1)
            await session.advance()

            assert session.result.requires_manual_evaluation is False
            assert session.result.overall_band == "8.0"

    @pytest.mark.asyncio
    async def test_server_flag_wins(self, session, fake_api):
        fake_api.result = TestResult(test_id="test-1", overall_band="6.0", requires_manual_evaluation=False)
        session.start()
        await session.advance()
        await session.advance()

        assert session.result.requires_manual_evaluation is False

    @pytest.mark.asyncio
    async def test_answers_rejected_after_finish(self, session):
        session.start()
        await session.advance()
        await session.advance()

        with pytest.raises(InvalidTransition):
            session.answer("q1", 0)

    @pytest.mark.asyncio
    async def test_unknown_test(self, fake_api, settings):
        with pytest.raises(NotFound):
            await PracticeTestSession.open(fake_api, "missing", settings=settings)

    @pytest.mark.asyncio
    async def test_question_state(self, session):
        session.start()
        await session.advance()
        session.answer("q6", "one two three")

        state = session.question_state("q6")
        assert state.word_count == 3
        assert state.word_limit == 250
        assert session.unconfigured_questions() == ["q9"]

    @pytest.mark.asyncio
    async def test_stop_recording_needs_media_question(self, session):
        session.start()
        with pytest.raises(ValueError):
            await session.stop_recording("q1")

    @pytest.mark.asyncio
    async def test_earlier_section_answers_are_locked(self, session, fake_api):
        session.start()
        session.answer("q1", 0)
        await session.advance()

        with pytest.raises(InvalidTransition):
            session.answer("q1", 2)
        assert session.answers.get("q1") == 0

        await session.advance()
        assert fake_api.submit_calls[0][1]["q1"] == 0

    @pytest.mark.asyncio
    async def test_later_section_not_writable_yet(self, session):
        session.start()

        with pytest.raises(InvalidTransition):
            session.answer("q6", "Too early")
        assert "q6" not in session.answers

    @pytest.mark.asyncio
    async def test_capture_for_closed_section_is_dropped(self, session, fake_audio):
        session.start()
        await session.start_recording()

        with pytest.raises(InvalidTransition):
            await session.stop_recording("q7")

        assert "q7" not in session.answers
        assert not session.recording.is_recording
        assert fake_audio.streams[0].stop_count == 1

    @pytest.mark.asyncio
    async def test_essay_word_limit_defaults_from_settings(self, fake_api, settings):
        test = Test.model_validate({
            "id": "test-3",
            "title": "Writing",
            "sections": [
                {
                    "id": "w1",
                    "title": "Writing",
                    "timeLimit": 1,
                    "questions": [{"id": "e1", "type": "Essay"}],
                },
            ],
        })
        configured = settings.model_copy(update={"default_word_limit": 300})

        async with PracticeTestSession(test, fake_api, settings=configured) as session:
            assert session.question_state("e1").word_limit == 300


class TestTimedFlow:

    @pytest.mark.asyncio
    async def test_timer_runs_attempt_to_submission(self, session, fake_api):
        finished = asyncio.Event()
        sections = []
        session.events.on(EngineEvent.SECTION_ADVANCED, sections.append)
        session.events.on(EngineEvent.FINISHED, lambda _: finished.set())

        session.start()
        session.answer("q1", 2)
        await asyncio.wait_for(finished.wait(), timeout=5)

        assert sections == [1]
        assert len(fake_api.submit_calls) == 1
        assert fake_api.submit_calls[0][1] == {"q1": 2}

    @pytest.mark.asyncio
    async def test_close_during_submission_discards_result(self, session, fake_api):
        fake_api.submit_gate = asyncio.Event()
        session.start()
        await session.advance()

        pending = asyncio.create_task(session.advance())
        await asyncio.sleep(0)
        await session.close()
        fake_api.submit_gate.set()

        assert await pending == Transition.DISCARDED
        assert session.result is None

    @pytest.mark.asyncio
    async def test_close_releases_recording(self, session, fake_audio):
        session.start()
        await session.start_recording()
        await session.close()

        assert fake_audio.streams[0].stop_count == 1
        assert not session.sequencer.timer.running
        with pytest.raises(InvalidTransition):
            session.start()


class TestSaveResume:

    @pytest.mark.asyncio
    async def test_resume_restores_section_and_answers(self, session, fake_api, fake_audio, settings):
        store = SessionStore(settings.session_dir)
        session.start()
        session.answer("q1", 1)
        await session.advance()
        session.answer("q8", 2)
        session.answer("q8", 0)
        store.save(session.snapshot())
        saved_remaining = session.remaining_seconds
        await session.close()

        saved = store.get_latest("test-1")
        async with await PracticeTestSession.open(fake_api, "test-1", device=fake_audio, settings=settings) as resumed:
            resumed.resume(saved)

            assert resumed.section_index == 1
            assert resumed.remaining_seconds <= saved_remaining
            assert resumed.answers.get("q1") == 1
            assert resumed.answers.selection("q8") == [2, 0]
            assert resumed.record.session_id == saved.session_id

    @pytest.mark.asyncio
    async def test_resume_rejects_other_test(self, session, settings, fake_api):
        other = await PracticeTestSession.open(fake_api, "test-1", settings=settings)
        state = other.snapshot()
        state.test_id = "test-2"
        await other.close()

        with pytest.raises(ValueError):
            session.resume(state)
