"""
Practice Test Session: orchestration layer for one test attempt.

Owns the pieces a timed attempt needs and tears them down together:
- SectionSequencer (and its SectionTimer) for section flow and submission
- AnswerStore for every answer in the test
- RecordingSession for spoken answers (at most one capture at a time)

Closing the session stops the timer, releases the audio input and discards
any submission result that arrives afterwards.
"""

from __future__ import annotations

from typing import Any, Callable

from loguru import logger

from lmsplayer.config import Settings, get_settings
from lmsplayer.core.errors import InvalidTransition
from lmsplayer.core.events import EventEmitter
from lmsplayer.core.interfaces import AudioInput, LMSApi
from lmsplayer.core.models import Section, Test, TestQuestion, TestResult
from lmsplayer.engine.answers import AnswerStore
from lmsplayer.engine.questions import get_handler, is_media, is_subjective
from lmsplayer.engine.questions.base import QuestionState
from lmsplayer.engine.questions.text import is_essay
from lmsplayer.engine.recording import RecordingSession
from lmsplayer.engine.sequencer import SectionSequencer, SequencerState, Transition
from lmsplayer.engine.session_store import TestSessionState, create_session_state


class PracticeTestSession:
    """One learner's attempt at a practice test."""

    def __init__(
        self,
        test: Test,
        api: LMSApi,
        device: AudioInput | None = None,
        events: EventEmitter | None = None,
        settings: Settings | None = None,
        on_tick: Callable[[int], Any] | None = None,
    ):
        settings = settings or get_settings()
        self.test = test
        self.api = api
        self.events = events or EventEmitter()
        self.default_word_limit = settings.default_word_limit
        self.answers = AnswerStore(capture_sentinel=settings.capture_sentinel)
        self.recording = RecordingSession(
            device,
            self.answers,
            tick_ms=settings.recording_tick_ms,
            max_ticks=settings.recording_max_ticks,
        )
        self.sequencer = SectionSequencer(
            test,
            self.answers,
            self._submit,
            events=self.events,
            tick_seconds=settings.tick_seconds,
            on_tick=on_tick,
        )
        self.record = create_session_state(test.id, settings.session_expiry_hours)
        self._closed = False

    @classmethod
    async def open(cls, api: LMSApi, test_id: str, **kwargs: Any) -> "PracticeTestSession":
        """Fetch the test and build a session for it. Raises NotFound."""
        test = await api.fetch_test(test_id)
        return cls(test, api, **kwargs)

    async def __aenter__(self) -> "PracticeTestSession":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def section(self) -> Section:
        return self.sequencer.section

    @property
    def section_index(self) -> int:
        return self.sequencer.section_index

    @property
    def remaining_seconds(self) -> int:
        return self.sequencer.timer.remaining

    @property
    def is_finished(self) -> bool:
        return self.sequencer.state == SequencerState.FINISHED

    @property
    def result(self) -> TestResult | None:
        return self.sequencer.result

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_subjective_questions(self) -> bool:
        return any(is_subjective(q.type) for q in self.test.questions())

    def question(self, question_id: str) -> TestQuestion:
        question = self.test.find_question(question_id)
        if question is None:
            raise KeyError(f"Question {question_id} is not part of test {self.test.id}")
        return question

    def question_state(self, question_id: str) -> QuestionState:
        question = self.question(question_id)
        state = get_handler(question.type).describe(self.answers, question)
        if is_essay(question.type) and state.word_limit is None:
            state.word_limit = self.default_word_limit
        return state

    def unconfigured_questions(self) -> list[str]:
        """Ids of questions whose type tag has no handler."""
        return [q.id for q in self.test.questions() if not get_handler(q.type).validate(q)]

    # ------------------------------------------------------------------
    # Flow
    # ------------------------------------------------------------------

    def start(self) -> None:
        self._ensure_open()
        self.sequencer.start()

    def resume(self, state: TestSessionState) -> None:
        """Continue a saved attempt at its section, clock and answers."""
        self._ensure_open()
        if state.test_id != self.test.id:
            raise ValueError(f"Saved session is for test {state.test_id}, not {self.test.id}")
        self.record = state
        for key, value in state.answers.items():
            self.answers.set(key, value)
        self.sequencer.start(
            section_index=state.section_index,
            remaining_seconds=state.remaining_seconds,
            elapsed_seconds=state.elapsed_seconds,
        )
        logger.info(f"Resumed session {state.session_id} at section {state.section_index}")

    def answer(self, question_id: str, value: Any) -> None:
        """Apply one answer write through the question's handler."""
        self._ensure_open()
        if self.sequencer.state != SequencerState.IN_SECTION:
            raise InvalidTransition("Answers can only be written while a section is open")
        question = self._open_question(question_id)
        get_handler(question.type).record(self.answers, question, value)

    async def advance(self) -> Transition:
        """Move to the next section, or submit after the last one."""
        return await self.sequencer.advance()

    async def start_recording(self) -> bool:
        self._ensure_open()
        return await self.recording.start()

    async def stop_recording(self, question_id: str) -> bool:
        question = self.question(question_id)
        if not is_media(question.type):
            raise ValueError(f"Question {question_id} does not take an audio answer")
        if not self._in_open_section(question):
            await self.recording.cancel()
            raise InvalidTransition(f"Question {question_id} is not in the open section")
        return await self.recording.stop(question_id)

    def snapshot(self) -> TestSessionState:
        """Current position and answers, ready for SessionStore.save()."""
        self.record.section_index = self.section_index
        self.record.remaining_seconds = self.remaining_seconds
        self.record.elapsed_seconds = self.sequencer.elapsed_seconds
        self.record.answers = self.answers.snapshot()
        return self.record

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.sequencer.close()
        await self.recording.cancel()
        logger.debug(f"Session for test {self.test.id} closed")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidTransition("Session is closed")

    def _in_open_section(self, question: TestQuestion) -> bool:
        return any(q.id == question.id for q in self.section.questions)

    def _open_question(self, question_id: str) -> TestQuestion:
        """The question, provided it belongs to the section that is open now."""
        question = self.question(question_id)
        if not self._in_open_section(question):
            raise InvalidTransition(
                f"Question {question_id} is not in section {self.section_index}; earlier sections are closed"
            )
        return question

    async def _submit(self, test_id: str, answers: dict[str, Any], elapsed_seconds: int) -> TestResult:
        await self.recording.cancel()
        result = await self.api.submit_test_answers(test_id, answers, elapsed_seconds)
        if result.requires_manual_evaluation is None:
            result = result.model_copy(update={"requires_manual_evaluation": self.has_subjective_questions})
        return result
