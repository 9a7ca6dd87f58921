"""
Section sequencer for timed practice tests.

    Idle --start--> InSection(0) --expire|advance--> InSection(1) ...
    InSection(last) --expire|advance--> Submitting --> Finished(result)

Every section gets a fresh countdown of its own limit. Answers live in one
test-scoped AnswerStore and survive section changes. The full answer map is
submitted exactly once, whichever of expiry or advance() got there first.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Awaitable, Callable

from loguru import logger

from lmsplayer.core.errors import PersistenceFailure
from lmsplayer.core.events import EngineEvent, EventEmitter
from lmsplayer.core.models import Test, TestResult
from lmsplayer.engine.answers import AnswerStore
from lmsplayer.engine.timer import SectionTimer

SubmitAnswers = Callable[[str, dict[str, Any], int], Awaitable[TestResult]]


class SequencerState(str, Enum):
    IDLE = "idle"
    IN_SECTION = "in_section"
    SUBMITTING = "submitting"
    FINISHED = "finished"


class Transition(str, Enum):
    """Result of an advance() call."""

    IGNORED = "ignored"
    ADVANCED = "advanced"
    FINISHED = "finished"
    FAILED = "failed"
    DISCARDED = "discarded"  # sequencer closed while the submission was in flight


class SectionSequencer:
    """Drives a test through its sections and submits the answers."""

    def __init__(
        self,
        test: Test,
        answers: AnswerStore,
        submit: SubmitAnswers,
        events: EventEmitter | None = None,
        tick_seconds: float = 1.0,
        on_tick: Callable[[int], Any] | None = None,
    ):
        self.test = test
        self.answers = answers
        self.submit = submit
        self.events = events or EventEmitter()
        self.timer = SectionTimer(on_tick=on_tick, on_expire=self._on_expire, tick_seconds=tick_seconds)
        self.state = SequencerState.IDLE
        self.section_index = 0
        self.result: TestResult | None = None
        self.last_error: PersistenceFailure | None = None
        self._closed = False
        self._started_at: float | None = None
        self._elapsed_offset = 0

    @property
    def section(self):
        return self.test.sections[self.section_index]

    @property
    def is_last_section(self) -> bool:
        return self.section_index == len(self.test.sections) - 1

    @property
    def elapsed_seconds(self) -> int:
        if self._started_at is None:
            return self._elapsed_offset
        return self._elapsed_offset + int(time.monotonic() - self._started_at)

    def start(
        self,
        section_index: int = 0,
        remaining_seconds: int | None = None,
        elapsed_seconds: int = 0,
    ) -> None:
        """Enter a section; a resumed session passes its saved position and clock."""
        if self.state != SequencerState.IDLE:
            raise RuntimeError("Sequencer already started")
        if not 0 <= section_index < len(self.test.sections):
            raise IndexError(f"Section {section_index} outside {len(self.test.sections)} sections")
        self._started_at = time.monotonic()
        self._elapsed_offset = elapsed_seconds
        self._enter(section_index, remaining_seconds)

    def _enter(self, index: int, remaining_seconds: int | None = None) -> None:
        self.section_index = index
        self.state = SequencerState.IN_SECTION
        section = self.section
        duration = section.time_limit_seconds if remaining_seconds is None else remaining_seconds
        logger.info(f"Test {self.test.id}: section {index} '{section.title}' ({duration}s)")
        self.timer.start(duration)

    async def _on_expire(self) -> None:
        logger.info(f"Test {self.test.id}: section {self.section_index} time expired")
        outcome = await self.advance()
        if outcome == Transition.FAILED:
            logger.warning(f"Test {self.test.id}: automatic submission failed, waiting for retry")

    async def advance(self) -> Transition:
        """Leave the current section: next section, or submit after the last one."""
        if self.state != SequencerState.IN_SECTION or self._closed:
            return Transition.IGNORED

        if not self.is_last_section:
            self._enter(self.section_index + 1)
            self.events.emit(EngineEvent.SECTION_ADVANCED, self.section_index)
            return Transition.ADVANCED

        return await self._submit()

    async def _submit(self) -> Transition:
        self.timer.cancel()
        self.state = SequencerState.SUBMITTING
        try:
            result = await self.submit(self.test.id, self.answers.snapshot(), self.elapsed_seconds)
        except PersistenceFailure as e:
            self.last_error = e
            self.state = SequencerState.IN_SECTION
            logger.error(f"Test {self.test.id}: submission failed: {e}")
            return Transition.FAILED
        except BaseException:
            self.state = SequencerState.IN_SECTION
            raise

        if self._closed:
            logger.debug(f"Test {self.test.id}: session closed, discarding result")
            self.state = SequencerState.FINISHED
            return Transition.DISCARDED

        self.last_error = None
        self.result = result
        self.state = SequencerState.FINISHED
        self.events.emit(EngineEvent.FINISHED, result)
        return Transition.FINISHED

    def close(self) -> None:
        """Stop the timer and drop any result that arrives afterwards."""
        self._closed = True
        self.timer.cancel()
