"""
Audio capture lifecycle for spoken-answer questions.

    Idle --start--> Starting --device acquired--> Recording(elapsed_ticks)
    Recording --stop(qid)--> Idle (+ sentinel for qid)

The input device is held in an AsyncExitStack for exactly as long as the
recording runs, so stop(), cancel() and task cancellation all release it once.
The tick counter only drives the progress indicator; it does not measure the
recorded audio and never stops the capture by itself.
"""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from enum import Enum
from typing import AsyncIterator

from loguru import logger

from lmsplayer.core.errors import DeviceUnavailable
from lmsplayer.core.interfaces import AudioInput, AudioStream
from lmsplayer.engine.answers import AnswerStore


class RecordingState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RECORDING = "recording"


class RecordingSession:
    """
    One capture at a time for a practice-test session.

    Args:
        device: audio input provider; None means no input is available
        answers: the session's answer store
        tick_ms: progress counter interval
        max_ticks: progress counter cap
    """

    def __init__(
        self,
        device: AudioInput | None,
        answers: AnswerStore,
        tick_ms: int = 100,
        max_ticks: int = 100,
    ):
        self.device = device
        self.answers = answers
        self.tick_ms = tick_ms
        self.max_ticks = max_ticks
        self.state = RecordingState.IDLE
        self.elapsed_ticks = 0
        self._stack: AsyncExitStack | None = None
        self._ticker: asyncio.Task | None = None
        self._pending: object | None = None

    async def __aenter__(self) -> "RecordingSession":
        return self

    async def __aexit__(self, *args) -> None:
        await self.cancel()

    @property
    def is_recording(self) -> bool:
        return self.state == RecordingState.RECORDING

    @property
    def progress(self) -> float:
        """Indicator fill in [0, 1]."""
        return self.elapsed_ticks / self.max_ticks

    @asynccontextmanager
    async def _capture(self) -> AsyncIterator[AudioStream]:
        if self.device is None:
            raise DeviceUnavailable("No audio input configured")
        stream = await self.device.acquire()
        try:
            stream.start()
            yield stream
        finally:
            stream.stop()
            logger.debug("Audio input released")

    async def start(self) -> bool:
        """Acquire the input and begin capturing. Returns False if already recording or starting."""
        if self.state != RecordingState.IDLE:
            return False

        self.state = RecordingState.STARTING
        attempt = self._pending = object()
        stack = AsyncExitStack()
        try:
            await stack.enter_async_context(self._capture())
        except DeviceUnavailable as e:
            self._abandon(attempt)
            logger.warning(f"Recording not started: {e}")
            raise
        except BaseException:
            self._abandon(attempt)
            raise

        if self._pending is not attempt:
            # cancel() ran while the device was being acquired
            await stack.aclose()
            return False

        self._pending = None
        self._stack = stack
        self.elapsed_ticks = 0
        self.state = RecordingState.RECORDING
        self._ticker = asyncio.get_running_loop().create_task(self._tick())
        logger.info("Recording started")
        return True

    def _abandon(self, attempt: object) -> None:
        if self._pending is attempt:
            self._pending = None
            self.state = RecordingState.IDLE

    async def _tick(self) -> None:
        while self.elapsed_ticks < self.max_ticks:
            await asyncio.sleep(self.tick_ms / 1000)
            self.elapsed_ticks += 1

    async def _release(self) -> None:
        self._pending = None
        ticker, self._ticker = self._ticker, None
        if ticker is not None and not ticker.done():
            ticker.cancel()
        stack, self._stack = self._stack, None
        self.state = RecordingState.IDLE
        if stack is not None:
            await stack.aclose()

    async def stop(self, question_id: str) -> bool:
        """Release the input and commit the capture for question_id. No-op when idle."""
        if not self.is_recording:
            return False
        await self._release()
        self.answers.mark_captured(question_id)
        logger.info(f"Recording committed for question {question_id}")
        return True

    async def cancel(self) -> None:
        """Release the input without committing anything."""
        if self.is_recording:
            logger.info("Recording cancelled")
        await self._release()
