"""
Engine events surfaced to the presentation layer.

Listeners are plain callables invoked synchronously, in subscription order,
with the event payload.
"""

from __future__ import annotations

from collections import defaultdict
from enum import Enum
from typing import Any, Callable

from loguru import logger


class EngineEvent(str, Enum):
    """Events emitted by the course and test engines."""

    COMPLETED = "completed"  # payload: lesson id
    COURSE_COMPLETED = "course_completed"  # payload: course id
    PROGRESS_CHANGED = "progress_changed"  # payload: int 0..100
    SECTION_ADVANCED = "section_advanced"  # payload: new section index
    FINISHED = "finished"  # payload: TestResult


Listener = Callable[[Any], None]


class EventEmitter:
    """Minimal synchronous pub/sub keyed by EngineEvent."""

    def __init__(self):
        self._listeners: dict[EngineEvent, list[Listener]] = defaultdict(list)

    def on(self, event: EngineEvent, listener: Listener) -> Callable[[], None]:
        """Subscribe a listener. Returns a callable that unsubscribes it."""
        self._listeners[event].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return unsubscribe

    def emit(self, event: EngineEvent, payload: Any = None) -> None:
        logger.debug(f"event {event.value}: {payload!r}")
        for listener in list(self._listeners[event]):
            listener(payload)
