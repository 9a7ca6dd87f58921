"""
Course progress tracking.

Progress is a single percentage per enrollment derived from the furthest
lesson the learner has marked complete in the flattened lesson order. It never
goes down: local state only takes max(local, incoming), and a persisted value
is never lower than the current one.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Awaitable, Callable, Sequence

from loguru import logger

from lmsplayer.core.errors import PersistenceFailure
from lmsplayer.core.events import EngineEvent, EventEmitter
from lmsplayer.core.models import Lesson

PersistProgress = Callable[[str, int], Awaitable[None]]


class ProgressOutcome(str, Enum):
    """Result of a mark_complete call."""

    IGNORED = "ignored"  # another persistence call was in flight
    ADVANCED = "advanced"
    COURSE_COMPLETED = "course_completed"
    FAILED = "failed"


def completion_threshold(index: int, total: int) -> float:
    """Progress percentage at which the lesson at index counts as completed."""
    if total <= 0:
        raise ValueError("Course has no lessons")
    return ((index + 1) / total) * 100


def progress_candidate(index: int, total: int) -> int:
    """Whole-number progress for completing the lesson at index, rounding halves up."""
    return min(100, math.floor(completion_threshold(index, total) + 0.5))


class ProgressTracker:
    """
    Derives and persists course completion.

    Args:
        course_id: enrollment's course
        lessons: flattened lesson order
        persist: async callable (course_id, progress) raising PersistenceFailure
        progress: last known persisted progress
        events: emitter for progress_changed / completed / course_completed
    """

    def __init__(
        self,
        course_id: str,
        lessons: Sequence[Lesson],
        persist: PersistProgress,
        progress: int = 0,
        events: EventEmitter | None = None,
    ):
        self.course_id = course_id
        self.lessons = list(lessons)
        self.persist = persist
        self.progress = max(0, min(100, progress))
        self.events = events or EventEmitter()
        self.last_error: PersistenceFailure | None = None
        self._pending = False

    @property
    def pending(self) -> bool:
        """True while a persistence call is in flight."""
        return self._pending

    def merge(self, incoming: int) -> int:
        """Fold in a progress value from elsewhere; never lowers local progress."""
        merged = max(self.progress, min(100, incoming))
        if merged != self.progress:
            self.progress = merged
            self.events.emit(EngineEvent.PROGRESS_CHANGED, merged)
        return self.progress

    def index_of(self, lesson_id: str) -> int:
        for i, lesson in enumerate(self.lessons):
            if lesson.id == lesson_id:
                return i
        return -1

    def is_index_completed(self, index: int) -> bool:
        if not 0 <= index < len(self.lessons):
            return False
        return self.progress >= completion_threshold(index, len(self.lessons))

    def is_completed(self, lesson_id: str) -> bool:
        return self.is_index_completed(self.index_of(lesson_id))

    async def mark_complete(self, index: int) -> ProgressOutcome:
        """Persist completion of the lesson at index."""
        if self._pending:
            logger.debug(f"mark_complete({index}) ignored: persistence already in flight")
            return ProgressOutcome.IGNORED
        if not 0 <= index < len(self.lessons):
            raise IndexError(f"Lesson index {index} outside {len(self.lessons)} lessons")

        new_progress = max(self.progress, progress_candidate(index, len(self.lessons)))
        self._pending = True
        try:
            await self.persist(self.course_id, new_progress)
        except PersistenceFailure as e:
            self.last_error = e
            logger.error(f"Failed to persist progress for course {self.course_id}: {e}")
            return ProgressOutcome.FAILED
        finally:
            self._pending = False

        self.last_error = None
        changed = new_progress != self.progress
        self.progress = new_progress
        if changed:
            self.events.emit(EngineEvent.PROGRESS_CHANGED, new_progress)

        lesson = self.lessons[index]
        self.events.emit(EngineEvent.COMPLETED, lesson.id)
        if index == len(self.lessons) - 1:
            logger.info(f"Course {self.course_id} completed")
            self.events.emit(EngineEvent.COURSE_COMPLETED, self.course_id)
            return ProgressOutcome.COURSE_COMPLETED
        return ProgressOutcome.ADVANCED
