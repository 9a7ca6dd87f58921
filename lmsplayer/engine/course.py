"""
Course player: lesson navigation, completion and lesson quizzes.

Lessons from every module are flattened into one global order. That order
drives next/previous navigation and the completion thresholds used by the
ProgressTracker.
"""

from __future__ import annotations

from loguru import logger

from lmsplayer.config import Settings, get_settings
from lmsplayer.core.events import EventEmitter
from lmsplayer.core.interfaces import LMSApi
from lmsplayer.core.models import Course, Lesson, LessonType, Module, flatten_lessons
from lmsplayer.engine.progress import ProgressOutcome, ProgressTracker
from lmsplayer.engine.quiz import Finished, QuizEngine


class CoursePlayer:
    """Navigates a course and records the learner's progress."""

    def __init__(
        self,
        course: Course,
        modules: list[Module],
        api: LMSApi,
        progress: int = 0,
        initial_lesson_id: str | None = None,
        events: EventEmitter | None = None,
        settings: Settings | None = None,
    ):
        self.course = course
        self.modules = modules
        self.api = api
        self.events = events or EventEmitter()
        self.pass_ratio = (settings or get_settings()).quiz_pass_ratio
        self.lessons: list[Lesson] = flatten_lessons(modules)
        self.tracker = ProgressTracker(
            course.id,
            self.lessons,
            api.persist_progress,
            progress=progress,
            events=self.events,
        )
        self.quiz: QuizEngine | None = None
        self.last_quiz_result: Finished | None = None
        self.last_completed_id: str | None = None
        self.active_index = self._initial_index(initial_lesson_id)

    @classmethod
    async def load(
        cls,
        api: LMSApi,
        course_id: str,
        initial_lesson_id: str | None = None,
        **kwargs,
    ) -> "CoursePlayer":
        """Fetch course, modules and enrollment. Raises NotFound for an unknown course."""
        course = await api.fetch_course(course_id)
        modules = await api.fetch_modules(course_id)
        enrollment = await api.fetch_enrollment(course_id)
        progress = enrollment.progress if enrollment else 0
        logger.info(f"Loaded course {course_id}: {len(modules)} modules, progress {progress}%")
        return cls(course, modules, api, progress=progress, initial_lesson_id=initial_lesson_id, **kwargs)

    def _initial_index(self, lesson_id: str | None) -> int:
        if not self.lessons:
            return -1
        if lesson_id is not None:
            index = self.tracker.index_of(lesson_id)
            if index >= 0:
                return index
            logger.warning(f"Lesson {lesson_id} not in course {self.course.id}, starting at the first lesson")
        return 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def progress(self) -> int:
        return self.tracker.progress

    @property
    def active_lesson(self) -> Lesson | None:
        if 0 <= self.active_index < len(self.lessons):
            return self.lessons[self.active_index]
        return None

    @property
    def saving(self) -> bool:
        return self.tracker.pending

    def is_lesson_completed(self, lesson_id: str) -> bool:
        return self.tracker.is_completed(lesson_id)

    @property
    def has_next(self) -> bool:
        return 0 <= self.active_index < len(self.lessons) - 1

    @property
    def has_previous(self) -> bool:
        return self.active_index > 0

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _activate(self, index: int) -> Lesson:
        self.active_index = index
        self.quiz = None
        return self.lessons[index]

    def next(self) -> Lesson | None:
        """Move to the next lesson. Returns None at the end of the course."""
        if not self.has_next:
            return None
        return self._activate(self.active_index + 1)

    def previous(self) -> Lesson | None:
        """Move to the previous lesson. Returns None at the start of the course."""
        if not self.has_previous:
            return None
        return self._activate(self.active_index - 1)

    def go_to(self, lesson_id: str) -> Lesson:
        index = self.tracker.index_of(lesson_id)
        if index < 0:
            raise KeyError(f"Lesson {lesson_id} not in course {self.course.id}")
        return self._activate(index)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def mark_complete(self) -> ProgressOutcome:
        """Persist completion of the active lesson, then advance to the next one."""
        lesson = self.active_lesson
        if lesson is None:
            return ProgressOutcome.IGNORED

        index = self.active_index
        outcome = await self.tracker.mark_complete(index)
        if outcome in (ProgressOutcome.ADVANCED, ProgressOutcome.COURSE_COMPLETED):
            self.last_completed_id = lesson.id
        if outcome == ProgressOutcome.ADVANCED:
            self._activate(index + 1)
        return outcome

    def start_quiz(self) -> QuizEngine:
        """Build the quiz for the active Quiz lesson."""
        lesson = self.active_lesson
        if lesson is None or lesson.type != LessonType.QUIZ:
            raise ValueError("Active lesson is not a quiz")
        self.quiz = QuizEngine.from_content(
            lesson.content,
            on_complete=self._on_quiz_complete,
            pass_ratio=self.pass_ratio,
        )
        return self.quiz

    def _on_quiz_complete(self, finished: Finished) -> None:
        self.last_quiz_result = finished
        lesson = self.active_lesson
        logger.info(
            f"Quiz {lesson.id if lesson else '?'}: {finished.score}/{finished.total}"
            f" ({'passed' if finished.passed else 'not passed'})"
        )
