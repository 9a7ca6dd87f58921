"""
Domain models shared by the engines and the LMS client.

The platform API speaks camelCase JSON; every model accepts either the API
alias or the Python field name.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


# ========================================
# Courses
# ========================================


class LessonType(str, Enum):
    """Kinds of lesson content."""

    VIDEO = "Video"
    TEXT = "Text"
    QUIZ = "Quiz"


class Lesson(_ApiModel):
    """One lesson; content is a URL, prose or serialized quiz data."""

    id: str
    title: str = ""
    type: LessonType = LessonType.TEXT
    content: str = ""


class Module(_ApiModel):
    """Ordered group of lessons within a course."""

    id: str
    title: str = ""
    lessons: list[Lesson] = Field(default_factory=list)


class Course(_ApiModel):
    """Course metadata; lessons arrive separately as modules."""

    id: str
    title: str = ""
    description: str = ""


class Enrollment(_ApiModel):
    """Per learner/course progress record."""

    course_id: str = Field(default="", alias="courseId")
    progress: int = 0

    @field_validator("progress", mode="before")
    @classmethod
    def _clamp_progress(cls, value: object) -> int:
        if value is None:
            return 0
        return max(0, min(100, int(float(value))))


def flatten_lessons(modules: Iterable[Module]) -> list[Lesson]:
    """Global lesson order for a course: module order, then lesson order."""
    return [lesson for module in modules for lesson in module.lessons]


# ========================================
# Lesson quizzes
# ========================================


class QuizQuestion(_ApiModel):
    """Single-answer quiz question embedded in a Quiz lesson."""

    id: str = ""
    question: str
    options: list[str] = Field(min_length=1)
    correct: int

    @model_validator(mode="after")
    def _correct_in_range(self) -> "QuizQuestion":
        if not 0 <= self.correct < len(self.options):
            raise ValueError(f"correct index {self.correct} outside {len(self.options)} options")
        return self


# ========================================
# Practice tests
# ========================================


class TestQuestion(_ApiModel):
    """Question inside a test section; `type` is the raw platform tag."""

    __test__ = False

    id: str
    type: str
    text: str = ""
    options: list[str] | None = None
    image: str | None = None
    word_limit: int | None = Field(default=None, alias="wordLimit")
    target_sentence: str | None = Field(default=None, alias="targetSentence")


class Section(_ApiModel):
    """Timed subdivision of a test with its own questions and context material."""

    id: str = ""
    title: str = ""
    time_limit: float = Field(default=0, ge=0, alias="timeLimit")
    passage_text: str | None = Field(default=None, alias="passageText")
    audio_url: str | None = Field(default=None, alias="audioUrl")
    questions: list[TestQuestion] = Field(default_factory=list)

    @property
    def time_limit_seconds(self) -> int:
        """Configured limit in whole seconds."""
        return int(self.time_limit * 60)


class Test(_ApiModel):
    """Practice test: ordered, independently timed sections."""

    __test__ = False

    id: str
    title: str = ""
    sections: list[Section] = Field(min_length=1)

    def questions(self) -> list[TestQuestion]:
        """All questions in section order."""
        return [q for section in self.sections for q in section.questions]

    def find_question(self, question_id: str) -> TestQuestion | None:
        for question in self.questions():
            if question.id == question_id:
                return question
        return None


class TestResult(_ApiModel):
    """Outcome of one submitted attempt. Never mutated after creation."""

    __test__ = False

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, frozen=True)

    test_id: str = Field(default="", alias="testId")
    overall_band: str | None = Field(default=None, alias="overallBand")
    requires_manual_evaluation: bool | None = Field(default=None, alias="requiresManualEvaluation")


# ========================================
# CMS pages
# ========================================


class PrintablePage(_ApiModel):
    """Printable rendition of a CMS node."""

    id: str = ""
    title: str = ""
    content: str = Field(default="", alias="body")
