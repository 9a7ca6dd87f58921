"""
Base protocol and types for question handlers.
"""

from dataclasses import dataclass
from typing import Any, Protocol

from lmsplayer.core.models import TestQuestion
from lmsplayer.engine.answers import AnswerStore


@dataclass
class QuestionState:
    """What the presentation layer needs to render one question's answer area."""
    question_id: str
    type_tag: str
    configured: bool
    answered: bool
    value: Any = None
    word_count: int | None = None  # free-text questions only
    word_limit: int | None = None


class QuestionHandler(Protocol):
    """Protocol for question type handlers."""

    def validate(self, question: TestQuestion) -> bool:
        """Check if the question has the fields this type needs."""
        ...

    def record(self, store: AnswerStore, question: TestQuestion, value: Any) -> None:
        """Apply one answer write. Raises ValueError for values the type cannot hold."""
        ...

    def is_answered(self, store: AnswerStore, question: TestQuestion) -> bool:
        """Whether the learner has answered."""
        ...

    def describe(self, store: AnswerStore, question: TestQuestion) -> QuestionState:
        """Current answer state for rendering."""
        ...


def option_index(question: TestQuestion, value: Any) -> int:
    """Validate an option index against the question's options."""
    options = question.options or []
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Question {question.id}: option index must be an int, got {value!r}")
    if not 0 <= value < len(options):
        raise ValueError(f"Question {question.id}: option {value} outside {len(options)} options")
    return value
