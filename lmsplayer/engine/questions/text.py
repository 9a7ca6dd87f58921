"""
Free-text handlers for gap fills and essays.

Every edit replaces the stored string. Essays also report a word count
against their word limit; the limit is advisory and never truncates input.
"""

from typing import Any

from lmsplayer.core.models import TestQuestion
from lmsplayer.engine.answers import AnswerStore

from . import QuestionType, register
from .base import QuestionState

BLANK_MARKER = "___________________"

ESSAY_TYPES = frozenset({
    QuestionType.ESSAY,
    QuestionType.INTEGRATED_WRITING,
    QuestionType.INDEPENDENT_ESSAY,
})


def word_count(text: str) -> int:
    """Whitespace-delimited word count."""
    return len(text.split())


def is_essay(tag: str) -> bool:
    return QuestionType.parse(tag) in ESSAY_TYPES


def split_blank(text: str) -> tuple[str, str]:
    """Prompt text before and after the blank."""
    before, _, after = text.partition(BLANK_MARKER)
    return before, after


@register(
    QuestionType.FILL_BLANKS,
    QuestionType.NOTE_COMPLETION,
    QuestionType.SENTENCE_COMPLETION,
    QuestionType.ESSAY,
    QuestionType.INTEGRATED_WRITING,
    QuestionType.INDEPENDENT_ESSAY,
)
class FreeTextHandler:
    """Handler for typed answers. An essay without its own word limit reports None."""

    def validate(self, question: TestQuestion) -> bool:
        return True

    def record(self, store: AnswerStore, question: TestQuestion, value: Any) -> None:
        if not isinstance(value, str):
            raise ValueError(f"Question {question.id}: text answer must be a string")
        store.set(question.id, value)

    def is_answered(self, store: AnswerStore, question: TestQuestion) -> bool:
        value = store.get(question.id)
        return isinstance(value, str) and bool(value.strip())

    def describe(self, store: AnswerStore, question: TestQuestion) -> QuestionState:
        value = store.get(question.id)
        text = value if isinstance(value, str) else ""
        return QuestionState(
            question_id=question.id,
            type_tag=question.type,
            configured=True,
            answered=self.is_answered(store, question),
            value=text,
            word_count=word_count(text),
            word_limit=question.word_limit if is_essay(question.type) else None,
        )
