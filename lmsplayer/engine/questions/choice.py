"""
Single-answer handlers.

- MCQ: one option index
- TFNG / YNMNG: one judgment label
- Insert-Sentence: one insertion gap letter

All of them fully replace the stored value on every write.
"""

from typing import Any

from lmsplayer.core.models import TestQuestion
from lmsplayer.engine.answers import AnswerStore

from . import QuestionType, register
from .base import QuestionState, option_index

JUDGMENT_LABELS = {
    QuestionType.TFNG: ("TRUE", "FALSE", "NOT GIVEN"),
    QuestionType.YNMNG: ("YES", "NO", "NOT GIVEN"),
}

INSERTION_GAPS = ("A", "B", "C", "D", "E", "F")


class _ScalarHandler:
    def is_answered(self, store: AnswerStore, question: TestQuestion) -> bool:
        return question.id in store

    def describe(self, store: AnswerStore, question: TestQuestion) -> QuestionState:
        return QuestionState(
            question_id=question.id,
            type_tag=question.type,
            configured=self.validate(question),
            answered=self.is_answered(store, question),
            value=store.get(question.id),
        )


@register(QuestionType.MCQ)
class SingleChoiceHandler(_ScalarHandler):
    """Handler for single-answer multiple choice."""

    def validate(self, question: TestQuestion) -> bool:
        return bool(question.options)

    def record(self, store: AnswerStore, question: TestQuestion, value: Any) -> None:
        store.set(question.id, option_index(question, value))


@register(QuestionType.TFNG, QuestionType.YNMNG)
class JudgmentHandler(_ScalarHandler):
    """Handler for TRUE/FALSE/NOT GIVEN and YES/NO/NOT GIVEN judgments."""

    def labels(self, question: TestQuestion) -> tuple[str, ...]:
        return JUDGMENT_LABELS[QuestionType.parse(question.type)]

    def validate(self, question: TestQuestion) -> bool:
        return True

    def record(self, store: AnswerStore, question: TestQuestion, value: Any) -> None:
        label = str(value).strip().upper()
        if label not in self.labels(question):
            raise ValueError(f"Question {question.id}: '{value}' is not one of {self.labels(question)}")
        store.set(question.id, label)


@register(QuestionType.INSERT_SENTENCE)
class InsertionHandler(_ScalarHandler):
    """Handler for choosing the gap a target sentence belongs in."""

    def validate(self, question: TestQuestion) -> bool:
        return bool(question.target_sentence)

    def record(self, store: AnswerStore, question: TestQuestion, value: Any) -> None:
        gap = str(value).strip().upper()
        if gap not in INSERTION_GAPS:
            raise ValueError(f"Question {question.id}: gap must be one of {INSERTION_GAPS}")
        store.set(question.id, gap)
