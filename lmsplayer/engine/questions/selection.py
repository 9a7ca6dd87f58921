"""
Toggle-selection handlers.

MCQ-Multiple and Ordering both store the selected option indices in the order
they were chosen. Writing an index toggles its membership. For Ordering the
display position of an option is its rank in that list; it is never stored.
"""

from typing import Any

from lmsplayer.core.models import TestQuestion
from lmsplayer.engine.answers import AnswerStore

from . import QuestionType, register
from .base import QuestionState, option_index


@register(QuestionType.MCQ_MULTIPLE)
class MultiSelectHandler:
    """Handler for multiple-correct-answer choice."""

    def validate(self, question: TestQuestion) -> bool:
        return bool(question.options)

    def record(self, store: AnswerStore, question: TestQuestion, value: Any) -> None:
        store.toggle(question.id, option_index(question, value))

    def is_answered(self, store: AnswerStore, question: TestQuestion) -> bool:
        return bool(store.selection(question.id))

    def describe(self, store: AnswerStore, question: TestQuestion) -> QuestionState:
        return QuestionState(
            question_id=question.id,
            type_tag=question.type,
            configured=self.validate(question),
            answered=self.is_answered(store, question),
            value=sorted(store.selection(question.id)),
        )


@register(QuestionType.ORDERING)
class OrderingHandler(MultiSelectHandler):
    """Handler for arranging segments into sequence."""

    def positions(self, store: AnswerStore, question: TestQuestion) -> list[int | None]:
        """1-based display position per option, None for options not yet placed."""
        selection = store.selection(question.id)
        return [
            selection.index(i) + 1 if i in selection else None
            for i in range(len(question.options or []))
        ]

    def is_answered(self, store: AnswerStore, question: TestQuestion) -> bool:
        # Every segment must be placed
        options = question.options or []
        return bool(options) and len(store.selection(question.id)) == len(options)

    def describe(self, store: AnswerStore, question: TestQuestion) -> QuestionState:
        return QuestionState(
            question_id=question.id,
            type_tag=question.type,
            configured=self.validate(question),
            answered=self.is_answered(store, question),
            value=self.positions(store, question),
        )
