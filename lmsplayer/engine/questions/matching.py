"""
Matching handler.

Each option of a matching question is a target segment with its own
sub-slot key `<question_id>_match_<slot>`; the learner maps every segment to
a category (the category index, as a string). Writes replace one sub-slot.
"""

from typing import Any

from lmsplayer.core.models import TestQuestion
from lmsplayer.engine.answers import AnswerStore, match_key

from . import QuestionType, register
from .base import QuestionState


@register(QuestionType.MATCHING)
class MatchingHandler:
    """Handler for segment-to-category matching."""

    def validate(self, question: TestQuestion) -> bool:
        return bool(question.options)

    def slots(self, question: TestQuestion) -> int:
        return len(question.options or [])

    def record(self, store: AnswerStore, question: TestQuestion, value: Any) -> None:
        """value is a (slot, category) pair; an empty category clears the slot."""
        try:
            slot, choice = value
        except (TypeError, ValueError):
            raise ValueError(f"Question {question.id}: matching answer must be (slot, category)") from None

        slot_count = self.slots(question)
        if isinstance(slot, bool) or not isinstance(slot, int) or not 0 <= slot < slot_count:
            raise ValueError(f"Question {question.id}: slot {slot!r} outside {slot_count} segments")

        choice = "" if choice is None else str(choice)
        if choice == "":
            store.clear(match_key(question.id, slot))
            return
        if choice not in {str(i) for i in range(slot_count)}:
            raise ValueError(f"Question {question.id}: category {choice!r} does not exist")
        store.set_match(question.id, slot, choice)

    def is_answered(self, store: AnswerStore, question: TestQuestion) -> bool:
        slot_count = self.slots(question)
        return slot_count > 0 and all(
            store.get_match(question.id, slot) is not None for slot in range(slot_count)
        )

    def describe(self, store: AnswerStore, question: TestQuestion) -> QuestionState:
        return QuestionState(
            question_id=question.id,
            type_tag=question.type,
            configured=self.validate(question),
            answered=self.is_answered(store, question),
            value=[store.get_match(question.id, slot) for slot in range(self.slots(question))],
        )
