"""
Handler for type tags the player does not know.

The question is reported as unconfigured; writes raise
UnsupportedQuestionType and leave the store untouched. Other questions in the
section keep working.
"""

from typing import Any

from lmsplayer.core.errors import UnsupportedQuestionType
from lmsplayer.core.models import TestQuestion
from lmsplayer.engine.answers import AnswerStore

from . import QuestionType, register
from .base import QuestionState


@register(QuestionType.UNCONFIGURED)
class UnconfiguredHandler:

    def validate(self, question: TestQuestion) -> bool:
        return False

    def record(self, store: AnswerStore, question: TestQuestion, value: Any) -> None:
        raise UnsupportedQuestionType(question.id, question.type)

    def is_answered(self, store: AnswerStore, question: TestQuestion) -> bool:
        return False

    def describe(self, store: AnswerStore, question: TestQuestion) -> QuestionState:
        return QuestionState(
            question_id=question.id,
            type_tag=question.type,
            configured=False,
            answered=False,
        )
