"""
Audio-answer handler.

Read-Aloud, Audio-Record, Repeat-Sentence and Describe-Image answers are the
capture sentinel. Only RecordingSession.stop() writes it; direct writes are
rejected so a question can never look captured without a committed recording.
"""

from typing import Any

from lmsplayer.core.models import TestQuestion
from lmsplayer.engine.answers import AnswerStore

from . import QuestionType, register
from .base import QuestionState


@register(
    QuestionType.READ_ALOUD,
    QuestionType.AUDIO_RECORD,
    QuestionType.REPEAT_SENTENCE,
    QuestionType.DESCRIBE_IMAGE,
)
class MediaHandler:
    """Handler for spoken responses."""

    def validate(self, question: TestQuestion) -> bool:
        return True

    def record(self, store: AnswerStore, question: TestQuestion, value: Any) -> None:
        raise ValueError(f"Question {question.id}: audio answers are committed by stopping a recording")

    def is_answered(self, store: AnswerStore, question: TestQuestion) -> bool:
        return store.has_capture(question.id)

    def describe(self, store: AnswerStore, question: TestQuestion) -> QuestionState:
        return QuestionState(
            question_id=question.id,
            type_tag=question.type,
            configured=True,
            answered=self.is_answered(store, question),
        )
