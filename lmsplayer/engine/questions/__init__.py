"""
Question type handlers for practice-test sessions.

The set of question types is closed: every platform tag parses to a
QuestionType, and tags the player does not know parse to UNCONFIGURED.
Each answer family has one handler module with:
- validate(): does the question carry the fields this family needs
- record(): apply a write to the AnswerStore
- is_answered(): has the learner provided an answer
- describe(): QuestionState snapshot for the presentation layer
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import QuestionHandler


class QuestionType(str, Enum):
    """Platform question type tags."""
    MCQ = "MCQ"
    MCQ_MULTIPLE = "MCQ-Multiple"
    FILL_BLANKS = "Fill-Blanks"
    NOTE_COMPLETION = "Note-Completion"
    SENTENCE_COMPLETION = "Sentence-Completion"
    MATCHING = "Matching"
    ORDERING = "Ordering"
    TFNG = "TFNG"
    YNMNG = "YNMNG"
    INSERT_SENTENCE = "Insert-Sentence"
    READ_ALOUD = "Read-Aloud"
    AUDIO_RECORD = "Audio-Record"
    REPEAT_SENTENCE = "Repeat-Sentence"
    ESSAY = "Essay"
    INTEGRATED_WRITING = "Integrated-Writing"
    INDEPENDENT_ESSAY = "Independent-Essay"
    DESCRIBE_IMAGE = "Describe-Image"
    UNCONFIGURED = "unconfigured"

    @classmethod
    def parse(cls, tag: "str | QuestionType") -> "QuestionType":
        """Map a platform tag to its type; unknown tags become UNCONFIGURED."""
        if isinstance(tag, QuestionType):
            return tag
        try:
            return cls(tag)
        except ValueError:
            return cls.UNCONFIGURED


# Written or spoken responses that need an external evaluator
SUBJECTIVE_TYPES = frozenset({
    QuestionType.ESSAY,
    QuestionType.INTEGRATED_WRITING,
    QuestionType.INDEPENDENT_ESSAY,
    QuestionType.READ_ALOUD,
    QuestionType.AUDIO_RECORD,
    QuestionType.REPEAT_SENTENCE,
    QuestionType.DESCRIBE_IMAGE,
})

MEDIA_TYPES = frozenset({
    QuestionType.READ_ALOUD,
    QuestionType.AUDIO_RECORD,
    QuestionType.REPEAT_SENTENCE,
    QuestionType.DESCRIBE_IMAGE,
})


def is_subjective(tag: "str | QuestionType") -> bool:
    return QuestionType.parse(tag) in SUBJECTIVE_TYPES


def is_media(tag: "str | QuestionType") -> bool:
    return QuestionType.parse(tag) in MEDIA_TYPES


# Handler registry - populated by @register decorator
HANDLERS: dict[QuestionType, "QuestionHandler"] = {}


def register(*question_types: QuestionType):
    """Decorator registering one handler instance for one or more types."""
    def decorator(cls):
        handler = cls()
        for question_type in question_types:
            HANDLERS[question_type] = handler
        return cls
    return decorator


def get_handler(tag: "str | QuestionType") -> "QuestionHandler":
    """Handler for a tag. Unknown tags get the unconfigured handler."""
    return HANDLERS[QuestionType.parse(tag)]


# Import handlers to trigger registration
from . import choice
from . import selection
from . import text
from . import matching
from . import media
from . import unconfigured

__all__ = [
    "QuestionType",
    "SUBJECTIVE_TYPES",
    "MEDIA_TYPES",
    "HANDLERS",
    "get_handler",
    "is_media",
    "is_subjective",
    "register",
]
