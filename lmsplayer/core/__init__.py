"""
Core Module - shared domain models, errors, events and collaborator interfaces.

Everything in lmsplayer.engine and lmsplayer.integrations imports from here
rather than redefining these types.
"""

from lmsplayer.core.errors import (
    DeviceUnavailable,
    InvalidTransition,
    LMSPlayerError,
    MalformedContent,
    NotFound,
    PersistenceFailure,
    UnsupportedQuestionType,
)
from lmsplayer.core.events import EngineEvent, EventEmitter
from lmsplayer.core.interfaces import AudioInput, AudioStream, LMSApi
from lmsplayer.core.models import (
    Course,
    Enrollment,
    Lesson,
    LessonType,
    Module,
    PrintablePage,
    QuizQuestion,
    Section,
    Test,
    TestQuestion,
    TestResult,
    flatten_lessons,
)

__all__ = [
    # Errors
    "LMSPlayerError",
    "NotFound",
    "PersistenceFailure",
    "DeviceUnavailable",
    "MalformedContent",
    "UnsupportedQuestionType",
    "InvalidTransition",
    # Events
    "EngineEvent",
    "EventEmitter",
    # Interfaces
    "LMSApi",
    "AudioInput",
    "AudioStream",
    # Models
    "Course",
    "Module",
    "Lesson",
    "LessonType",
    "Enrollment",
    "QuizQuestion",
    "Test",
    "Section",
    "TestQuestion",
    "TestResult",
    "PrintablePage",
    "flatten_lessons",
]
