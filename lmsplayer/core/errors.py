"""
Error taxonomy for the assessment engine and its collaborators.

Every failure preserves the last-known-good state of the engine that raised it:
- NotFound: course/test/page missing; blocking, not retryable without navigation
- PersistenceFailure: progress or result write failed; retry the same operation
- DeviceUnavailable: audio input denied or missing; retry start()
- MalformedContent: unparsable quiz content; rendered as an empty state
- UnsupportedQuestionType: unknown type tag; isolated to that question
- InvalidTransition: a state machine operation called in the wrong state
"""

from __future__ import annotations


class LMSPlayerError(Exception):
    """Base class for all lms-player errors."""


class NotFound(LMSPlayerError):
    """Raised when a course, test or page does not exist."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} '{identifier}' not found")


class PersistenceFailure(LMSPlayerError):
    """Raised when a progress or result write did not reach the platform."""


class DeviceUnavailable(LMSPlayerError):
    """Raised when the audio input cannot be acquired."""


class MalformedContent(LMSPlayerError):
    """Raised when quiz content cannot be parsed into questions."""


class UnsupportedQuestionType(LMSPlayerError):
    """Raised when answering a question whose type tag has no handler."""

    def __init__(self, question_id: str, type_tag: str):
        self.question_id = question_id
        self.type_tag = type_tag
        super().__init__(f"Question {question_id}: type '{type_tag}' is not configured")


class InvalidTransition(LMSPlayerError):
    """Raised when a state machine operation is not legal in the current state."""
