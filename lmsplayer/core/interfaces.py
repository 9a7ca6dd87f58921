"""
Protocols for the collaborators the engines consume.

The engines never talk HTTP or hardware directly: they take an LMSApi and an
AudioInput, which the LMS client and the host's capture layer implement.
"""

from __future__ import annotations

from typing import Any, Protocol

from .models import Course, Enrollment, Module, Test, TestResult


class LMSApi(Protocol):
    """Persistence/API collaborator."""

    async def fetch_course(self, course_id: str) -> Course:
        """Return the course. Raises NotFound."""
        ...

    async def fetch_modules(self, course_id: str) -> list[Module]:
        """Return the course's modules in order."""
        ...

    async def fetch_enrollment(self, course_id: str) -> Enrollment | None:
        """Return the learner's enrollment, or None if not enrolled."""
        ...

    async def persist_progress(self, course_id: str, progress: int) -> None:
        """Persist progress in [0, 100]. Raises PersistenceFailure."""
        ...

    async def fetch_test(self, test_id: str) -> Test:
        """Return the test. Raises NotFound."""
        ...

    async def submit_test_answers(
        self,
        test_id: str,
        answers: dict[str, Any],
        elapsed_seconds: int,
    ) -> TestResult:
        """Submit a finished attempt. Raises PersistenceFailure."""
        ...


class AudioStream(Protocol):
    """An acquired capture stream."""

    def start(self) -> None: ...

    def stop(self) -> None: ...


class AudioInput(Protocol):
    """Capture device provider."""

    async def acquire(self) -> AudioStream:
        """Acquire the input. Raises DeviceUnavailable when denied or missing."""
        ...
