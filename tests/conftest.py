"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import asyncio
import json
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from lmsplayer.config import Settings
from lmsplayer.core.errors import DeviceUnavailable, NotFound, PersistenceFailure
from lmsplayer.core.models import Course, Enrollment, Lesson, LessonType, Module, Test, TestResult


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (engine + fakes, no network)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(autouse=True)
def setup_logging():
    """Route loguru to stderr at DEBUG for each test."""
    from loguru import logger

    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG",
        format="<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    )

    yield

    logger.remove()


# =============================================================================
# Fakes
# =============================================================================

class FakeLMSApi:
    """
    In-memory LMSApi.

    persist_gate / submit_gate hold the write in flight until set();
    fail_persist / fail_submit make the next writes raise PersistenceFailure.
    """

    def __init__(
        self,
        course: Course | None = None,
        modules: list[Module] | None = None,
        enrollment: Enrollment | None = None,
        test: Test | None = None,
        result: TestResult | None = None,
    ):
        self.course = course
        self.modules = modules or []
        self.enrollment = enrollment
        self.test = test
        self.result = result or TestResult(test_id=test.id if test else "", overall_band="7.0")
        self.persist_calls: list[tuple[str, int]] = []
        self.submit_calls: list[tuple[str, dict, int]] = []
        self.persist_gate: asyncio.Event | None = None
        self.submit_gate: asyncio.Event | None = None
        self.fail_persist = False
        self.fail_submit = 0

    async def fetch_course(self, course_id):
        if self.course is None or self.course.id != course_id:
            raise NotFound("Course", course_id)
        return self.course

    async def fetch_modules(self, course_id):
        return self.modules

    async def fetch_enrollment(self, course_id):
        return self.enrollment

    async def persist_progress(self, course_id, progress):
        self.persist_calls.append((course_id, progress))
        if self.persist_gate is not None:
            await self.persist_gate.wait()
        if self.fail_persist:
            raise PersistenceFailure("platform offline")

    async def fetch_test(self, test_id):
        if self.test is None or self.test.id != test_id:
            raise NotFound("Test", test_id)
        return self.test

    async def submit_test_answers(self, test_id, answers, elapsed_seconds):
        self.submit_calls.append((test_id, answers, elapsed_seconds))
        if self.submit_gate is not None:
            await self.submit_gate.wait()
        if self.fail_submit:
            self.fail_submit -= 1
            raise PersistenceFailure("platform offline")
        return self.result


class FakeStream:
    def __init__(self, fail_start: bool = False):
        self.fail_start = fail_start
        self.start_count = 0
        self.stop_count = 0

    def start(self):
        self.start_count += 1
        if self.fail_start:
            raise DeviceUnavailable("input stream could not start")

    def stop(self):
        self.stop_count += 1


class FakeAudioInput:
    """Audio input that hands out FakeStreams, or refuses when unavailable."""

    def __init__(self, available: bool = True):
        self.available = available
        self.streams: list[FakeStream] = []
        self.fail_start = False
        # Set to an asyncio.Event to hold acquire() open
        self.acquire_gate: asyncio.Event | None = None

    async def acquire(self):
        if self.acquire_gate is not None:
            await self.acquire_gate.wait()
        if not self.available:
            raise DeviceUnavailable("microphone permission denied")
        stream = FakeStream(fail_start=self.fail_start)
        self.streams.append(stream)
        return stream


# =============================================================================
# Sample data
# =============================================================================

@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings(tmp_path):
    """Settings with instant timer ticks and a temporary session directory."""
    return Settings(
        _env_file=None,
        tick_seconds=0,
        recording_tick_ms=0,
        session_dir=tmp_path / "sessions",
    )


def make_quiz_content(correct_indices: list[int], options: int = 4) -> str:
    """Quiz lesson content with one question per correct index."""
    return json.dumps([
        {
            "id": f"q{i}",
            "question": f"Question {i}?",
            "options": [f"Option {j}" for j in range(options)],
            "correct": correct,
        }
        for i, correct in enumerate(correct_indices)
    ])


@pytest.fixture
def sample_course():
    return Course(id="course-1", title="Academic English", description="IELTS preparation")


@pytest.fixture
def sample_modules():
    """Two modules, four lessons in global order l1..l4."""
    return [
        Module(
            id="m1",
            title="Foundations",
            lessons=[
                Lesson(id="l1", title="Welcome", type=LessonType.VIDEO, content="https://cdn.example/welcome.mp4"),
                Lesson(id="l2", title="Reading skills", type=LessonType.TEXT, content="Skim first, then scan."),
            ],
        ),
        Module(
            id="m2",
            title="Practice",
            lessons=[
                Lesson(id="l3", title="Check-in quiz", type=LessonType.QUIZ, content=make_quiz_content([1, 0, 2])),
                Lesson(id="l4", title="Wrap-up", type=LessonType.TEXT, content="Well done."),
            ],
        ),
    ]


@pytest.fixture
def sample_test():
    """Two sections with 1 and 2 minute limits covering the main answer families."""
    return Test.model_validate({
        "id": "test-1",
        "title": "IELTS Academic Mock",
        "sections": [
            {
                "id": "s1",
                "title": "Reading",
                "timeLimit": 1,
                "passageText": "The history of glass...",
                "questions": [
                    {"id": "q1", "type": "MCQ", "text": "Main idea?", "options": ["A", "B", "C"]},
                    {"id": "q2", "type": "TFNG", "text": "Glass is a liquid."},
                    {"id": "q3", "type": "MCQ-Multiple", "text": "Pick two.", "options": ["A", "B", "C", "D"]},
                    {"id": "q4", "type": "Matching", "text": "Match.", "options": ["Para 1", "Para 2", "Para 3"]},
                    {"id": "q5", "type": "Fill-Blanks", "text": "Glass is made from ___________________ sand."},
                ],
            },
            {
                "id": "s2",
                "title": "Writing and Speaking",
                "timeLimit": 2,
                "questions": [
                    {"id": "q6", "type": "Essay", "text": "Discuss.", "wordLimit": 250},
                    {"id": "q7", "type": "Read-Aloud", "text": "Read this sentence."},
                    {"id": "q8", "type": "Ordering", "text": "Order.", "options": ["x", "y", "z"]},
                    {"id": "q9", "type": "Speaking-Interview", "text": "Not supported yet."},
                ],
            },
        ],
    })


@pytest.fixture
def objective_test():
    """Single short section with no subjective questions."""
    return Test.model_validate({
        "id": "test-2",
        "title": "Grammar check",
        "sections": [
            {
                "id": "s1",
                "title": "Grammar",
                "timeLimit": 1,
                "questions": [
                    {"id": "g1", "type": "MCQ", "options": ["is", "are"]},
                    {"id": "g2", "type": "YNMNG"},
                ],
            },
        ],
    })


@pytest.fixture
def fake_api(sample_course, sample_modules, sample_test):
    return FakeLMSApi(
        course=sample_course,
        modules=sample_modules,
        enrollment=Enrollment(course_id="course-1", progress=0),
        test=sample_test,
        result=TestResult(test_id="test-1", overall_band="6.5"),
    )


@pytest.fixture
def fake_audio():
    return FakeAudioInput()


@pytest.fixture
def quiz_content():
    """Factory for quiz lesson content."""
    return make_quiz_content
