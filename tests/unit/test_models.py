"""
Unit tests for domain models and settings.
"""

import pytest
from pydantic import ValidationError

from lmsplayer.config import Settings
from lmsplayer.core.models import (
    Enrollment,
    Lesson,
    Module,
    PrintablePage,
    QuizQuestion,
    Section,
    Test,
    TestResult,
    flatten_lessons,
)


class TestModels:

    def test_flatten_lessons_keeps_module_order(self, sample_modules):
        assert [lesson.id for lesson in flatten_lessons(sample_modules)] == ["l1", "l2", "l3", "l4"]

    def test_flatten_skips_empty_modules(self):
        modules = [Module(id="a"), Module(id="b", lessons=[Lesson(id="x")])]
        assert [lesson.id for lesson in flatten_lessons(modules)] == ["x"]

    def test_enrollment_progress_clamped(self):
        assert Enrollment.model_validate({"courseId": "c", "progress": 140}).progress == 100
        assert Enrollment.model_validate({"courseId": "c", "progress": -3}).progress == 0
        assert Enrollment.model_validate({"courseId": "c", "progress": None}).progress == 0

    def test_quiz_question_correct_in_range(self):
        with pytest.raises(ValidationError):
            QuizQuestion(question="?", options=["a"], correct=1)

    def test_section_time_limit_from_api(self):
        section = Section.model_validate({"timeLimit": 1.5, "passageText": "p"})
        assert section.time_limit_seconds == 90
        assert section.passage_text == "p"

    def test_test_requires_a_section(self):
        with pytest.raises(ValidationError):
            Test(id="t", sections=[])

    def test_numeric_ids_coerced(self):
        lesson = Lesson.model_validate({"id": 7, "title": "Seven"})
        assert lesson.id == "7"

    def test_find_question(self, sample_test):
        assert sample_test.find_question("q7").type == "Read-Aloud"
        assert sample_test.find_question("missing") is None

    def test_result_is_frozen(self):
        result = TestResult.model_validate({"testId": "t", "overallBand": "7.5"})
        with pytest.raises(ValidationError):
            result.overall_band = "9"

    def test_page_body_alias(self):
        page = PrintablePage.model_validate({"id": "n1", "title": "Terms", "body": "Text"})
        assert page.content == "Text"


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.quiz_pass_ratio == 0.7
        assert settings.capture_sentinel == "AUDIO_NODE_CAPTURED"
        assert settings.api.retry_attempts == 3

    def test_nested_env_override(self, monkeypatch):
        monkeypatch.setenv("LMSPLAYER_API__BASE_URL", "http://localhost:8000")
        monkeypatch.setenv("LMSPLAYER_TICK_SECONDS", "0.5")

        settings = Settings(_env_file=None)

        assert settings.api.base_url == "http://localhost:8000"
        assert settings.tick_seconds == 0.5
