"""
Lesson quiz engine.

A Quiz lesson carries its questions as a JSON array of
{"id", "question", "options", "correct"} objects. The engine walks them once:

    Answering(i) --select_option--> Answering(i, selected)
    Answering(i, selected) --submit--> Submitted(i, selected, correct)
    Submitted(i) --next--> Answering(i+1) | Finished(score, total, passed)

Content that does not parse yields the terminal Invalid state; the engine
never enters Answering in that case.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Sequence, Union

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from lmsplayer.core.errors import InvalidTransition, MalformedContent
from lmsplayer.core.models import QuizQuestion

DEFAULT_PASS_RATIO = 0.7

_QUESTIONS = TypeAdapter(list[QuizQuestion])


@dataclass(frozen=True)
class Answering:
    index: int
    selected: int | None = None


@dataclass(frozen=True)
class Submitted:
    index: int
    selected: int
    correct: bool


@dataclass(frozen=True)
class Finished:
    score: int
    total: int
    passed: bool


@dataclass(frozen=True)
class Invalid:
    """No renderable questions."""


QuizState = Union[Answering, Submitted, Finished, Invalid]


def parse_quiz(content: str) -> list[QuizQuestion]:
    """Parse quiz content. Raises MalformedContent for anything but a valid question array."""
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedContent(f"Quiz content is not JSON: {e}") from e
    if not isinstance(data, list):
        raise MalformedContent("Quiz content must be a JSON array of questions")
    try:
        return _QUESTIONS.validate_python(data)
    except ValidationError as e:
        raise MalformedContent(f"Invalid quiz question: {e.error_count()} error(s)") from e


def has_passed(score: int, total: int, pass_ratio: float = DEFAULT_PASS_RATIO) -> bool:
    """score/total >= pass_ratio; a tie passes."""
    return total > 0 and score / total >= pass_ratio


class QuizEngine:
    """Single-pass scored quiz over a fixed question sequence."""

    def __init__(
        self,
        questions: Sequence[QuizQuestion],
        on_complete: Callable[[Finished], None] | None = None,
        pass_ratio: float = DEFAULT_PASS_RATIO,
    ):
        self.questions = list(questions)
        self.on_complete = on_complete
        self.pass_ratio = pass_ratio
        self.score = 0
        self.state: QuizState = Answering(0) if self.questions else Invalid()

    @classmethod
    def from_content(
        cls,
        content: str,
        on_complete: Callable[[Finished], None] | None = None,
        pass_ratio: float = DEFAULT_PASS_RATIO,
    ) -> "QuizEngine":
        """Build an engine from lesson content; malformed content gives an Invalid engine."""
        try:
            questions = parse_quiz(content)
        except MalformedContent as e:
            logger.warning(f"Quiz cannot be rendered: {e}")
            questions = []
        return cls(questions, on_complete=on_complete, pass_ratio=pass_ratio)

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def is_invalid(self) -> bool:
        return isinstance(self.state, Invalid)

    @property
    def is_finished(self) -> bool:
        return isinstance(self.state, Finished)

    @property
    def current_question(self) -> QuizQuestion | None:
        if isinstance(self.state, (Answering, Submitted)):
            return self.questions[self.state.index]
        return None

    def select_option(self, option: int) -> None:
        """Record a tentative choice for the current question."""
        state = self.state
        if not isinstance(state, Answering):
            raise InvalidTransition(f"Cannot select an option while {type(state).__name__}")
        question = self.questions[state.index]
        if not 0 <= option < len(question.options):
            raise ValueError(f"Option {option} outside {len(question.options)} options")
        self.state = Answering(state.index, option)

    def submit(self) -> bool:
        """Lock in the selected option. Returns whether it was correct."""
        state = self.state
        if not isinstance(state, Answering):
            raise InvalidTransition(f"Cannot submit while {type(state).__name__}")
        if state.selected is None:
            raise InvalidTransition("Cannot submit without a selected option")

        correct = state.selected == self.questions[state.index].correct
        if correct:
            self.score += 1
        self.state = Submitted(state.index, state.selected, correct)
        return correct

    def next(self) -> QuizState:
        """Move to the next question, or finish after the last one."""
        state = self.state
        if not isinstance(state, Submitted):
            raise InvalidTransition(f"Cannot advance while {type(state).__name__}")

        if state.index < self.total - 1:
            self.state = Answering(state.index + 1)
            return self.state

        finished = Finished(
            score=self.score,
            total=self.total,
            passed=has_passed(self.score, self.total, self.pass_ratio),
        )
        self.state = finished
        logger.info(f"Quiz finished: {finished.score}/{finished.total} passed={finished.passed}")
        if self.on_complete is not None:
            self.on_complete(finished)
        return finished
