"""
Test-scoped answer storage.

Keys are question ids, or `<question_id>_match_<slot>` for matching sub-slots.
Values are an int (chosen index), a str (label, text, sentinel) or an ordered
list of unique ints for toggle-selection questions. Writes replace the whole
value except toggle(), which adds or removes a single index.
"""

from __future__ import annotations

from typing import Iterator, Union

AnswerValue = Union[int, str, list[int]]

DEFAULT_CAPTURE_SENTINEL = "AUDIO_NODE_CAPTURED"


def match_key(question_id: str, slot: int) -> str:
    """Answer-key for one matching sub-slot."""
    return f"{question_id}_match_{slot}"


class AnswerStore:
    """Mapping of answer-key to answer value, exclusively owned by one session."""

    def __init__(
        self,
        answers: dict[str, AnswerValue] | None = None,
        capture_sentinel: str = DEFAULT_CAPTURE_SENTINEL,
    ):
        self.capture_sentinel = capture_sentinel
        self._answers: dict[str, AnswerValue] = {}
        for key, value in (answers or {}).items():
            self._answers[key] = list(value) if isinstance(value, list) else value

    def __contains__(self, key: object) -> bool:
        return key in self._answers

    def __len__(self) -> int:
        return len(self._answers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)

    def get(self, key: str, default: AnswerValue | None = None) -> AnswerValue | None:
        value = self._answers.get(key, default)
        return list(value) if isinstance(value, list) else value

    def set(self, key: str, value: AnswerValue) -> None:
        """Replace the value for key."""
        self._answers[key] = list(value) if isinstance(value, list) else value

    def clear(self, key: str) -> None:
        self._answers.pop(key, None)

    # ------------------------------------------------------------------
    # Toggle selections (multi-select, ordering)
    # ------------------------------------------------------------------

    def toggle(self, key: str, index: int) -> list[int]:
        """Add index if absent, remove it if present. Returns the new selection."""
        current = self._answers.get(key)
        selection = list(current) if isinstance(current, list) else []
        if index in selection:
            selection.remove(index)
        else:
            selection.append(index)
        self._answers[key] = selection
        return list(selection)

    def selection(self, key: str) -> list[int]:
        """Selected indices in the order they were chosen."""
        current = self._answers.get(key)
        return list(current) if isinstance(current, list) else []

    def position(self, key: str, index: int) -> int | None:
        """Zero-based rank of index among the selection, or None if unselected."""
        selection = self.selection(key)
        return selection.index(index) if index in selection else None

    # ------------------------------------------------------------------
    # Matching and media
    # ------------------------------------------------------------------

    def set_match(self, question_id: str, slot: int, choice: str) -> None:
        self.set(match_key(question_id, slot), choice)

    def get_match(self, question_id: str, slot: int) -> str | None:
        value = self._answers.get(match_key(question_id, slot))
        return value if isinstance(value, str) else None

    def mark_captured(self, question_id: str) -> None:
        """Record that audio for question_id was captured and committed."""
        self._answers[question_id] = self.capture_sentinel

    def has_capture(self, question_id: str) -> bool:
        return self._answers.get(question_id) == self.capture_sentinel

    def snapshot(self) -> dict[str, AnswerValue]:
        """Deep copy suitable for submission or serialization."""
        return {
            key: list(value) if isinstance(value, list) else value
            for key, value in self._answers.items()
        }
