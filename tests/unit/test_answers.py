"""
Unit tests for the test-scoped AnswerStore.
"""

import pytest

from lmsplayer.engine.answers import AnswerStore, match_key


@pytest.fixture
def store():
    return AnswerStore()


class TestAnswerStore:

    def test_set_replaces_value(self, store):
        store.set("q1", 0)
        store.set("q1", 2)

        assert store.get("q1") == 2
        assert len(store) == 1

    def test_toggle_twice_restores_selection(self, store):
        store.toggle("q3", 1)
        before = store.selection("q3")

        store.toggle("q3", 2)
        store.toggle("q3", 2)

        assert store.selection("q3") == before == [1]

    def test_toggle_from_empty_twice_is_empty(self, store):
        store.toggle("q3", 0)
        store.toggle("q3", 0)

        assert store.selection("q3") == []

    def test_toggle_keeps_choice_order(self, store):
        for index in (2, 0, 1):
            store.toggle("q8", index)

        assert store.selection("q8") == [2, 0, 1]
        assert store.position("q8", 0) == 1
        assert store.position("q8", 3) is None

    def test_removing_shifts_later_positions(self, store):
        for index in (2, 0, 1):
            store.toggle("q8", index)
        store.toggle("q8", 2)

        assert store.selection("q8") == [0, 1]
        assert store.position("q8", 1) == 1

    def test_match_slots_use_sub_keys(self, store):
        store.set_match("q4", 1, "2")

        assert match_key("q4", 1) == "q4_match_1"
        assert store.get("q4_match_1") == "2"
        assert store.get_match("q4", 1) == "2"
        assert store.get_match("q4", 0) is None

    def test_capture_uses_configured_sentinel(self):
        store = AnswerStore(capture_sentinel="CAPTURED")
        store.mark_captured("q7")

        assert store.get("q7") == "CAPTURED"
        assert store.has_capture("q7")
        assert not store.has_capture("q6")

    def test_snapshot_is_a_copy(self, store):
        store.toggle("q3", 1)
        snapshot = store.snapshot()
        snapshot["q3"].append(3)

        assert store.selection("q3") == [1]

    def test_clear_removes_key(self, store):
        store.set("q1", 0)
        store.clear("q1")
        store.clear("missing")

        assert "q1" not in store
