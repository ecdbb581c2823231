"""Tests for cross-turn carry-over."""
from datetime import datetime, timedelta, timezone

from careercraft.conversations import ConversationRegistry

WINDOW = 300.0


def _hashed_action(timestamp):
    return {
        "id": "a1",
        "agent_type": "data_manager",
        "tool_name": "parse_and_store_resume",
        "args": {"content": "resume"},
        "timestamp": timestamp,
        "result": "stored",
        "content_hash": "abc",
    }


def _pending():
    return {"id": "c1", "question": "Which job?", "options": [], "context": {}, "timestamp": 0}


class TestConversationRegistry:
    def test_empty_turns_leave_no_entries(self):
        for i in range(1000):
            ConversationRegistry.save(f"conv-{i}", {"completed_actions": [], "pending_clarification": None}, WINDOW)
        assert ConversationRegistry.size() == 0

    def test_entry_removed_once_nothing_is_left(self):
        now = datetime.now(timezone.utc)
        ConversationRegistry.save("conv", {"pending_clarification": _pending(), "loop_metrics": {"clarification_rounds": 1}}, WINDOW, now)
        assert ConversationRegistry.get("conv")["clarification_rounds"] == 1

        ConversationRegistry.save("conv", {"pending_clarification": None}, WINDOW, now)
        assert ConversationRegistry.get("conv") is None

    def test_recent_hashed_actions_carry(self):
        now = datetime.now(timezone.utc)
        ConversationRegistry.save("conv", {"completed_actions": [_hashed_action(now.timestamp())]}, WINDOW, now)
        carry = ConversationRegistry.load("conv", WINDOW, now + timedelta(seconds=10))
        assert len(carry["completed_actions"]) == 1
        assert carry["pending_clarification"] is None
        assert carry["clarification_rounds"] == 0

    def test_expired_entries_are_pruned(self):
        then = datetime.now(timezone.utc)
        state = {"pending_clarification": _pending(), "loop_metrics": {"clarification_rounds": 1}}
        ConversationRegistry.save("old", state, WINDOW, then)
        ConversationRegistry.save("fresh", state, WINDOW, then + timedelta(seconds=WINDOW))

        later = then + timedelta(seconds=WINDOW + 1)
        assert ConversationRegistry.load("old", WINDOW, later) == {}
        assert ConversationRegistry.get("old") is None
        assert ConversationRegistry.load("fresh", WINDOW, later)["clarification_rounds"] == 1

    def test_pruned_on_save(self):
        then = datetime.now(timezone.utc)
        state = {"pending_clarification": _pending()}
        ConversationRegistry.save("old", state, WINDOW, then)
        ConversationRegistry.save("new", state, WINDOW, then + timedelta(seconds=WINDOW * 2))
        assert ConversationRegistry.size() == 1

    def test_clear_one(self):
        ConversationRegistry.save("a", {"pending_clarification": _pending()}, WINDOW)
        ConversationRegistry.save("b", {"pending_clarification": _pending()}, WINDOW)
        ConversationRegistry.clear("a")
        assert ConversationRegistry.get("a") is None
        assert ConversationRegistry.get("b") is not None
