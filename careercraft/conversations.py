"""
Cross-turn carry-over per conversation id.
Keeps what duplicate detection and the clarification ceiling need from the
previous turn; every other loop counter starts fresh each turn.
"""
import logging
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, Optional

from careercraft.control.duplicates import recent_hashed_actions

logger = logging.getLogger(__name__)


class CarryOver:
    """One conversation's carry-over with a TTL."""

    def __init__(self, record: Dict[str, Any], ttl_seconds: float, now: Optional[datetime] = None):
        self.record = record
        self.updated_at = now or datetime.now(timezone.utc)
        self.ttl_seconds = ttl_seconds

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        age = ((now or datetime.now(timezone.utc)) - self.updated_at).total_seconds()
        return age > self.ttl_seconds


class ConversationRegistry:
    """
    Registry of carry-over state per conversation_id.
    Entries hold recent content-hashed actions and any pending clarification;
    conversations with nothing to carry have no entry, and entries expire
    after the duplicate window.
    """
    _lock = Lock()
    _by_conversation: Dict[str, CarryOver] = {}

    @classmethod
    def _prune(cls, now: datetime) -> int:
        expired = [cid for cid, entry in cls._by_conversation.items() if entry.is_expired(now)]
        for cid in expired:
            del cls._by_conversation[cid]
        return len(expired)

    @classmethod
    def save(
        cls,
        conversation_id: str,
        state: Dict[str, Any],
        window_seconds: float,
        now: Optional[datetime] = None,
    ) -> None:
        """Record the end-of-turn state for a conversation."""
        now = now or datetime.now(timezone.utc)
        pending = state.get("pending_clarification")
        metrics = state.get("loop_metrics") or {}
        record = {
            "completed_actions": recent_hashed_actions(
                state.get("completed_actions") or [], window_seconds, now.timestamp()
            ),
            "pending_clarification": pending,
            "clarification_rounds": (metrics.get("clarification_rounds") or 0) if pending else 0,
        }
        with cls._lock:
            pruned = cls._prune(now)
            if record["completed_actions"] or pending:
                cls._by_conversation[conversation_id] = CarryOver(record, window_seconds, now)
            else:
                cls._by_conversation.pop(conversation_id, None)
        if pruned:
            logger.info(f"Pruned {pruned} expired conversation(s)")
        logger.debug(
            f"Conversation {conversation_id}: carried {len(record['completed_actions'])} actions, "
            f"clarification_rounds={record['clarification_rounds']}"
        )

    @classmethod
    def load(cls, conversation_id: str, window_seconds: float, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Carry-over for the next turn, as keyword arguments for create_initial_state.
        Expired entries and actions that have aged out of the window are dropped.
        """
        now = now or datetime.now(timezone.utc)
        with cls._lock:
            cls._prune(now)
            entry = cls._by_conversation.get(conversation_id)
        if entry is None:
            return {}
        record = entry.record
        return {
            "completed_actions": recent_hashed_actions(record["completed_actions"], window_seconds, now.timestamp()),
            "pending_clarification": record["pending_clarification"],
            "clarification_rounds": record["clarification_rounds"],
        }

    @classmethod
    def get(cls, conversation_id: str) -> Optional[Dict[str, Any]]:
        with cls._lock:
            entry = cls._by_conversation.get(conversation_id)
        return entry.record if entry else None

    @classmethod
    def size(cls) -> int:
        with cls._lock:
            return len(cls._by_conversation)

    @classmethod
    def clear(cls, conversation_id: Optional[str] = None) -> None:
        """Clear carry-over for one conversation or all."""
        with cls._lock:
            if conversation_id:
                cls._by_conversation.pop(conversation_id, None)
            else:
                cls._by_conversation.clear()
