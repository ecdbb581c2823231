"""LangGraph state schema definition."""
import typing
from typing import Annotated, Any, Dict, List, Optional, TypedDict

from langchain_core.messages import BaseMessage
from langgraph.graph import END

SUPERVISOR = "supervisor"

# Specialized agents the supervisor may route to
AGENT_MEMBERS = (
    "data_manager",
    "resume_generator",
    "cover_letter_generator",
    "user_profile",
    "job_posting_manager",
)

NODE_NAMES = frozenset({SUPERVISOR, *AGENT_MEMBERS})


class CompletedAction(TypedDict, total=False):
    """One executed tool call. Immutable once recorded."""
    id: str
    agent_type: str
    tool_name: str
    args: Dict[str, Any]
    result: str
    timestamp: float
    content_hash: Optional[str]


class LoopMetrics(TypedDict, total=False):
    agent_switches: int
    tool_calls_per_agent: Dict[str, int]
    clarification_rounds: int
    last_agent_type: Optional[str]


class PendingClarification(TypedDict, total=False):
    id: str
    question: str
    options: List[Dict[str, Any]]
    context: Dict[str, Any]
    timestamp: float


class ValidatedToolCall(TypedDict):
    name: str
    args: Dict[str, Any]
    id: str
    type: str


def append_messages(left: List[BaseMessage], right: Any) -> List[BaseMessage]:
    """Messages are only ever appended."""
    if right is None:
        return list(left or [])
    if not isinstance(right, (list, tuple)):
        right = [right]
    return list(left or []) + list(right)


def replace_value(left: Any, right: Any) -> Any:
    return right


def replace_if_set(left: Any, right: Any) -> Any:
    return left if right is None else right


def keep_first(left: Optional[str], right: Optional[str]) -> Optional[str]:
    """user_id is read-only once a turn has started."""
    return left if left else right


def append_actions(left: List[CompletedAction], right: Any) -> List[CompletedAction]:
    return list(left or []) + list(right or [])


def new_loop_metrics(clarification_rounds: int = 0) -> LoopMetrics:
    return {
        "agent_switches": 0,
        "tool_calls_per_agent": {},
        "clarification_rounds": clarification_rounds,
        "last_agent_type": None,
    }


def merge_loop_metrics(left: Optional[LoopMetrics], right: Optional[LoopMetrics]) -> LoopMetrics:
    """
    Per-agent tool-call counts are summed key-wise; scalar counters take the
    incoming value when present, else the prior value.
    """
    left = left or {}
    right = right or {}
    counts = dict(left.get("tool_calls_per_agent") or {})
    for agent, count in (right.get("tool_calls_per_agent") or {}).items():
        counts[agent] = counts.get(agent, 0) + count

    def pick(key: str, default: Any) -> Any:
        if right.get(key) is not None:
            return right[key]
        if left.get(key) is not None:
            return left[key]
        return default

    return {
        "agent_switches": pick("agent_switches", 0),
        "tool_calls_per_agent": counts,
        "clarification_rounds": pick("clarification_rounds", 0),
        "last_agent_type": pick("last_agent_type", None),
    }


class AgentState(TypedDict):
    """
    State object passed through LangGraph nodes.

    Fields:
        messages: Conversation history (human, ai, tool, system), append-only
        next: Node to run next, or END
        user_id: Owner of the conversation, passed to tools and never to the model
        completed_actions: Tool calls executed so far, for duplicate detection
        pending_clarification: Outstanding clarification request, if any
        loop_metrics: Counters checked by the loop governor
    """
    messages: Annotated[List[BaseMessage], append_messages]
    next: Annotated[str, replace_if_set]
    user_id: Annotated[Optional[str], keep_first]
    completed_actions: Annotated[List[CompletedAction], append_actions]
    pending_clarification: Annotated[Optional[PendingClarification], replace_value]
    loop_metrics: Annotated[LoopMetrics, merge_loop_metrics]


def _reducers() -> Dict[str, Any]:
    hints = typing.get_type_hints(AgentState, include_extras=True)
    reducers = {}
    for key, hint in hints.items():
        metadata = getattr(hint, "__metadata__", ())
        reducers[key] = metadata[0] if metadata else replace_value
    return reducers


STATE_REDUCERS = _reducers()


def merge_state(prev: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge a node's partial update into the running state using the same
    per-field reducers the compiled graph applies. Pure: neither input is mutated.
    """
    merged = dict(prev)
    for key, value in patch.items():
        reducer = STATE_REDUCERS.get(key, replace_value)
        merged[key] = reducer(merged.get(key), value)
    return merged


def create_initial_state(
    messages: Optional[List[BaseMessage]] = None,
    user_id: Optional[str] = None,
    completed_actions: Optional[List[CompletedAction]] = None,
    pending_clarification: Optional[PendingClarification] = None,
    clarification_rounds: int = 0,
) -> Dict[str, Any]:
    """Fresh state for one turn; every turn starts at the supervisor."""
    return {
        "messages": list(messages or []),
        "next": SUPERVISOR,
        "user_id": user_id or "",
        "completed_actions": list(completed_actions or []),
        "pending_clarification": pending_clarification,
        "loop_metrics": new_loop_metrics(clarification_rounds),
    }


def is_known_next(value: Optional[str]) -> bool:
    return value == END or value in NODE_NAMES
