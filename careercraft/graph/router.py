"""
Agent graph: supervisor hub with five specialized agents.
START -> supervisor -> (agent -> supervisor)* -> END
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage
from langgraph.errors import GraphRecursionError
from langgraph.graph import END, START, StateGraph

from careercraft.config import Settings, get_settings
from careercraft.control.loop_limits import loop_metrics_summary
from careercraft.conversations import ConversationRegistry
from careercraft.graph.agent_node import AgentRole, ModelFactory, make_agent_node
from careercraft.graph.messages import convert_to_state_input, messages_to_dicts, text_of
from careercraft.graph.state import AGENT_MEMBERS, SUPERVISOR, AgentState, merge_state
from careercraft.graph.supervisor import make_supervisor_node
from careercraft.graph.workers import build_roles

logger = logging.getLogger(__name__)

RECURSION_MESSAGE = (
    "I wasn't able to finish this request within the allowed number of steps. "
    "Please try breaking it into smaller, more specific requests."
)


def route_after_supervisor(state: AgentState) -> str:
    """Next node after the supervisor: a known agent, else END."""
    destination = state.get("next")
    if destination in AGENT_MEMBERS:
        return destination
    return END


def build_graph(
    settings: Optional[Settings] = None,
    model_factory: Optional[ModelFactory] = None,
    roles: Optional[Dict[str, AgentRole]] = None,
):
    """
    Build and compile the agent graph.

    Args:
        settings: Injected settings for every node
        model_factory: (kind, settings) -> chat model, for tests
        roles: Role configurations keyed by agent type

    Returns:
        Compiled graph
    """
    roles = roles or build_roles()
    missing = [name for name in AGENT_MEMBERS if name not in roles]
    if missing:
        raise ValueError(f"Missing agent roles: {missing}")

    workflow = StateGraph(AgentState)
    workflow.add_node(SUPERVISOR, make_supervisor_node(settings, model_factory))
    for name in AGENT_MEMBERS:
        workflow.add_node(name, make_agent_node(roles[name], settings, model_factory))
        # Agents never route anywhere but back to the hub
        workflow.add_edge(name, SUPERVISOR)

    workflow.add_edge(START, SUPERVISOR)
    workflow.add_conditional_edges(
        SUPERVISOR,
        route_after_supervisor,
        {**{name: name for name in AGENT_MEMBERS}, END: END},
    )
    return workflow.compile()


_graph = None


def get_graph():
    """Get or create the compiled graph."""
    global _graph
    if _graph is None:
        logger.info("Building graph from scratch...")
        _graph = build_graph()
        logger.info("Graph built successfully")
    return _graph


def reset_graph():
    """Reset the cached graph (for testing/debugging)."""
    global _graph
    _graph = None
    logger.info("Graph cache reset")


def get_graph_info() -> Dict[str, Any]:
    return {
        "nodes": [SUPERVISOR, *AGENT_MEMBERS],
        "entry_point": SUPERVISOR,
        "agents": list(AGENT_MEMBERS),
        "terminal": END,
    }


@dataclass
class TurnResult:
    messages: List[BaseMessage]
    final_message: str
    state: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_state(cls, state: Dict[str, Any]) -> "TurnResult":
        messages = list(state.get("messages") or [])
        final = ""
        for message in reversed(messages):
            if isinstance(message, AIMessage):
                final = text_of(message.content)
                break
        return cls(messages=messages, final_message=final, state=state)

    def to_dict(self) -> Dict[str, Any]:
        return {"messages": messages_to_dicts(self.messages), "finalMessage": self.final_message}


async def run_turn(
    turn_input: Dict[str, Any],
    conversation_id: Optional[str] = None,
    settings: Optional[Settings] = None,
    graph=None,
) -> TurnResult:
    """
    Run one user turn through the graph.

    Args:
        turn_input: {"messages": [{role, content}], "userId": optional}
        conversation_id: Key for cross-turn carry-over; None disables it
        settings: Settings (recursion limit, duplicate window)
        graph: Compiled graph (defaults to the cached graph)

    Returns:
        TurnResult with the full message list and the final assistant text
    """
    settings = settings or get_settings()
    carry_over = ConversationRegistry.load(conversation_id, settings.duplicate_window) if conversation_id else {}
    state = convert_to_state_input(
        turn_input.get("messages") or [],
        turn_input.get("userId") or turn_input.get("user_id"),
        **carry_over,
    )
    graph = graph or get_graph()
    recursion_limit = settings.graph_recursion_limit()

    # Stream full states so the work done before a recursion error is kept
    final_state = state
    try:
        async for values in graph.astream(
            state, config={"recursion_limit": recursion_limit}, stream_mode="values"
        ):
            final_state = values
    except GraphRecursionError:
        logger.error(f"Graph recursion limit ({recursion_limit}) reached")
        final_state = merge_state(final_state, {
            "messages": [AIMessage(content=RECURSION_MESSAGE, name=SUPERVISOR)],
            "next": END,
        })

    logger.info(f"Turn finished: {loop_metrics_summary(final_state.get('loop_metrics'))}")
    if conversation_id:
        ConversationRegistry.save(conversation_id, final_state, settings.duplicate_window)
    return TurnResult.from_state(final_state)
