"""
Supervisor node: the single entry and exit point of every turn.
Either answers directly (ending the turn) or names the agent to run next.
"""
import asyncio
import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from langchain_core.messages import AIMessage
from langgraph.graph import END

from careercraft.config import Settings, get_settings
from careercraft.control.loop_limits import check_clarification_limit
from careercraft.graph.agent_node import ModelFactory
from careercraft.graph.errors import LLMError, handle_agent_error
from careercraft.graph.messages import clean_content, prepare_agent_messages, text_of
from careercraft.graph.state import SUPERVISOR, AgentState, ValidatedToolCall
from careercraft.llm.client import SUPERVISOR_MODEL, get_chat_model
from careercraft.tools import get_supervisor_tools
from careercraft.validation.extractor import extract_tool_calls
from careercraft.validation.schemas import RouteToAgent
from careercraft.validation.tool_calls import ValidationError, validate_tool_args, validate_tool_calls

logger = logging.getLogger(__name__)

NEED_MORE_DETAILS_MESSAGE = (
    "I apologize, but I don't have enough information to help with that specific request. "
    "Could you provide more details about what you're looking for?"
)
ROUTING_ERROR_MESSAGE = (
    "I encountered an error with my routing decision. "
    "Could you rephrase your request so I can try again?"
)
ACKNOWLEDGEMENT_MESSAGE = "I understand your request."

SUPERVISOR_SYSTEM_MESSAGE = f"""You are the Supervisor Agent for CareerCraft, an AI system that helps users
with resumes, cover letters and job postings. Route each request to the right specialist by calling
route_to_agent:

- data_manager: storing or parsing resumes, work history, preferences and achievements
- resume_generator: creating or formatting a resume
- cover_letter_generator: writing a cover letter for a job
- user_profile: answering questions about the user's stored profile
- job_posting_manager: storing, finding or analyzing job postings

Call route_to_agent with next="{END}" when the request has been fully handled.
If the request is ambiguous, ask one short clarification question instead of routing.
Agents' results are in the conversation; do not route to the same agent again for work it already did."""


def _routing_call(calls: List[ValidatedToolCall]) -> Optional[ValidatedToolCall]:
    for call in calls:
        if call["name"] == "route_to_agent":
            return call
    return None


def _is_clarification(text: str) -> bool:
    return text == NEED_MORE_DETAILS_MESSAGE or text.rstrip().endswith("?")


def _finish(text_content: Any, state: AgentState, settings: Settings) -> Dict[str, Any]:
    """
    Terminal answer. A question back to the user is recorded as a pending
    clarification, bounded by the clarification ceiling.
    """
    text = text_of(text_content)
    if not _is_clarification(text):
        return {
            "messages": [AIMessage(content=text_content, name=SUPERVISOR)],
            "next": END,
            "pending_clarification": None,
            "loop_metrics": {"clarification_rounds": 0},
        }

    metrics = state.get("loop_metrics")
    check = check_clarification_limit(metrics, settings.loop_limits)
    if check.exceeded:
        logger.warning(f"Clarification ceiling reached: {check.reason}")
        return {
            "messages": [AIMessage(content=check.message, name=SUPERVISOR)],
            "next": END,
            "pending_clarification": None,
            "loop_metrics": {"clarification_rounds": 0},
        }

    rounds = (metrics or {}).get("clarification_rounds") or 0
    return {
        "messages": [AIMessage(content=text_content, name=SUPERVISOR)],
        "next": END,
        "pending_clarification": {
            "id": uuid.uuid4().hex,
            "question": text,
            "options": [],
            "context": {"round": rounds + 1},
            "timestamp": time.time(),
        },
        "loop_metrics": {"clarification_rounds": rounds + 1},
    }


def _route(call: ValidatedToolCall, content: Any, state: AgentState, settings: Settings) -> Dict[str, Any]:
    try:
        destination = validate_tool_args(call["args"], RouteToAgent, "route_to_agent").next
    except ValidationError as e:
        logger.error(f"Invalid routing arguments {call['args']}: {e}")
        return {"messages": [AIMessage(content=ROUTING_ERROR_MESSAGE, name=SUPERVISOR)], "next": END}

    if destination == END:
        logger.info("Supervisor routing decision: end of turn")
        return _finish(content if text_of(content).strip() else ACKNOWLEDGEMENT_MESSAGE, state, settings)

    logger.info(f"Supervisor routing decision: {destination}")
    ack = content if text_of(content).strip() else ACKNOWLEDGEMENT_MESSAGE
    return {
        "messages": [AIMessage(content=ack, name=SUPERVISOR)],
        "next": destination,
        "pending_clarification": None,
        "loop_metrics": {"clarification_rounds": 0},
    }


async def run_supervisor(state: AgentState, settings: Settings, model_factory: ModelFactory) -> Dict[str, Any]:
    """
    One supervisor decision.

    Returns:
        State patch with an acknowledgement and next=<agent>, or a terminal
        message with next=END
    """
    if state.get("next") == END:
        # An agent demanded termination (loop ceiling, validation, timeout)
        logger.info("Agent ended the turn; supervisor not consulted")
        return {"next": END}

    model = model_factory(SUPERVISOR_MODEL, settings)
    if model is None:
        raise LLMError("No chat model configured", {"kind": SUPERVISOR_MODEL})
    llm = model.bind_tools(get_supervisor_tools())

    messages = prepare_agent_messages(state.get("messages") or [], SUPERVISOR_SYSTEM_MESSAGE)
    logger.info(f"Supervisor invoking LLM: {len(messages)} messages")
    response = await asyncio.wait_for(llm.ainvoke(messages), timeout=settings.llm_timeout)

    content = clean_content(getattr(response, "content", None))
    raw_calls = getattr(response, "tool_calls", None) or []
    if raw_calls:
        calls = validate_tool_calls(raw_calls)
    else:
        calls = validate_tool_calls(extract_tool_calls(getattr(response, "content", None)) or [])

    routing_call = _routing_call(calls)
    if routing_call is not None:
        return _route(routing_call, _strip_embedded_calls(content, raw_calls), state, settings)

    if text_of(content).strip():
        return _finish(content, state, settings)

    logger.warning("Supervisor response was empty; asking for more details")
    return _finish(NEED_MORE_DETAILS_MESSAGE, state, settings)


def _strip_embedded_calls(content: Any, raw_calls: List[Any]) -> Any:
    # Text that only carried an embedded call is not worth showing
    if not raw_calls and extract_tool_calls(content):
        return ""
    return content


def make_supervisor_node(
    settings: Optional[Settings] = None,
    model_factory: Optional[ModelFactory] = None,
) -> Callable[[AgentState], Awaitable[Dict[str, Any]]]:
    """Build the supervisor node; it never raises."""
    factory = model_factory or get_chat_model

    async def supervisor_node(state: AgentState) -> Dict[str, Any]:
        try:
            return await run_supervisor(state, settings or get_settings(), factory)
        except Exception as e:
            patch = handle_agent_error(e, SUPERVISOR)
            patch["next"] = END
            return patch

    return supervisor_node
