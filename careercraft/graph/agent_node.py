"""
Agent node factory.

One generic node parameterized by an AgentRole (prompt, per-user tools,
optional result processor). Every specialized agent is built from it.
"""
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.tools import BaseTool
from langgraph.graph import END
from pydantic import BaseModel

from careercraft.config import Settings, get_settings
from careercraft.control.duplicates import (
    content_hash_for,
    make_completed_action,
    should_skip_tool_call,
    skip_message,
)
from careercraft.control.loop_limits import check_loop_limits, loop_metrics_summary, update_loop_metrics
from careercraft.graph.errors import AgentError, LLMError, handle_agent_error
from careercraft.graph.messages import (
    clean_content,
    make_tool_message,
    prepare_agent_messages,
    text_of,
)
from careercraft.graph.state import SUPERVISOR, AgentState, CompletedAction, ValidatedToolCall
from careercraft.llm.client import AGENT_MODEL, get_chat_model
from careercraft.validation.extractor import extract_tool_calls
from careercraft.validation.tool_calls import (
    ValidationError,
    validate_tool_args,
    validate_tool_calls,
    validate_user_id,
)

logger = logging.getLogger(__name__)

ModelFactory = Callable[[str, Settings], Optional[BaseChatModel]]
ToolCallProcessor = Callable[[List[ValidatedToolCall], str, str, "ToolCallRunner"], Awaitable[str]]

EMPTY_REPLY_MESSAGE = (
    "I processed your request but couldn't generate a proper response. "
    "Let me hand this back to the supervisor."
)

EXECUTED = "executed"
SKIPPED = "skipped"
FAILED = "failed"
NOT_FOUND = "not_found"


@dataclass
class AgentRole:
    """
    Configuration for one specialized agent.

    Fields:
        agent_type: Node name, also used in completed actions and metrics
        system_message: Role instructions prepended to the history
        get_tools: Builds the role's tools for a user id
        process_tool_calls: Optional processor producing one summary message
        requires_user_id: Refuse to run without a user id
    """
    agent_type: str
    system_message: str
    get_tools: Callable[[str], List[BaseTool]]
    process_tool_calls: Optional[ToolCallProcessor] = None
    requires_user_id: bool = True


@dataclass
class ToolOutcome:
    call: ValidatedToolCall
    status: str
    content: str
    action: Optional[CompletedAction] = None


class ToolCallRunner:
    """
    Executes validated tool calls one at a time with duplicate detection.

    Actions recorded by this runner count as prior actions for later calls, so
    a call repeated within the same response is skipped too.
    """

    def __init__(
        self,
        agent_type: str,
        tools: List[BaseTool],
        completed_actions: List[CompletedAction],
        settings: Settings,
    ):
        self.agent_type = agent_type
        self.settings = settings
        self._tools = {tool.name: tool for tool in tools}
        self._prior = list(completed_actions or [])
        self.new_actions: List[CompletedAction] = []

    @property
    def completed_actions(self) -> List[CompletedAction]:
        return self._prior + self.new_actions

    def get_tool(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    async def run(self, call: ValidatedToolCall) -> ToolOutcome:
        name = call["name"]
        tool = self._tools.get(name)
        if tool is None:
            logger.warning(f"Tool {name} not found for {self.agent_type}; available: {sorted(self._tools)}")
            return ToolOutcome(call, NOT_FOUND, f"Error: Tool {name} not found")

        limits = self.settings.loop_limits
        check = should_skip_tool_call(
            call,
            self.agent_type,
            self.completed_actions,
            self.settings.content_hashed_tools,
            window_seconds=self.settings.duplicate_window,
            max_checks=limits.max_duplicate_checks,
        )
        if check.skip:
            return ToolOutcome(call, SKIPPED, skip_message(name, check, self.settings.skip_preview_chars))

        try:
            schema = tool.args_schema
            if isinstance(schema, type) and issubclass(schema, BaseModel):
                validate_tool_args(call["args"], schema, name)
            logger.info(f"Executing tool {name} for {self.agent_type}")
            result = await asyncio.wait_for(tool.ainvoke(call["args"]), timeout=self.settings.tool_timeout)
        except asyncio.TimeoutError:
            logger.error(f"Tool {name} timed out after {self.settings.tool_timeout}s")
            return ToolOutcome(
                call, FAILED, f"Error executing {name}: timed out after {self.settings.tool_timeout:g}s"
            )
        except Exception as e:
            logger.error(f"Error executing tool {name} for {self.agent_type}: {e}")
            return ToolOutcome(call, FAILED, f"Error executing {name}: {e}")

        result_text = result if isinstance(result, str) else json.dumps(result, default=str)
        action = make_completed_action(
            self.agent_type,
            call,
            result_text,
            content_hash_for(call, self.settings.content_hashed_tools),
            result_chars=self.settings.result_preview_chars,
        )
        self.new_actions.append(action)
        logger.info(f"Tool {name} executed successfully ({len(result_text)} chars)")
        return ToolOutcome(call, EXECUTED, result_text, action)

    async def run_all(self, calls: List[ValidatedToolCall]) -> List[ToolOutcome]:
        outcomes = []
        for call in calls:
            outcomes.append(await self.run(call))
        return outcomes


def _response_tool_calls(response: Any) -> List[ValidatedToolCall]:
    """Structured calls if any, else calls recovered from the response text."""
    raw_calls = getattr(response, "tool_calls", None) or []
    if raw_calls:
        return validate_tool_calls(raw_calls)
    extracted = extract_tool_calls(getattr(response, "content", None))
    return validate_tool_calls(extracted) if extracted else []


def direct_reply(response: Any, agent_type: str) -> List[BaseMessage]:
    content = clean_content(getattr(response, "content", None))
    if not text_of(content).strip():
        logger.warning(f"{agent_type} response had empty content")
        return [AIMessage(content=EMPTY_REPLY_MESSAGE, name=agent_type)]
    return [AIMessage(content=content, name=agent_type)]


async def _process_tool_calls(
    role: AgentRole,
    calls: List[ValidatedToolCall],
    content: Any,
    user_id: str,
    runner: ToolCallRunner,
) -> List[BaseMessage]:
    if role.process_tool_calls:
        try:
            summary = await role.process_tool_calls(calls, user_id, text_of(content), runner)
            return [AIMessage(content=summary, name=role.agent_type)]
        except Exception:
            logger.exception(f"Custom tool processor failed for {role.agent_type}; using default processing")

    outcomes = await runner.run_all(calls)
    messages: List[BaseMessage] = [AIMessage(content=content, tool_calls=list(calls), name=role.agent_type)]
    for outcome in outcomes:
        messages.append(make_tool_message(outcome.content, outcome.call["id"], outcome.call["name"]))
    return messages


async def run_agent(
    role: AgentRole,
    state: AgentState,
    settings: Settings,
    model_factory: ModelFactory,
) -> Dict[str, Any]:
    """
    Run one agent step and return the state patch.

    Raises:
        AgentError: Missing user id on a role that requires one
        LLMError: No chat model configured
    """
    agent_type = role.agent_type
    metrics = state.get("loop_metrics")

    check = check_loop_limits(metrics, agent_type, settings.loop_limits)
    if check.exceeded:
        logger.warning(f"Loop limit exceeded for {agent_type}: {check.reason} ({loop_metrics_summary(metrics)})")
        return {"messages": [AIMessage(content=check.message, name=agent_type)], "next": END}

    user_id = state.get("user_id") or ""
    if role.requires_user_id:
        try:
            validate_user_id(user_id)
        except ValidationError as e:
            raise AgentError(str(e), agent_type, kind="validation", context={"user_id": "[MISSING]"}) from e

    model = model_factory(AGENT_MODEL, settings)
    if model is None:
        raise LLMError("No chat model configured", {"kind": AGENT_MODEL})
    tools = role.get_tools(user_id)
    llm = model.bind_tools(tools) if tools else model

    messages = prepare_agent_messages(state.get("messages") or [], role.system_message)
    logger.info(
        f"{agent_type} invoking LLM: {len(messages)} messages, {len(tools)} tools, "
        f"user_id={'[PRESENT]' if user_id else '[MISSING]'}"
    )
    response = await asyncio.wait_for(llm.ainvoke(messages), timeout=settings.llm_timeout)

    calls = _response_tool_calls(response)
    if not calls:
        return {
            "messages": direct_reply(response, agent_type),
            "next": SUPERVISOR,
            "loop_metrics": update_loop_metrics(metrics, agent_type, 0),
        }

    runner = ToolCallRunner(agent_type, tools, state.get("completed_actions") or [], settings)
    content = clean_content(getattr(response, "content", None))
    new_messages = await _process_tool_calls(role, calls, content, user_id, runner)
    return {
        "messages": new_messages,
        "next": SUPERVISOR,
        "completed_actions": runner.new_actions,
        "loop_metrics": update_loop_metrics(metrics, agent_type, len(calls)),
    }


def make_agent_node(
    role: AgentRole,
    settings: Optional[Settings] = None,
    model_factory: Optional[ModelFactory] = None,
) -> Callable[[AgentState], Awaitable[Dict[str, Any]]]:
    """
    Build the graph node for a role.

    Args:
        role: Agent configuration
        settings: Injected settings (defaults to process settings)
        model_factory: (kind, settings) -> chat model; defaults to get_chat_model

    Returns:
        Async node function; it never raises
    """
    factory = model_factory or get_chat_model

    async def agent_node(state: AgentState) -> Dict[str, Any]:
        try:
            return await run_agent(role, state, settings or get_settings(), factory)
        except Exception as e:
            return handle_agent_error(e, role.agent_type)

    agent_node.__name__ = f"{role.agent_type}_node"
    return agent_node
