"""
Error types for the agent graph and the node-boundary error handler.
No exception may escape a node: every failure becomes an assistant message.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from langchain_core.messages import AIMessage
from langgraph.graph import END

from careercraft.graph.state import SUPERVISOR
from careercraft.validation.tool_calls import ValidationError

logger = logging.getLogger(__name__)


class AgentError(Exception):
    """Raised by an agent node; kind="validation" ends the turn."""

    def __init__(
        self,
        message: str,
        agent_type: str = "",
        kind: str = "agent",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.agent_type = agent_type
        self.kind = kind
        self.context = context or {}


class LLMError(Exception):
    """Raised when no model is configured or the model client fails to build."""

    def __init__(self, message: str, model_config: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.model_config = model_config or {}


# Known tool-calling defects reported by some providers
_SCHEMA_DEFECT_MARKERS = ("MALFORMED_FUNCTION_CALL", "Unknown field for Schema", "must be specified")


def classify_error(error: BaseException) -> str:
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return "timeout_error"
    if isinstance(error, AgentError):
        return "validation_error" if error.kind == "validation" else "agent_error"
    if isinstance(error, ValidationError):
        return "validation_error"
    if isinstance(error, LLMError):
        return "llm_error"
    if any(marker in str(error) for marker in _SCHEMA_DEFECT_MARKERS):
        return "schema_error"
    return "unknown"


def handle_agent_error(error: BaseException, agent_type: str) -> Dict[str, Any]:
    """
    Convert an exception caught at a node boundary into a state patch.

    Agents hand control back to the supervisor; the supervisor, timeouts and
    validation failures end the turn.

    Returns:
        Partial state with one assistant message and next
    """
    error_type = classify_error(error)
    logger.error(
        f"Error in {agent_type} agent ({error_type}): {error}",
        exc_info=(type(error), error, error.__traceback__),
    )

    terminal = agent_type == SUPERVISOR
    if error_type == "timeout_error":
        message = "That request took too long to complete."
        terminal = True
    elif error_type == "validation_error":
        message = f"I encountered a validation error: {error}"
        terminal = terminal or isinstance(error, AgentError)
    elif error_type == "schema_error":
        message = "I'm having trouble with my tools right now."
    elif error_type == "llm_error":
        message = "I'm having trouble connecting to the AI service."
    elif error_type == "agent_error":
        message = f"I encountered an error: {error}"
    else:
        message = "I encountered an unexpected error while processing your request."

    if not message.endswith((".", "!", "?")):
        message += "."
    return {
        "messages": [AIMessage(content=f"{message} Please try again.", name=agent_type)],
        "next": END if terminal else SUPERVISOR,
    }
