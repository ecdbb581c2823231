"""
Message helpers: content normalization, history filtering, and conversion
between the wire format ({role, content}) and LangChain messages.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional, Union

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from careercraft.graph.state import create_initial_state

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_MESSAGE = (
    "You are CareerCraft, an AI assistant that helps with resume writing, cover letters, "
    "and job applications. Be helpful, concise, and professional."
)

_TEXT_PART_MARKER = re.compile(r'"type"\s*:\s*"text"')

TextContent = Union[str, List[Dict[str, str]]]


def content_to_string(content: Any) -> str:
    """Best-effort plain-text rendering of any message content."""
    if isinstance(content, str):
        return content
    if content is None:
        return ""
    if isinstance(content, (list, tuple)):
        return " ".join(
            item if isinstance(item, str) else json.dumps(item, default=str)
            for item in content
        )
    if isinstance(content, dict):
        for key in ("text", "content", "message"):
            if isinstance(content.get(key), str):
                return content[key]
        return json.dumps(content, default=str)
    return str(content)


def _text_parts(parts: List[Any]) -> List[Dict[str, str]]:
    kept = []
    for part in parts:
        if isinstance(part, str):
            kept.append({"type": "text", "text": part})
        elif isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text"), str):
            kept.append({"type": "text", "text": part["text"]})
    return kept


def _collapse(parts: List[Dict[str, str]]) -> TextContent:
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0]["text"]
    return parts


def clean_content(content: Any) -> TextContent:
    """
    Normalize model output into content a message can carry.

    - A string that is really a serialized parts array is reparsed; only text
      parts survive.
    - A parts list keeps its text parts: none gives "", one gives its text,
      several stay a list.
    - Any other object is stringified. None gives "".
    """
    if content is None:
        return ""
    if isinstance(content, str):
        stripped = content.strip()
        looks_like_parts = (
            stripped.startswith("[")
            and stripped.endswith("]")
            and (_TEXT_PART_MARKER.search(stripped) or '"functionCall"' in stripped)
        )
        if not looks_like_parts:
            return content
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            return "" if '"functionCall"' in stripped else content
        if not isinstance(parsed, list):
            return content
        return _collapse(_text_parts(parsed))
    if isinstance(content, (list, tuple)):
        return _collapse(_text_parts(list(content)))
    return content_to_string(content)


def text_of(content: Any) -> str:
    """Cleaned content flattened to a single string."""
    cleaned = clean_content(content)
    if isinstance(cleaned, list):
        return "\n".join(part["text"] for part in cleaned)
    return cleaned


def prepare_agent_messages(state_messages: List[BaseMessage], system_message: str) -> List[BaseMessage]:
    """Role prompt followed by the human, ai and tool messages of the history."""
    history = [m for m in state_messages if m.type in ("human", "ai", "tool")]
    return [SystemMessage(content=system_message), *history]


def convert_to_messages(raw_messages: List[Dict[str, Any]]) -> List[BaseMessage]:
    """
    Convert wire messages to LangChain messages, system messages first.
    A default system message is added when none is supplied.
    """
    system: List[BaseMessage] = []
    conversation: List[BaseMessage] = []
    for raw in raw_messages or []:
        role = (raw.get("role") or "").lower()
        content = raw.get("content") or ""
        if role == "system":
            system.append(SystemMessage(content=content))
        elif role in ("user", "human"):
            conversation.append(HumanMessage(content=content))
        elif role in ("assistant", "ai"):
            conversation.append(AIMessage(content=content))
        else:
            logger.warning(f"Ignoring message with unknown role: {role!r}")
    if not system:
        system.append(SystemMessage(content=DEFAULT_SYSTEM_MESSAGE))
    logger.debug(f"Converted {len(system)} system and {len(conversation)} conversation messages")
    return system + conversation


def convert_to_state_input(
    raw_messages: List[Dict[str, Any]],
    user_id: Optional[str] = None,
    **carry_over: Any,
) -> Dict[str, Any]:
    """Initial graph state for a turn; carry_over is passed to create_initial_state."""
    logger.debug(f"Building state input (user_id={'[PRESENT]' if user_id else '[MISSING]'})")
    return create_initial_state(convert_to_messages(raw_messages), user_id, **carry_over)


_ROLE_BY_TYPE = {"human": "user", "ai": "assistant", "system": "system", "tool": "tool"}


def messages_to_dicts(messages: List[BaseMessage]) -> List[Dict[str, str]]:
    return [
        {"role": _ROLE_BY_TYPE.get(m.type, m.type), "content": text_of(m.content)}
        for m in messages
    ]


def make_tool_message(content: str, tool_call_id: str, name: str) -> ToolMessage:
    return ToolMessage(content=content, tool_call_id=tool_call_id, name=name)
