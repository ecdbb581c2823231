"""
Recovery of tool calls embedded as text.

Some providers occasionally serialize a tool call into the response text
instead of returning it as a structured call. This stage recovers those calls;
it is a normal parsing stage, not error handling, and never raises.
"""
import json
import logging
import re
import uuid
from typing import Any, Dict, List, Optional

from careercraft.graph.messages import content_to_string
from careercraft.graph.state import ValidatedToolCall

logger = logging.getLogger(__name__)

# Each pattern matches up to the args value; the args object itself is
# scanned for balanced braces since payloads may contain "}".
# {"functionCall":{"name":"x","args":{...}}}
_FUNCTION_CALL = re.compile(r'"functionCall"\s*:\s*\{\s*"name"\s*:\s*"([^"]+)"\s*,\s*"args"\s*:\s*')
# {"name":"x","args":{...},"type":"tool_call"}
_TYPED_CALL = re.compile(r'\{\s*"name"\s*:\s*"([^"]+)"\s*,\s*"args"\s*:\s*')
_TYPED_TAIL = re.compile(r'\s*,\s*"type"\s*:\s*"tool_call"\s*\}')
# "tool_call":{"name":"x","args":{...}}
_KEYED_CALL = re.compile(r'"tool_call"\s*:\s*\{\s*"name"\s*:\s*"([^"]+)"\s*,\s*"args"\s*:\s*')

# (pattern, tail required after the args object)
CALL_PATTERNS = ((_FUNCTION_CALL, None), (_TYPED_CALL, _TYPED_TAIL), (_KEYED_CALL, None))


def _balanced_object_end(text: str, start: int) -> Optional[int]:
    """Index just past the object opening at text[start], or None if it never closes."""
    if start >= len(text) or text[start] != "{":
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def _parse_args_fragment(fragment: str) -> Dict[str, Any]:
    """Parse the inside of an args object; bad fragments degrade to {}."""
    fragment = fragment.strip()
    if not fragment:
        return {}
    try:
        parsed = json.loads("{" + fragment + "}")
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    # Loose key:value pairs such as  "next": data_manager
    args: Dict[str, Any] = {}
    for pair in fragment.split(","):
        key, sep, value = pair.partition(":")
        key = key.strip().strip('"').strip()
        if not sep or not key:
            continue
        args[key] = value.strip().strip('"')
    return args


def extract_tool_calls(content: Any) -> Optional[List[ValidatedToolCall]]:
    """
    Scan response content for embedded tool calls.

    Args:
        content: Response content (string, parts list or object)

    Returns:
        Recovered calls with synthetic ids, or None if nothing matched
    """
    try:
        text = content_to_string(content)
        if "functionCall" not in text and "tool_call" not in text:
            return None

        calls: List[ValidatedToolCall] = []
        for pattern, tail in CALL_PATTERNS:
            for match in pattern.finditer(text):
                name = match.group(1)
                end = _balanced_object_end(text, match.end())
                if tail is not None and (end is None or not tail.match(text, end)):
                    continue
                # An args object that never closes still yields the call, with no args
                fragment = text[match.end() + 1:end - 1] if end is not None else ""
                calls.append({
                    "name": name,
                    "args": _parse_args_fragment(fragment),
                    "id": f"extracted_{name}_{uuid.uuid4().hex[:12]}",
                    "type": "tool_call",
                })
        if calls:
            logger.info(f"Recovered {len(calls)} tool call(s) from response text: {[c['name'] for c in calls]}")
            return calls
        return None
    except Exception as e:
        logger.warning(f"Tool call extraction failed: {e}")
        return None
