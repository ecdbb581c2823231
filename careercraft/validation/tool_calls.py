"""
Tool-call validation.
Model output is validated by code before anything is executed: malformed calls
are dropped with a warning, never fatal.
"""
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from careercraft.graph.state import ValidatedToolCall

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_DANGEROUS_KEYS = ("__proto__", "constructor", "prototype")


class ValidationError(Exception):
    """Raised when tool arguments fail validation."""

    def __init__(self, message: str, tool_name: str = "", errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.tool_name = tool_name
        self.errors = errors or []


def _field(call: Any, key: str) -> Any:
    if isinstance(call, dict):
        return call.get(key)
    return getattr(call, key, None)


def _parse_args(name: str, args: Any) -> Dict[str, Any]:
    if args is None:
        return {}
    if isinstance(args, dict):
        return sanitize_tool_args(args)
    if isinstance(args, str):
        try:
            parsed = json.loads(args) if args.strip() else {}
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse arguments for {name}, using empty args")
            return {}
        if isinstance(parsed, dict):
            return sanitize_tool_args(parsed)
    logger.warning(f"Arguments for {name} are not an object, using empty args")
    return {}


def validate_tool_calls(raw_calls: Optional[Iterable[Any]]) -> List[ValidatedToolCall]:
    """
    Keep only well-formed tool calls.

    A call survives when it has a non-empty name, a non-empty id and
    type "tool_call". String arguments are decoded as JSON; undecodable
    arguments degrade to {}.

    Args:
        raw_calls: Tool calls as returned by the model (dicts or objects)

    Returns:
        Validated calls in their original order
    """
    validated: List[ValidatedToolCall] = []
    for call in raw_calls or []:
        if not call:
            continue
        name = _field(call, "name")
        call_id = _field(call, "id")
        call_type = _field(call, "type")
        if not name or not call_id or call_type != "tool_call":
            logger.warning(f"Dropping invalid tool call: name={name!r} id={call_id!r} type={call_type!r}")
            continue
        validated.append({
            "name": name,
            "args": _parse_args(name, _field(call, "args")),
            "id": call_id,
            "type": "tool_call",
        })
    return validated


def is_valid_tool_call(call: Any) -> bool:
    return (
        isinstance(call, dict)
        and isinstance(call.get("name"), str)
        and isinstance(call.get("id"), str)
        and call.get("type") == "tool_call"
        and isinstance(call.get("args"), dict)
    )


def validate_tool_args(args: Any, model_cls: Type[ModelT], tool_name: str) -> ModelT:
    """
    Validate tool arguments against a schema.

    Args:
        args: Argument dict or JSON string
        model_cls: Pydantic schema for the tool
        tool_name: Name used in error messages

    Returns:
        Parsed arguments

    Raises:
        ValidationError: If the arguments are not valid JSON or do not match
    """
    if isinstance(args, str):
        try:
            args = json.loads(args)
        except json.JSONDecodeError:
            raise ValidationError(f"Failed to parse JSON arguments for tool {tool_name}", tool_name)
    try:
        return model_cls.model_validate(args)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False)
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'args'}: {err['msg']}" for err in errors
        )
        raise ValidationError(f"Invalid arguments for tool {tool_name}: {details}", tool_name, errors=errors)


def validate_user_id(user_id: Optional[str]) -> str:
    """Return the user id, or raise ValidationError when missing or blank."""
    if not user_id or not str(user_id).strip():
        raise ValidationError("User ID is required but not provided")
    return user_id


def sanitize_tool_args(args: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in args.items() if k not in _DANGEROUS_KEYS}
