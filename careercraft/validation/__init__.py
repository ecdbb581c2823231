"""
Validation of model output.
Tool calls and their arguments are checked by code before anything executes.
"""
from careercraft.validation.tool_calls import (
    ValidationError,
    is_valid_tool_call,
    sanitize_tool_args,
    validate_tool_args,
    validate_tool_calls,
    validate_user_id,
)
from careercraft.validation.schemas import ROUTE_ALLOWLIST, Thresholds

__all__ = [
    "ValidationError",
    "is_valid_tool_call",
    "sanitize_tool_args",
    "validate_tool_args",
    "validate_tool_calls",
    "validate_user_id",
    "ROUTE_ALLOWLIST",
    "Thresholds",
]
