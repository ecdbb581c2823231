"""
Duplicate-action detection for tool calls.
Enables: "Don't re-store the same resume because the model repeated itself"
- Content-bearing tools: SHA-256 of the payload, duplicate only inside the recency window
- Other tools: deep argument equality, regardless of recency
"""
import hashlib
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from careercraft.graph.state import CompletedAction, ValidatedToolCall

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateCheck:
    skip: bool
    reason: str = ""
    existing_action: Optional[CompletedAction] = None


def content_hash(content: str) -> str:
    """Stable fingerprint of a free-text payload."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def content_hash_for(call: ValidatedToolCall, content_hashed_tools: Mapping[str, str]) -> Optional[str]:
    """Hash the payload argument of a content-bearing tool, or None for other tools."""
    arg_name = content_hashed_tools.get(call["name"])
    if not arg_name:
        return None
    payload = call["args"].get(arg_name)
    if not isinstance(payload, str):
        return None
    return content_hash(payload)


def find_duplicate(
    agent_type: str,
    tool_name: str,
    args: Dict[str, Any],
    new_hash: Optional[str],
    completed_actions: List[CompletedAction],
    max_checks: int = 100,
) -> Optional[CompletedAction]:
    """
    Find the most recent completed action equivalent to a candidate call.

    Only the newest max_checks actions are scanned.

    Returns:
        The matching prior action, or None
    """
    for completed in reversed(completed_actions[-max_checks:] if max_checks > 0 else []):
        if completed.get("agent_type") != agent_type or completed.get("tool_name") != tool_name:
            continue
        prior_hash = completed.get("content_hash")
        if new_hash or prior_hash:
            # Hashed and unhashed calls never match each other
            if new_hash and prior_hash and new_hash == prior_hash:
                return completed
            continue
        if completed.get("args") == args:
            return completed
    return None


def should_skip_tool_call(
    call: ValidatedToolCall,
    agent_type: str,
    completed_actions: List[CompletedAction],
    content_hashed_tools: Mapping[str, str],
    window_seconds: float = 300.0,
    max_checks: int = 100,
    now: Optional[float] = None,
) -> DuplicateCheck:
    """
    Decide whether a tool call repeats an already completed action.

    Args:
        call: Validated tool call
        agent_type: Agent about to execute the call
        completed_actions: Actions executed so far, oldest first
        content_hashed_tools: tool name -> payload argument name
        window_seconds: Recency window for content-bearing tools
        max_checks: How many recent actions to compare against
        now: Clock override (epoch seconds)

    Returns:
        DuplicateCheck; skip=True carries a reason and the prior action
    """
    if not completed_actions:
        return DuplicateCheck(skip=False)

    now = time.time() if now is None else now
    new_hash = content_hash_for(call, content_hashed_tools)
    duplicate = find_duplicate(agent_type, call["name"], call["args"], new_hash, completed_actions, max_checks)
    if duplicate is None:
        return DuplicateCheck(skip=False)

    age = max(0.0, now - float(duplicate.get("timestamp") or 0.0))
    is_recent = age < window_seconds

    if new_hash:
        if not is_recent:
            logger.info(f"Allowing repeated {call['name']} content for {agent_type}: previous run {age:.0f}s ago")
            return DuplicateCheck(skip=False)
        logger.warning(f"Skipping duplicate content for {call['name']} ({agent_type}), hash {new_hash[:12]}")
        label = call["name"].replace("_", " ")
        return DuplicateCheck(
            skip=True,
            reason=f"This exact {label} content was already processed recently ({round(age)}s ago)",
            existing_action=duplicate,
        )

    logger.warning(f"Skipping duplicate {call['name']} call for {agent_type}")
    if is_recent:
        reason = f"This {call['name']} was already executed recently ({round(age)}s ago)"
    else:
        reason = f"This {call['name']} was already executed earlier in this conversation"
    return DuplicateCheck(skip=True, reason=reason, existing_action=duplicate)


def skip_message(tool_name: str, check: DuplicateCheck, preview_chars: int = 200) -> str:
    """Tool output substituted for a skipped call."""
    previous = (check.existing_action or {}).get("result", "")
    preview = previous[:preview_chars]
    suffix = "..." if len(previous) > preview_chars else ""
    return f"Skipped {tool_name}: {check.reason}\n  Previous result: {preview}{suffix}"


def make_completed_action(
    agent_type: str,
    call: ValidatedToolCall,
    result: str,
    new_hash: Optional[str] = None,
    result_chars: int = 500,
    now: Optional[float] = None,
) -> CompletedAction:
    action: CompletedAction = {
        "id": uuid.uuid4().hex,
        "agent_type": agent_type,
        "tool_name": call["name"],
        "args": dict(call["args"]),
        "result": result[:result_chars],
        "timestamp": time.time() if now is None else now,
    }
    if new_hash:
        action["content_hash"] = new_hash
    return action


def recent_hashed_actions(
    completed_actions: List[CompletedAction],
    window_seconds: float,
    now: Optional[float] = None,
) -> List[CompletedAction]:
    """Content-hashed actions still inside the recency window."""
    now = time.time() if now is None else now
    return [
        a for a in completed_actions
        if a.get("content_hash") and now - float(a.get("timestamp") or 0.0) < window_seconds
    ]
