"""
Loop-limit governor.
Turn-scoped counters checked at each agent-node entry; once any ceiling is
reached the turn ends with an explanation instead of another model call.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from careercraft.config import LoopLimits
from careercraft.graph.state import LoopMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoopLimitCheck:
    exceeded: bool
    reason: str = ""
    suggestion: str = ""

    @property
    def message(self) -> str:
        return f"{self.reason}. {self.suggestion}"


def check_loop_limits(metrics: Optional[LoopMetrics], agent_type: str, limits: LoopLimits) -> LoopLimitCheck:
    """
    Check all three ceilings for the agent about to run.

    Returns:
        LoopLimitCheck; exceeded=True names the ceiling and a suggestion
    """
    metrics = metrics or {}
    switches = metrics.get("agent_switches") or 0
    if switches >= limits.max_agent_switches:
        return LoopLimitCheck(
            exceeded=True,
            reason=f"Maximum agent switches ({limits.max_agent_switches}) exceeded",
            suggestion="Consider breaking down your request into smaller, more specific tasks.",
        )

    tool_calls = (metrics.get("tool_calls_per_agent") or {}).get(agent_type, 0)
    if tool_calls >= limits.max_tool_calls_per_agent:
        return LoopLimitCheck(
            exceeded=True,
            reason=f"Maximum tool calls for {agent_type} ({limits.max_tool_calls_per_agent}) exceeded",
            suggestion=(
                "The agent has made many attempts. Please try rephrasing your request "
                "or provide more specific information."
            ),
        )

    check = check_clarification_limit(metrics, limits)
    if check.exceeded:
        return check
    return LoopLimitCheck(exceeded=False)


def check_clarification_limit(metrics: Optional[LoopMetrics], limits: LoopLimits) -> LoopLimitCheck:
    rounds = (metrics or {}).get("clarification_rounds") or 0
    if rounds >= limits.max_clarification_rounds:
        return LoopLimitCheck(
            exceeded=True,
            reason=f"Maximum clarification rounds ({limits.max_clarification_rounds}) exceeded",
            suggestion="Too many clarification attempts. Please provide a more direct request.",
        )
    return LoopLimitCheck(exceeded=False)


def update_loop_metrics(metrics: Optional[LoopMetrics], agent_type: str, tool_call_count: int = 0) -> LoopMetrics:
    """
    Metrics patch for one agent execution.

    The switch count is absolute; tool_calls_per_agent holds only this
    execution's delta, since the state reducer sums it key-wise.
    """
    metrics = metrics or {}
    switches = metrics.get("agent_switches") or 0
    if metrics.get("last_agent_type") != agent_type:
        switches += 1
    return {
        "agent_switches": switches,
        "tool_calls_per_agent": {agent_type: tool_call_count},
        "last_agent_type": agent_type,
    }


def loop_metrics_summary(metrics: Optional[LoopMetrics]) -> str:
    metrics = metrics or {}
    total = sum((metrics.get("tool_calls_per_agent") or {}).values())
    return (
        f"Agent switches: {metrics.get('agent_switches') or 0}, "
        f"Total tool calls: {total}, "
        f"Clarification rounds: {metrics.get('clarification_rounds') or 0}, "
        f"Last agent: {metrics.get('last_agent_type') or 'none'}"
    )
