"""Unit tests for the loop-limit governor."""
from careercraft.config import LoopLimits
from careercraft.control.loop_limits import (
    check_loop_limits,
    loop_metrics_summary,
    update_loop_metrics,
)
from careercraft.graph.state import merge_loop_metrics, new_loop_metrics

LIMITS = LoopLimits(max_agent_switches=10, max_tool_calls_per_agent=5, max_clarification_rounds=3)


class TestCheckLoopLimits:
    """Tests for ceiling checks."""

    def test_fresh_metrics_pass(self):
        assert not check_loop_limits(new_loop_metrics(), "data_manager", LIMITS).exceeded

    def test_switch_ceiling(self):
        metrics = {**new_loop_metrics(), "agent_switches": 10}
        check = check_loop_limits(metrics, "data_manager", LIMITS)
        assert check.exceeded
        assert check.message.startswith("Maximum agent switches (10) exceeded.")

    def test_tool_call_ceiling_is_per_agent(self):
        metrics = {**new_loop_metrics(), "tool_calls_per_agent": {"data_manager": 5}}
        assert check_loop_limits(metrics, "data_manager", LIMITS).exceeded
        assert "data_manager (5)" in check_loop_limits(metrics, "data_manager", LIMITS).reason
        assert not check_loop_limits(metrics, "user_profile", LIMITS).exceeded

    def test_clarification_ceiling(self):
        metrics = {**new_loop_metrics(), "clarification_rounds": 3}
        check = check_loop_limits(metrics, "user_profile", LIMITS)
        assert check.exceeded
        assert "clarification rounds (3)" in check.reason

    def test_missing_metrics_are_treated_as_zero(self):
        assert not check_loop_limits(None, "data_manager", LIMITS).exceeded


class TestUpdateLoopMetrics:
    """Tests for metric updates after an agent step."""

    def test_first_agent_counts_as_switch(self):
        patch = update_loop_metrics(new_loop_metrics(), "data_manager", 1)
        assert patch["agent_switches"] == 1
        assert patch["last_agent_type"] == "data_manager"

    def test_same_agent_is_not_a_switch(self):
        metrics = {**new_loop_metrics(), "agent_switches": 1, "last_agent_type": "data_manager"}
        assert update_loop_metrics(metrics, "data_manager", 1)["agent_switches"] == 1
        assert update_loop_metrics(metrics, "user_profile", 0)["agent_switches"] == 2

    def test_patch_merges_into_running_totals(self):
        metrics = {**new_loop_metrics(), "tool_calls_per_agent": {"data_manager": 2}, "clarification_rounds": 1}
        merged = merge_loop_metrics(metrics, update_loop_metrics(metrics, "data_manager", 3))
        assert merged["tool_calls_per_agent"] == {"data_manager": 5}
        assert merged["clarification_rounds"] == 1

    def test_summary(self):
        metrics = {
            "agent_switches": 2,
            "tool_calls_per_agent": {"a": 1, "b": 2},
            "clarification_rounds": 0,
            "last_agent_type": "b",
        }
        assert loop_metrics_summary(metrics) == (
            "Agent switches: 2, Total tool calls: 3, Clarification rounds: 0, Last agent: b"
        )
