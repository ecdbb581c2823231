"""Tests for the generic agent node with scripted models."""
import asyncio

import pytest
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage
from langchain_core.tools import StructuredTool
from langgraph.graph import END

from careercraft.config import Settings
from careercraft.graph.agent_node import (
    EMPTY_REPLY_MESSAGE,
    AgentRole,
    ToolCallRunner,
    make_agent_node,
)
from careercraft.graph.state import create_initial_state, merge_state
from careercraft.graph.workers import build_roles
from careercraft.tools import get_data_manager_tools

from fakes import ScriptedChatModel, text, tool_call


def _factory(model):
    return lambda kind, settings: model


def _state(user_id="user-1", **kwargs):
    return create_initial_state([HumanMessage(content="please help")], user_id, **kwargs)


def _counting_tool(name="echo", calls=None, fail=False, delay=0.0):
    calls = calls if calls is not None else []

    async def run(value: str = "") -> str:
        calls.append(value)
        if delay:
            await asyncio.sleep(delay)
        if fail:
            raise RuntimeError("backend unavailable")
        return f"echo:{value}"

    return StructuredTool.from_function(coroutine=run, name=name, description="Echo a value")


def _role(tools, processor=None, requires_user_id=True):
    return AgentRole(
        agent_type="data_manager",
        system_message="You manage data.",
        get_tools=lambda user_id: tools,
        process_tool_calls=processor,
        requires_user_id=requires_user_id,
    )


class TestPreconditions:
    """Tests for checks made before any model call."""

    @pytest.mark.asyncio
    async def test_missing_user_id_ends_turn_without_tools(self, settings):
        executed = []
        model = ScriptedChatModel([tool_call("echo", {"value": "x"})])
        node = make_agent_node(_role([_counting_tool(calls=executed)]), settings, _factory(model))

        patch = await node(_state(user_id=""))

        assert patch["next"] == END
        assert "User ID is required" in patch["messages"][0].content
        assert model.calls == []
        assert executed == []

    @pytest.mark.asyncio
    async def test_user_id_can_be_waived(self, settings):
        model = ScriptedChatModel([text("General advice.")])
        node = make_agent_node(_role([], requires_user_id=False), settings, _factory(model))
        patch = await node(_state(user_id=""))
        assert patch["messages"][0].content == "General advice."

    @pytest.mark.asyncio
    async def test_loop_ceiling_blocks_before_model_call(self, settings):
        model = ScriptedChatModel([text("never")])
        node = make_agent_node(_role([]), settings, _factory(model))
        state = _state()
        state["loop_metrics"]["tool_calls_per_agent"] = {"data_manager": 5}

        patch = await node(state)

        assert patch["next"] == END
        assert patch["messages"][0].content.startswith("Maximum tool calls for data_manager (5) exceeded.")
        assert model.calls == []

    @pytest.mark.asyncio
    async def test_no_model_configured(self, settings):
        node = make_agent_node(_role([]), settings, lambda kind, s: None)
        patch = await node(_state())
        assert patch["next"] == "supervisor"
        assert "trouble connecting" in patch["messages"][0].content


class TestDirectReply:
    @pytest.mark.asyncio
    async def test_text_reply_goes_back_to_supervisor(self, settings):
        model = ScriptedChatModel([text('[{"type":"text","text":"Here you go."}]')])
        node = make_agent_node(_role([]), settings, _factory(model))
        patch = await node(_state())
        assert patch["messages"][0].content == "Here you go."
        assert patch["next"] == "supervisor"
        assert patch["loop_metrics"]["agent_switches"] == 1
        assert patch["loop_metrics"]["tool_calls_per_agent"] == {"data_manager": 0}

    @pytest.mark.asyncio
    async def test_empty_reply_is_replaced(self, settings):
        model = ScriptedChatModel([text("")])
        node = make_agent_node(_role([]), settings, _factory(model))
        patch = await node(_state())
        assert patch["messages"][0].content == EMPTY_REPLY_MESSAGE

    @pytest.mark.asyncio
    async def test_system_prompt_and_filtered_history_are_sent(self, settings):
        model = ScriptedChatModel([text("ok")])
        node = make_agent_node(_role([]), settings, _factory(model))
        await node(_state())
        sent = model.calls[0]
        assert sent[0].type == "system"
        assert sent[0].content == "You manage data."
        assert [m.type for m in sent[1:]] == ["human"]


class TestToolExecution:
    """Tests for the default per-tool path."""

    @pytest.mark.asyncio
    async def test_each_call_gets_a_tool_message_after_the_request(self, settings):
        executed = []
        model = ScriptedChatModel([AIMessage(content="", tool_calls=[
            {"name": "echo", "args": {"value": "a"}, "id": "1", "type": "tool_call"},
            {"name": "echo", "args": {"value": "b"}, "id": "2", "type": "tool_call"},
        ])])
        node = make_agent_node(_role([_counting_tool(calls=executed)]), settings, _factory(model))

        patch = await node(_state())

        request, first, second = patch["messages"]
        assert [c["id"] for c in request.tool_calls] == ["1", "2"]
        assert isinstance(first, ToolMessage) and first.tool_call_id == "1" and first.content == "echo:a"
        assert second.tool_call_id == "2" and second.content == "echo:b"
        assert executed == ["a", "b"]
        assert [a["tool_name"] for a in patch["completed_actions"]] == ["echo", "echo"]
        assert patch["loop_metrics"]["tool_calls_per_agent"] == {"data_manager": 2}
        assert patch["next"] == "supervisor"

    @pytest.mark.asyncio
    async def test_tool_failure_is_reported_inline(self, settings):
        model = ScriptedChatModel([tool_call("echo", {"value": "a"}, call_id="1")])
        node = make_agent_node(_role([_counting_tool(fail=True)]), settings, _factory(model))
        patch = await node(_state())
        assert patch["messages"][1].content == "Error executing echo: backend unavailable"
        assert patch["completed_actions"] == []
        assert patch["next"] == "supervisor"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, settings):
        model = ScriptedChatModel([tool_call("teleport", {}, call_id="1")])
        node = make_agent_node(_role([_counting_tool()]), settings, _factory(model))
        patch = await node(_state())
        assert patch["messages"][1].content == "Error: Tool teleport not found"

    @pytest.mark.asyncio
    async def test_tool_timeout_is_isolated(self):
        settings = Settings(tool_timeout=0.05)
        model = ScriptedChatModel([tool_call("echo", {"value": "slow"}, call_id="1")])
        node = make_agent_node(_role([_counting_tool(delay=1.0)]), settings, _factory(model))
        patch = await node(_state())
        assert patch["messages"][1].content.startswith("Error executing echo: timed out")
        assert patch["next"] == "supervisor"

    @pytest.mark.asyncio
    async def test_repeated_call_in_one_response_is_skipped(self, settings):
        executed = []
        model = ScriptedChatModel([AIMessage(content="", tool_calls=[
            {"name": "echo", "args": {"value": "a"}, "id": "1", "type": "tool_call"},
            {"name": "echo", "args": {"value": "a"}, "id": "2", "type": "tool_call"},
        ])])
        node = make_agent_node(_role([_counting_tool(calls=executed)]), settings, _factory(model))
        patch = await node(_state())
        assert executed == ["a"]
        assert patch["messages"][2].content.startswith("Skipped echo:")
        assert "Previous result: echo:a" in patch["messages"][2].content
        assert patch["loop_metrics"]["tool_calls_per_agent"] == {"data_manager": 2}

    @pytest.mark.asyncio
    async def test_calls_embedded_in_text_are_recovered(self, settings):
        executed = []
        embedded = '{"functionCall":{"name":"echo","args":{"value":"from text"}}}'
        model = ScriptedChatModel([text(embedded)])
        node = make_agent_node(_role([_counting_tool(calls=executed)]), settings, _factory(model))
        patch = await node(_state())
        assert executed == ["from text"]
        assert patch["messages"][0].tool_calls[0]["id"].startswith("extracted_echo_")

    @pytest.mark.asyncio
    async def test_model_timeout_ends_turn(self):
        async def hang(messages):
            await asyncio.sleep(1.0)

        settings = Settings(llm_timeout=0.05)
        node = make_agent_node(_role([]), settings, _factory(ScriptedChatModel([hang])))
        patch = await node(_state())
        assert patch["next"] == END
        assert "took too long" in patch["messages"][0].content


class TestResultProcessors:
    """Tests for custom processors and their fallback."""

    @pytest.mark.asyncio
    async def test_processor_produces_single_summary(self, settings):
        async def summarize(calls, user_id, response_text, runner):
            outcomes = await runner.run_all(calls)
            return "Summary: " + ", ".join(o.content for o in outcomes)

        model = ScriptedChatModel([tool_call("echo", {"value": "a"})])
        node = make_agent_node(_role([_counting_tool()], processor=summarize), settings, _factory(model))
        patch = await node(_state())
        assert len(patch["messages"]) == 1
        assert patch["messages"][0].content == "Summary: echo:a"
        assert len(patch["completed_actions"]) == 1

    @pytest.mark.asyncio
    async def test_failing_processor_falls_back_without_rerunning(self, settings):
        executed = []

        async def broken(calls, user_id, response_text, runner):
            await runner.run(calls[0])
            raise ValueError("formatting failed")

        model = ScriptedChatModel([tool_call("echo", {"value": "a"}, call_id="1")])
        node = make_agent_node(_role([_counting_tool(calls=executed)], processor=broken), settings, _factory(model))
        patch = await node(_state())

        assert executed == ["a"]
        assert isinstance(patch["messages"][1], ToolMessage)
        assert patch["messages"][1].content.startswith("Skipped echo:")
        assert len(patch["completed_actions"]) == 1

    @pytest.mark.asyncio
    async def test_data_manager_skips_resume_already_stored(self, settings, store, resume_text):
        roles = build_roles(store)
        call = {"name": "parse_and_store_resume", "args": {"content": resume_text}, "id": "r1", "type": "tool_call"}
        first = ToolCallRunner("data_manager", get_data_manager_tools("user-1", store), [], settings)
        stored = await first.run(call)
        assert stored.status == "executed"

        model = ScriptedChatModel([tool_call("parse_and_store_resume", {"content": resume_text})])
        node = make_agent_node(roles["data_manager"], settings, _factory(model))
        patch = await node(_state(completed_actions=first.new_actions))

        summary = patch["messages"][0].content
        assert summary.startswith("I've processed your request:")
        assert "This exact parse and store resume content was already processed recently" in summary
        assert patch["completed_actions"] == []
        assert len(store.get_profile("user-1")["work_history"]) == 2


class TestMetricsAcrossInvocations:
    @pytest.mark.asyncio
    async def test_sixth_invocation_is_blocked(self, settings):
        model = ScriptedChatModel([tool_call("echo", {"value": str(i)}) for i in range(6)])
        node = make_agent_node(_role([_counting_tool()]), settings, _factory(model))
        state = _state()
        for _ in range(5):
            state = merge_state(state, await node(state))
        assert state["loop_metrics"]["tool_calls_per_agent"] == {"data_manager": 5}

        patch = await node(state)
        assert patch["next"] == END
        assert "Maximum tool calls for data_manager (5) exceeded" in patch["messages"][0].content
        assert len(model.calls) == 5
