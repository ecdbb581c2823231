"""End-to-end turns through the compiled graph with scripted models."""
from dataclasses import replace

import pytest
from langgraph.graph import END

from careercraft.config import LoopLimits
from careercraft.conversations import ConversationRegistry
from careercraft.graph.router import (
    RECURSION_MESSAGE,
    build_graph,
    get_graph_info,
    route_after_supervisor,
    run_turn,
)
from careercraft.graph.workers import build_roles

from fakes import ModelPair, route, text, tool_call


def _turn(content, user_id="user-1"):
    turn = {"messages": [{"role": "user", "content": content}]}
    if user_id:
        turn["userId"] = user_id
    return turn


class TestGraphStructure:
    def test_graph_info(self):
        info = get_graph_info()
        assert info["entry_point"] == "supervisor"
        assert info["nodes"][0] == "supervisor"
        assert set(info["agents"]) == {
            "data_manager",
            "resume_generator",
            "cover_letter_generator",
            "user_profile",
            "job_posting_manager",
        }

    def test_route_after_supervisor(self):
        assert route_after_supervisor({"next": "user_profile"}) == "user_profile"
        assert route_after_supervisor({"next": END}) == END
        assert route_after_supervisor({"next": "supervisor"}) == END
        assert route_after_supervisor({}) == END

    def test_missing_roles_rejected(self, settings, store):
        roles = build_roles(store)
        del roles["user_profile"]
        with pytest.raises(ValueError, match="user_profile"):
            build_graph(settings, ModelPair(), roles)


class TestTurns:
    @pytest.mark.asyncio
    async def test_direct_answer(self, settings, store):
        pair = ModelPair(supervisor=[text("A resume should usually fit on one page.")])
        graph = build_graph(settings, pair, build_roles(store))

        result = await run_turn(_turn("How long should a resume be?"), settings=settings, graph=graph)

        assert result.final_message == "A resume should usually fit on one page."
        assert pair.agent.calls == []
        body = result.to_dict()
        assert body["finalMessage"] == result.final_message
        assert [m["role"] for m in body["messages"]] == ["system", "user", "assistant"]

    @pytest.mark.asyncio
    async def test_same_resume_twice_is_stored_once(self, settings, store, resume_text):
        pair = ModelPair(
            supervisor=[
                route("data_manager"), text("Your resume is saved."),
                route("data_manager"), text("Nothing new to save."),
            ],
            agent=[
                tool_call("parse_and_store_resume", {"content": resume_text}),
                tool_call("parse_and_store_resume", {"content": resume_text}),
            ],
        )
        graph = build_graph(settings, pair, build_roles(store))

        first = await run_turn(_turn(resume_text), conversation_id="conv-1", settings=settings, graph=graph)
        assert first.final_message == "Your resume is saved."
        assert len(store.get_profile("user-1")["work_history"]) == 2
        assert len(ConversationRegistry.get("conv-1")["completed_actions"]) == 1

        second = await run_turn(_turn(resume_text), conversation_id="conv-1", settings=settings, graph=graph)
        agent_summary = [m for m in second.messages if m.name == "data_manager"][0]
        assert "already processed recently" in agent_summary.content
        assert len(store.get_profile("user-1")["work_history"]) == 2
        assert len(store.get_profile("user-1", "skills")["skills"]) == 4

    @pytest.mark.asyncio
    async def test_without_conversation_id_nothing_carries_over(self, settings, store, resume_text):
        pair = ModelPair(
            supervisor=[route("data_manager"), text("Saved."), route("data_manager"), text("Saved.")],
            agent=[
                tool_call("parse_and_store_resume", {"content": resume_text}),
                tool_call("parse_and_store_resume", {"content": resume_text}),
            ],
        )
        graph = build_graph(settings, pair, build_roles(store))
        await run_turn(_turn(resume_text), settings=settings, graph=graph)
        await run_turn(_turn(resume_text), settings=settings, graph=graph)
        assert len(store.get_profile("user-1")["work_history"]) == 4

    @pytest.mark.asyncio
    async def test_missing_user_id_ends_turn(self, settings, store):
        pair = ModelPair(supervisor=[route("data_manager")], agent=[tool_call("store_user_preference", {})])
        graph = build_graph(settings, pair, build_roles(store))

        result = await run_turn(_turn("Remember I like remote work", user_id=None), settings=settings, graph=graph)

        assert "User ID is required" in result.final_message
        assert pair.agent.calls == []
        assert len(pair.supervisor.calls) == 1

    @pytest.mark.asyncio
    async def test_pending_clarification_carries_over(self, settings, store):
        pair = ModelPair(supervisor=[text("Which role is the cover letter for?"), text("Thanks.")])
        graph = build_graph(settings, pair, build_roles(store))

        await run_turn(_turn("Write a cover letter"), conversation_id="conv-2", settings=settings, graph=graph)
        saved = ConversationRegistry.get("conv-2")
        assert saved["pending_clarification"]["question"] == "Which role is the cover letter for?"
        assert saved["clarification_rounds"] == 1

        await run_turn(_turn("The platform engineer role"), conversation_id="conv-2", settings=settings, graph=graph)
        # Nothing left to carry, so the conversation has no entry
        assert ConversationRegistry.get("conv-2") is None


class TestCeilings:
    @pytest.mark.asyncio
    async def test_agent_switch_ceiling(self, settings, store):
        settings = replace(settings, loop_limits=LoopLimits(max_agent_switches=2))
        pair = ModelPair(
            supervisor=[route("data_manager"), route("user_profile"), route("data_manager")],
            agent=[text("Stored."), text("Profile is empty.")],
        )
        graph = build_graph(settings, pair, build_roles(store))

        result = await run_turn(_turn("Do everything"), settings=settings, graph=graph)

        assert result.final_message.startswith("Maximum agent switches (2) exceeded.")
        assert len(pair.agent.calls) == 2
        assert len(pair.supervisor.calls) == 3

    @pytest.mark.asyncio
    async def test_sixth_data_manager_run_is_blocked(self, settings, store):
        pair = ModelPair(
            supervisor=[route("data_manager") for _ in range(6)],
            agent=[
                tool_call("store_user_preference", {"category": "location", "preference": f"City {i}"})
                for i in range(5)
            ],
        )
        graph = build_graph(settings, pair, build_roles(store))

        result = await run_turn(_turn("Save my locations"), settings=settings, graph=graph)

        assert "Maximum tool calls for data_manager (5) exceeded" in result.final_message
        assert len(store.get_profile("user-1", "preferences")["preferences"]["location"]) == 5
        assert len(pair.agent.calls) == 5

    @pytest.mark.asyncio
    async def test_recursion_limit_becomes_apology(self, settings, store):
        settings = replace(settings, recursion_limit=4)
        pair = ModelPair(
            supervisor=[route("user_profile") for _ in range(5)],
            agent=[text("Still looking.") for _ in range(5)],
        )
        graph = build_graph(settings, pair, build_roles(store))

        result = await run_turn(_turn("Loop forever"), settings=settings, graph=graph)

        assert result.final_message == RECURSION_MESSAGE
        assert result.state["next"] == END

    @pytest.mark.asyncio
    async def test_work_before_recursion_limit_is_kept(self, settings, store, resume_text):
        looping = replace(settings, recursion_limit=4)
        pair = ModelPair(
            supervisor=[route("data_manager") for _ in range(4)],
            agent=[tool_call("parse_and_store_resume", {"content": resume_text})] + [text("Done.") for _ in range(3)],
        )
        graph = build_graph(looping, pair, build_roles(store))

        first = await run_turn(_turn(resume_text), conversation_id="conv-r", settings=looping, graph=graph)

        assert first.final_message == RECURSION_MESSAGE
        assert any(m.name == "data_manager" for m in first.messages)
        assert len(first.state["completed_actions"]) == 1
        assert len(ConversationRegistry.get("conv-r")["completed_actions"]) == 1

        pair = ModelPair(
            supervisor=[route("data_manager"), text("Already saved.")],
            agent=[tool_call("parse_and_store_resume", {"content": resume_text})],
        )
        graph = build_graph(settings, pair, build_roles(store))
        await run_turn(_turn(resume_text), conversation_id="conv-r", settings=settings, graph=graph)

        assert len(store.get_profile("user-1", "resumes")["resumes"]) == 1

    @pytest.mark.asyncio
    async def test_default_limit_leaves_room_for_the_ceilings(self, settings, store):
        pair = ModelPair(
            supervisor=(
                [route("data_manager") for _ in range(5)]
                + [route("job_posting_manager") for _ in range(5)]
                + [route("user_profile") for _ in range(2)]
                + [text("All done.")]
            ),
            agent=(
                [tool_call("store_user_preference", {"category": "location", "preference": f"City {i}"})
                 for i in range(5)]
                + [tool_call("find_job_postings", {"title": f"Role {i}"}) for i in range(5)]
                + [text("Profile checked.") for _ in range(2)]
            ),
        )
        graph = build_graph(settings, pair, build_roles(store))

        result = await run_turn(_turn("Save, search and review"), settings=settings, graph=graph)

        assert result.final_message == "All done."
        assert result.state["loop_metrics"]["agent_switches"] == 3
        assert len(pair.agent.calls) == 12
