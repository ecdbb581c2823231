"""Routing tool bound to the supervisor model."""
from langchain_core.tools import StructuredTool

from careercraft.validation.schemas import RouteToAgent


async def _route_to_agent(next: str) -> str:
    # The call itself is the routing decision; the supervisor never executes it
    return f"Routing to: {next}"


def get_routing_tool() -> StructuredTool:
    return StructuredTool.from_function(
        coroutine=_route_to_agent,
        name="route_to_agent",
        description="Select the next agent to act or end the conversation.",
        args_schema=RouteToAgent,
    )
