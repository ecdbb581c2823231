"""
Result processors: turn a batch of tool calls into one readable summary.
Each processor executes calls through the runner so duplicate detection and
completed-action bookkeeping stay in one place.
"""
import json
import logging
from typing import Any, Dict, List

from careercraft.graph.agent_node import EXECUTED, SKIPPED, ToolCallRunner, ToolOutcome
from careercraft.graph.state import ValidatedToolCall

logger = logging.getLogger(__name__)

PROFICIENCY_LEVELS = ("EXPERT", "ADVANCED", "INTERMEDIATE", "BEGINNER")


def _pretty_json(text: str) -> str:
    try:
        return json.dumps(json.loads(text), indent=2)
    except (json.JSONDecodeError, TypeError):
        return text


def _skip_line(outcome: ToolOutcome) -> str:
    # skip_message already carries the previous-result preview
    return f"• {outcome.content}\n\n"


def format_skills(skills: List[Dict[str, Any]]) -> str:
    """Skills grouped by proficiency, as markdown."""
    if not skills:
        return (
            "No skills found in your profile yet. You can add skills by describing "
            "your work experience or uploading a resume.\n"
        )
    out = "## Your Skills\n\n"
    for level in PROFICIENCY_LEVELS:
        group = [s for s in skills if (s.get("proficiency") or "").upper() == level]
        if not group:
            continue
        out += f"### {level.title()} Level\n"
        for skill in group:
            out += f"- **{skill['name']}**\n"
        out += "\n"
    out += f"_Total: {len(skills)} skills in your profile_\n\n"
    return out


def _format_achievements(result: str) -> str:
    try:
        data = json.loads(result)
    except json.JSONDecodeError:
        return f"• {result}\n"
    achievements = data.get("achievements") or []
    out = f"• **{data.get('job_title')}** at **{data.get('company_name')}**\n"
    out += f"  Current achievements ({len(achievements)}):\n"
    for i, achievement in enumerate(achievements, 1):
        out += f"  {i}. {achievement['description']} *(ID: {achievement['id']})*\n"
    return out + "\n"


def _format_data_manager_result(outcome: ToolOutcome) -> str:
    call = outcome.call
    name = call["name"]
    if outcome.status != EXECUTED:
        return f"• {outcome.content}\n"
    if name == "store_user_preference":
        return f"• Stored preference for {call['args'].get('category')}: {call['args'].get('preference')}\n"
    if name == "store_work_history":
        return f"• Stored work history: {call['args'].get('job_title')} at {call['args'].get('company_name')}\n"
    if name == "get_user_profile":
        data_type = call["args"].get("data_type", "all")
        if data_type == "skills":
            try:
                return format_skills(json.loads(outcome.content).get("skills", []))
            except (json.JSONDecodeError, AttributeError):
                pass
        return f"• Retrieved {data_type} data:\n\n```json\n{_pretty_json(outcome.content)}\n```\n\n"
    if name == "get_work_achievements":
        return _format_achievements(outcome.content)
    if name == "parse_and_store_resume":
        return f"{outcome.content}\n\n"
    return f"• {outcome.content}\n"


async def process_data_manager_tool_calls(
    tool_calls: List[ValidatedToolCall],
    user_id: str,
    response_text: str,
    runner: ToolCallRunner,
) -> str:
    summary = "I've processed your request:\n\n"
    for call in tool_calls:
        outcome = await runner.run(call)
        if outcome.status == SKIPPED:
            summary += _skip_line(outcome)
            continue
        summary += _format_data_manager_result(outcome)
    return summary


_JOB_POSTING_HEADERS = {
    "find_job_postings": "• Found job postings:\n",
    "compare_skills_to_job": "• Skill comparison analysis:\n",
    "get_user_profile": "• Retrieved user profile data:\n",
}


async def process_job_posting_tool_calls(
    tool_calls: List[ValidatedToolCall],
    user_id: str,
    response_text: str,
    runner: ToolCallRunner,
) -> str:
    """Header says "processed" only if at least one call was not a duplicate."""
    processed = False
    summary = ""
    for call in tool_calls:
        outcome = await runner.run(call)
        if outcome.status == SKIPPED:
            summary += _skip_line(outcome)
            continue
        processed = True
        if outcome.status != EXECUTED:
            summary += f"• {outcome.content}\n"
        elif call["name"] == "parse_and_store_job_posting":
            summary += f"{outcome.content}\n\n"
        else:
            summary += f"{_JOB_POSTING_HEADERS.get(call['name'], '• ')}{outcome.content}\n"

    if response_text.strip():
        summary += "\n" + response_text
    if processed:
        return f"I've processed your job posting request:\n\n{summary}"
    return f"I reviewed your job posting request:\n\n{summary}"


async def process_user_profile_tool_calls(
    tool_calls: List[ValidatedToolCall],
    user_id: str,
    response_text: str,
    runner: ToolCallRunner,
) -> str:
    summary = "Here's the information from your profile:\n\n"
    for call in tool_calls:
        if call["name"] != "get_user_profile":
            logger.warning(f"user_profile processor ignoring {call['name']}")
            continue
        outcome = await runner.run(call)
        if outcome.status == SKIPPED:
            summary += _skip_line(outcome)
        elif outcome.status == EXECUTED:
            title = call["args"].get("data_type", "all").replace("_", " ").upper()
            summary += f"## {title} ##\n\n```json\n{_pretty_json(outcome.content)}\n```\n\n"
        else:
            summary += f"Error retrieving {call['args'].get('data_type', 'unknown')} data: {outcome.content}\n"

    if response_text.strip():
        summary += "\n" + response_text
    return summary
