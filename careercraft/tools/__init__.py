"""
Per-role tool collections.
Each getter builds tools bound to one user; the user id never reaches the model.
"""
from typing import List, Optional

from langchain_core.tools import BaseTool

from careercraft.tools.documents import generate_cover_letter_tool, generate_resume_tool
from careercraft.tools.job_postings import (
    compare_skills_to_job_tool,
    find_job_postings_tool,
    parse_and_store_job_posting_tool,
)
from careercraft.tools.profile import (
    add_work_achievement_tool,
    delete_work_achievement_tool,
    get_user_profile_tool,
    get_work_achievements_tool,
    parse_and_store_resume_tool,
    store_user_preference_tool,
    store_work_history_tool,
)
from careercraft.tools.routing import get_routing_tool
from careercraft.tools.store import ProfileStore, get_profile_store


def get_data_manager_tools(user_id: str, store: Optional[ProfileStore] = None) -> List[BaseTool]:
    store = store or get_profile_store()
    return [
        get_user_profile_tool(user_id, store),
        store_user_preference_tool(user_id, store),
        store_work_history_tool(user_id, store),
        parse_and_store_resume_tool(user_id, store),
        get_work_achievements_tool(user_id, store),
        add_work_achievement_tool(user_id, store),
        delete_work_achievement_tool(user_id, store),
    ]


def get_resume_generator_tools(user_id: str, store: Optional[ProfileStore] = None) -> List[BaseTool]:
    store = store or get_profile_store()
    return [generate_resume_tool(user_id, store), get_user_profile_tool(user_id, store)]


def get_cover_letter_generator_tools(user_id: str, store: Optional[ProfileStore] = None) -> List[BaseTool]:
    store = store or get_profile_store()
    return [generate_cover_letter_tool(user_id, store), get_user_profile_tool(user_id, store)]


def get_user_profile_tools(user_id: str, store: Optional[ProfileStore] = None) -> List[BaseTool]:
    store = store or get_profile_store()
    return [get_user_profile_tool(user_id, store)]


def get_job_posting_tools(user_id: str, store: Optional[ProfileStore] = None) -> List[BaseTool]:
    store = store or get_profile_store()
    return [
        parse_and_store_job_posting_tool(user_id, store),
        find_job_postings_tool(user_id, store),
        compare_skills_to_job_tool(user_id, store),
        get_user_profile_tool(user_id, store),
    ]


def get_supervisor_tools() -> List[BaseTool]:
    return [get_routing_tool()]


__all__ = [
    "ProfileStore",
    "get_profile_store",
    "get_data_manager_tools",
    "get_resume_generator_tools",
    "get_cover_letter_generator_tools",
    "get_user_profile_tools",
    "get_job_posting_tools",
    "get_supervisor_tools",
]
