"""
Specialized agent roles.
Each role is plain configuration for the shared agent node factory.
"""
from typing import Dict, List, Optional

from careercraft.graph.agent_node import AgentRole
from careercraft.graph.processors import (
    process_data_manager_tool_calls,
    process_job_posting_tool_calls,
    process_user_profile_tool_calls,
)
from careercraft.tools import (
    ProfileStore,
    get_cover_letter_generator_tools,
    get_data_manager_tools,
    get_job_posting_tools,
    get_resume_generator_tools,
    get_user_profile_tools,
)

DATA_MANAGER_SYSTEM_MESSAGE = """You are the Data Manager Agent for CareerCraft.
You store and organize the user's career data.

Tools:
- parse_and_store_resume: when the user pastes a resume or asks you to parse one, pass the full text as content
- store_work_history: store a single position the user describes
- store_user_preference: store job, location or style preferences
- get_user_profile: look up what is already stored
- get_work_achievements / add_work_achievement / delete_work_achievement: manage achievements of one position

Call each tool at most once per piece of content. Do not re-store data that was already stored."""

RESUME_GENERATOR_SYSTEM_MESSAGE = """You are the Resume Generator Agent for CareerCraft.
Build resumes from the user's stored profile. Use get_user_profile to see what is available,
then generate_resume with the requested format, style and sections.
If the profile is empty, tell the user what information you need."""

COVER_LETTER_GENERATOR_SYSTEM_MESSAGE = """You are the Cover Letter Generator Agent for CareerCraft.
Write cover letters tailored to a specific job and company using the user's stored profile.
Use generate_cover_letter once you know the job title and company; ask for them if missing."""

USER_PROFILE_SYSTEM_MESSAGE = """You are the User Profile Agent for CareerCraft.
Answer questions about what is stored in the user's profile using get_user_profile.
Request only the data type the user asked about. You never modify data."""

JOB_POSTING_MANAGER_SYSTEM_MESSAGE = """You are the Job Posting Manager Agent for CareerCraft.
- parse_and_store_job_posting: the user shares a job posting and wants it saved; pass the full text as content
- find_job_postings: look up stored postings by title, company or location
- compare_skills_to_job: compare the user's skills with a stored posting
Process each posting once."""


def build_roles(store: Optional[ProfileStore] = None) -> Dict[str, AgentRole]:
    """
    Role configurations keyed by agent type.

    Args:
        store: Profile store the tools read and write (defaults to the shared store)
    """
    def tools(getter):
        return lambda user_id: getter(user_id, store)

    roles: List[AgentRole] = [
        AgentRole(
            agent_type="data_manager",
            system_message=DATA_MANAGER_SYSTEM_MESSAGE,
            get_tools=tools(get_data_manager_tools),
            process_tool_calls=process_data_manager_tool_calls,
        ),
        AgentRole(
            agent_type="resume_generator",
            system_message=RESUME_GENERATOR_SYSTEM_MESSAGE,
            get_tools=tools(get_resume_generator_tools),
        ),
        AgentRole(
            agent_type="cover_letter_generator",
            system_message=COVER_LETTER_GENERATOR_SYSTEM_MESSAGE,
            get_tools=tools(get_cover_letter_generator_tools),
        ),
        AgentRole(
            agent_type="user_profile",
            system_message=USER_PROFILE_SYSTEM_MESSAGE,
            get_tools=tools(get_user_profile_tools),
            process_tool_calls=process_user_profile_tool_calls,
        ),
        AgentRole(
            agent_type="job_posting_manager",
            system_message=JOB_POSTING_MANAGER_SYSTEM_MESSAGE,
            get_tools=tools(get_job_posting_tools),
            process_tool_calls=process_job_posting_tool_calls,
        ),
    ]
    return {role.agent_type: role for role in roles}
