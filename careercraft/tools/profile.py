"""Profile tools: read and update the user's stored background."""
import json
import logging
from typing import List, Optional

from langchain_core.tools import StructuredTool

from careercraft.tools.store import ProfileStore, ResourceNotFoundError
from careercraft.validation.schemas import (
    AddWorkAchievement,
    DeleteWorkAchievement,
    GetUserProfile,
    GetWorkAchievements,
    ParseResume,
    StoreUserPreference,
    StoreWorkHistory,
)

logger = logging.getLogger(__name__)


def get_user_profile_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def get_user_profile(data_type: str = "all") -> str:
        profile = store.get_profile(user_id, data_type)
        if not any(profile.values()):
            raise ResourceNotFoundError(data_type.replace("_", " ") if data_type != "all" else "profile data")
        return json.dumps(profile, indent=2, default=str)

    return StructuredTool.from_function(
        coroutine=get_user_profile,
        name="get_user_profile",
        description=(
            "Retrieve details from the user's stored profile: work history, education, "
            "skills, achievements, preferences, or all of them"
        ),
        args_schema=GetUserProfile,
    )


def store_user_preference_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def store_user_preference(category: str, preference: str) -> str:
        store.add_preference(user_id, category, preference)
        return f"Successfully stored user preference for {category}: {preference}"

    return StructuredTool.from_function(
        coroutine=store_user_preference,
        name="store_user_preference",
        description="Store a user preference such as job types, locations, writing style or resume style",
        args_schema=StoreUserPreference,
    )


def store_work_history_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def store_work_history(
        job_title: str,
        company_name: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        responsibilities: Optional[List[str]] = None,
        achievements: Optional[List[str]] = None,
    ) -> str:
        record = store.add_work_history(
            user_id,
            job_title=job_title,
            company_name=company_name,
            start_date=start_date,
            end_date=end_date,
            responsibilities=responsibilities,
            achievements=achievements,
        )
        return f"Successfully stored work history: {job_title} at {company_name} (id: {record['id']})"

    return StructuredTool.from_function(
        coroutine=store_work_history,
        name="store_work_history",
        description="Store one position in the user's work history",
        args_schema=StoreWorkHistory,
    )


def parse_and_store_resume_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def parse_and_store_resume(content: str) -> str:
        summary = store.store_resume(user_id, content)
        roles = ", ".join(f"{r['job_title']} at {r['company_name']}" for r in summary["roles"]) or "none found"
        skills = ", ".join(summary["skills"]) or "none found"
        return (
            f"Successfully parsed and stored resume ({summary['resume_id']}).\n"
            f"Positions: {roles}\n"
            f"Skills: {skills}"
        )

    return StructuredTool.from_function(
        coroutine=parse_and_store_resume,
        name="parse_and_store_resume",
        description=(
            "Parse resume text and store the extracted work history and skills in the user's profile. "
            "Pass the complete resume text as content."
        ),
        args_schema=ParseResume,
    )


def get_work_achievements_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def get_work_achievements(work_history_id: str) -> str:
        job = store.get_work_history(user_id, work_history_id)
        if job is None:
            raise ResourceNotFoundError("work history record")
        return json.dumps({
            "work_history_id": job["id"],
            "job_title": job["job_title"],
            "company_name": job["company_name"],
            "achievements": job["achievements"],
        }, indent=2)

    return StructuredTool.from_function(
        coroutine=get_work_achievements,
        name="get_work_achievements",
        description="Get all achievements for a work history record by its id",
        args_schema=GetWorkAchievements,
    )


def add_work_achievement_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def add_work_achievement(work_history_id: str, description: str) -> str:
        achievement = store.add_achievement(user_id, work_history_id, description)
        if achievement is None:
            raise ResourceNotFoundError("work history record")
        return f"Added achievement {achievement['id']}: {achievement['description']}"

    return StructuredTool.from_function(
        coroutine=add_work_achievement,
        name="add_work_achievement",
        description="Add a single achievement to a work history record",
        args_schema=AddWorkAchievement,
    )


def delete_work_achievement_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def delete_work_achievement(achievement_id: str) -> str:
        if not store.delete_achievement(user_id, achievement_id):
            raise ResourceNotFoundError("achievement")
        return f"Deleted achievement {achievement_id}"

    return StructuredTool.from_function(
        coroutine=delete_work_achievement,
        name="delete_work_achievement",
        description="Delete a specific work achievement",
        args_schema=DeleteWorkAchievement,
    )
