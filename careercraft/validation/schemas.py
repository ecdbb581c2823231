"""
Tool argument schemas, allowlists, and thresholds.
Every tool the model can call has a schema here; tools validate their
arguments against it before touching the profile store.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Allowlists (deterministic guardrails)
# ---------------------------------------------------------------------------

# Destinations the supervisor may route to; "__end__" finishes the turn
ROUTE_ALLOWLIST = (
    "data_manager",
    "resume_generator",
    "cover_letter_generator",
    "user_profile",
    "job_posting_manager",
    "__end__",
)

PROFILE_DATA_TYPES = ("work_history", "education", "skills", "achievements", "preferences", "all")


class Thresholds:
    """Payload lengths accepted by the storage tools."""
    MIN_RESUME_LENGTH = 50
    MAX_RESUME_LENGTH = 50_000
    MIN_JOB_POSTING_LENGTH = 50
    MAX_JOB_POSTING_LENGTH = 50_000
    MIN_ACHIEVEMENT_LENGTH = 5
    MAX_ACHIEVEMENT_LENGTH = 1_000
    MAX_SEARCH_RESULTS = 50


# ---------------------------------------------------------------------------
# Tool inputs
# ---------------------------------------------------------------------------

class RouteToAgent(BaseModel):
    """Select the next agent to act or end the conversation."""
    next: Literal[ROUTE_ALLOWLIST] = Field(description="Agent to run next, or __end__")


class StoreUserPreference(BaseModel):
    category: str = Field(min_length=1, description="Preference category, e.g. job_types or locations")
    preference: str = Field(min_length=1, description="The preference value")


class StoreWorkHistory(BaseModel):
    job_title: str = Field(min_length=1)
    company_name: str = Field(min_length=1)
    start_date: Optional[str] = Field(default=None, description="ISO date or free text")
    end_date: Optional[str] = Field(default=None, description="Omit for a current position")
    responsibilities: List[str] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)


class GetUserProfile(BaseModel):
    data_type: Literal[PROFILE_DATA_TYPES] = Field(
        default="all", description="Which part of the profile to return"
    )


class ParseResume(BaseModel):
    content: str = Field(
        min_length=Thresholds.MIN_RESUME_LENGTH,
        max_length=Thresholds.MAX_RESUME_LENGTH,
        description="The raw resume text to parse and store",
    )


class ParseJobPosting(BaseModel):
    content: str = Field(
        min_length=Thresholds.MIN_JOB_POSTING_LENGTH,
        max_length=Thresholds.MAX_JOB_POSTING_LENGTH,
        description="The raw job posting text to parse and store",
    )


class GetWorkAchievements(BaseModel):
    work_history_id: str = Field(min_length=1, description="Work history record to list achievements for")


class AddWorkAchievement(BaseModel):
    work_history_id: str = Field(min_length=1)
    description: str = Field(
        min_length=Thresholds.MIN_ACHIEVEMENT_LENGTH,
        max_length=Thresholds.MAX_ACHIEVEMENT_LENGTH,
    )


class DeleteWorkAchievement(BaseModel):
    achievement_id: str = Field(min_length=1)


class GenerateResume(BaseModel):
    format: Literal["PDF", "Word", "Text"] = "Text"
    style: Literal["Modern", "Traditional", "Creative", "Minimal"] = "Modern"
    sections: List[str] = Field(default_factory=lambda: ["all"], description="Sections to include")


class GenerateCoverLetter(BaseModel):
    job_title: str = Field(min_length=1)
    company: str = Field(min_length=1)
    style: Literal["Formal", "Conversational", "Enthusiastic", "Professional"] = "Professional"
    key_points: List[str] = Field(default_factory=list)


class FindJobPostings(BaseModel):
    title: Optional[str] = Field(default=None, description="Partial match on job title")
    company: Optional[str] = Field(default=None, description="Partial match on company")
    location: Optional[str] = Field(default=None, description="Partial match on location")
    limit: int = Field(default=10, ge=1, le=Thresholds.MAX_SEARCH_RESULTS)


class CompareSkillsToJob(BaseModel):
    job_posting_id: Optional[str] = None
    job_title: Optional[str] = Field(default=None, description="Used to find the posting when no id is given")
    company: Optional[str] = None
