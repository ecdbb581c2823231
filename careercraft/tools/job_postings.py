"""Job-posting tools: store postings and compare them with the user's skills."""
import json
import logging
from typing import Optional

from langchain_core.tools import StructuredTool

from careercraft.tools.store import ProfileStore, ResourceNotFoundError
from careercraft.validation.schemas import CompareSkillsToJob, FindJobPostings, ParseJobPosting
from careercraft.validation.tool_calls import ValidationError

logger = logging.getLogger(__name__)


def parse_and_store_job_posting_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def parse_and_store_job_posting(content: str) -> str:
        posting = store.store_job_posting(user_id, content)
        skills = ", ".join(posting["skills"]) or "none listed"
        return (
            f"Successfully parsed and stored job posting ({posting['id']}): "
            f"{posting['title']} at {posting['company'] or 'unknown company'}"
            f"{' in ' + posting['location'] if posting['location'] else ''}.\n"
            f"Required skills: {skills}"
        )

    return StructuredTool.from_function(
        coroutine=parse_and_store_job_posting,
        name="parse_and_store_job_posting",
        description="Parse job posting text and store it. Pass the complete posting text as content.",
        args_schema=ParseJobPosting,
    )


def find_job_postings_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def find_job_postings(
        title: Optional[str] = None,
        company: Optional[str] = None,
        location: Optional[str] = None,
        limit: int = 10,
    ) -> str:
        postings = store.find_job_postings(user_id, title=title, company=company, location=location, limit=limit)
        if not postings:
            return "No job postings found matching the criteria."
        summary = [
            {k: p.get(k) for k in ("id", "title", "company", "location", "skills")}
            for p in postings
        ]
        return json.dumps(summary, indent=2)

    return StructuredTool.from_function(
        coroutine=find_job_postings,
        name="find_job_postings",
        description="Find stored job postings by title, company or location",
        args_schema=FindJobPostings,
    )


def compare_skills_to_job_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def compare_skills_to_job(
        job_posting_id: Optional[str] = None,
        job_title: Optional[str] = None,
        company: Optional[str] = None,
    ) -> str:
        if job_posting_id:
            posting = store.get_job_posting(user_id, job_posting_id)
        elif job_title or company:
            found = store.find_job_postings(user_id, title=job_title, company=company, limit=1)
            posting = found[0] if found else None
        else:
            raise ValidationError(
                "Please provide either a job posting ID, job title, or company name to identify the job posting."
            )
        if posting is None:
            raise ResourceNotFoundError("job posting matching the specified criteria")

        user_skills = {s["name"].lower(): s["name"] for s in store.get_profile(user_id, "skills")["skills"]}
        required = posting.get("skills") or []
        matched = [s for s in required if s.lower() in user_skills]
        missing = [s for s in required if s.lower() not in user_skills]
        score = round(100 * len(matched) / len(required)) if required else 0
        return (
            f"Skill comparison for {posting['title']} ({posting['id']}):\n"
            f"Match: {score}% ({len(matched)}/{len(required)})\n"
            f"Matched skills: {', '.join(matched) or 'none'}\n"
            f"Missing skills: {', '.join(missing) or 'none'}"
        )

    return StructuredTool.from_function(
        coroutine=compare_skills_to_job,
        name="compare_skills_to_job",
        description="Compare the user's skills against a stored job posting's requirements",
        args_schema=CompareSkillsToJob,
    )
