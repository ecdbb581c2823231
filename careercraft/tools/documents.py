"""Document tools: render a resume or cover letter from the stored profile."""
import logging
from typing import Any, Dict, List, Optional

from langchain_core.tools import StructuredTool

from careercraft.tools.store import ProfileStore, ResourceNotFoundError
from careercraft.validation.schemas import GenerateCoverLetter, GenerateResume

logger = logging.getLogger(__name__)

RESUME_SECTIONS = ("work_history", "skills", "education", "preferences")


def _dates(job: Dict[str, Any]) -> str:
    start = job.get("start_date") or "?"
    end = job.get("end_date") or "Present"
    return f"{start} - {end}"


def render_resume(profile: Dict[str, Any], sections: List[str], style: str) -> str:
    wanted = RESUME_SECTIONS if "all" in sections else [s for s in sections if s in RESUME_SECTIONS]
    heading = "=" * 40 if style == "Traditional" else "-" * 40
    lines = [f"RESUME ({style})", heading]
    if "work_history" in wanted and profile.get("work_history"):
        lines.append("EXPERIENCE")
        for job in profile["work_history"]:
            lines.append(f"{job['job_title']}, {job['company_name']} ({_dates(job)})")
            for item in job.get("responsibilities", []):
                lines.append(f"  - {item}")
            for achievement in job.get("achievements", []):
                lines.append(f"  * {achievement['description']}")
        lines.append("")
    if "skills" in wanted and profile.get("skills"):
        lines.append("SKILLS")
        lines.append(", ".join(s["name"] for s in profile["skills"]))
        lines.append("")
    if "education" in wanted and profile.get("education"):
        lines.append("EDUCATION")
        for edu in profile["education"]:
            lines.append(f"{edu.get('degree') or ''} {edu.get('institution') or ''}".strip())
    return "\n".join(lines).rstrip()


def generate_resume_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def generate_resume(format: str = "Text", style: str = "Modern", sections: Optional[List[str]] = None) -> str:
        profile = store.get_profile(user_id)
        if not profile.get("work_history") and not profile.get("skills"):
            raise ResourceNotFoundError("work history or skills to build a resume from")
        body = render_resume(profile, sections or ["all"], style)
        logger.info(f"Generated {style} resume ({format}), {len(body)} chars")
        return f"Generated {style} resume in {format} format:\n\n{body}"

    return StructuredTool.from_function(
        coroutine=generate_resume,
        name="generate_resume",
        description="Generate a formatted resume from the user's stored profile",
        args_schema=GenerateResume,
    )


def generate_cover_letter_tool(user_id: str, store: ProfileStore) -> StructuredTool:
    async def generate_cover_letter(
        job_title: str,
        company: str,
        style: str = "Professional",
        key_points: Optional[List[str]] = None,
    ) -> str:
        profile = store.get_profile(user_id)
        jobs = profile.get("work_history") or []
        skills = [s["name"] for s in profile.get("skills") or []]
        paragraphs = [
            "Dear Hiring Manager,",
            f"I am writing to apply for the {job_title} position at {company}.",
        ]
        if jobs:
            latest = jobs[-1]
            paragraphs.append(
                f"In my role as {latest['job_title']} at {latest['company_name']}, "
                f"I have built experience directly relevant to this position."
            )
        if skills:
            paragraphs.append(f"My key skills include {', '.join(skills[:8])}.")
        for point in key_points or []:
            paragraphs.append(point)
        paragraphs.append(f"Thank you for considering my application to {company}.")
        paragraphs.append("Sincerely,")
        return f"Generated {style} cover letter for {job_title} at {company}:\n\n" + "\n\n".join(paragraphs)

    return StructuredTool.from_function(
        coroutine=generate_cover_letter,
        name="generate_cover_letter",
        description="Generate a cover letter for a job from the user's stored profile",
        args_schema=GenerateCoverLetter,
    )
