"""
In-memory profile store backing the agent tools.
Holds per-user preferences, work history, skills, resumes and job postings.
"""
import copy
import logging
import re
import uuid
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Resume/job-posting lines that introduce a skills list
_SKILLS_LINE = re.compile(r"^\s*(skills|technical skills|requirements|required skills|qualifications)\s*:\s*(.+)$", re.I)
_FIELD_LINE = re.compile(r"^\s*(company|location|title|position)\s*:\s*(.+)$", re.I)
# "Senior Engineer at Acme (2019 - 2023)"
_ROLE_LINE = re.compile(r"^\s*(?P<title>[^@\n]+?)\s+(?:at|@)\s+(?P<company>[^(\n]+?)\s*(?:\((?P<dates>[^)]*)\))?\s*$")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


def split_skills(text: str) -> List[str]:
    return [s.strip() for s in re.split(r"[,;]", text) if s.strip()]


def _empty_profile() -> Dict[str, Any]:
    return {
        "preferences": {},
        "work_history": [],
        "education": [],
        "skills": [],
        "resumes": [],
        "job_postings": [],
    }


class ProfileStore:
    """Per-user profile data, guarded by a lock so tools may run from any thread."""

    def __init__(self):
        self._lock = Lock()
        self._profiles: Dict[str, Dict[str, Any]] = {}

    def _profile(self, user_id: str) -> Dict[str, Any]:
        if user_id not in self._profiles:
            self._profiles[user_id] = _empty_profile()
        return self._profiles[user_id]

    def get_profile(self, user_id: str, data_type: str = "all") -> Dict[str, Any]:
        """Copy of the requested profile section(s)."""
        with self._lock:
            profile = self._profile(user_id)
            if data_type == "achievements":
                return {"achievements": [
                    {**a, "job_title": job["job_title"], "company_name": job["company_name"]}
                    for job in profile["work_history"]
                    for a in job["achievements"]
                ]}
            if data_type == "all":
                return {k: copy.deepcopy(v) for k, v in profile.items() if k not in ("resumes", "job_postings")}
            return {data_type: copy.deepcopy(profile.get(data_type, []))}

    def add_preference(self, user_id: str, category: str, preference: str) -> None:
        with self._lock:
            values = self._profile(user_id)["preferences"].setdefault(category, [])
            if preference not in values:
                values.append(preference)

    def add_work_history(
        self,
        user_id: str,
        job_title: str,
        company_name: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        responsibilities: Optional[List[str]] = None,
        achievements: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        record = {
            "id": _new_id("work"),
            "job_title": job_title,
            "company_name": company_name,
            "start_date": start_date,
            "end_date": end_date,
            "responsibilities": list(responsibilities or []),
            "achievements": [
                {"id": _new_id("ach"), "description": a} for a in achievements or []
            ],
        }
        with self._lock:
            self._profile(user_id)["work_history"].append(record)
        return copy.deepcopy(record)

    def get_work_history(self, user_id: str, work_history_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            for job in self._profile(user_id)["work_history"]:
                if job["id"] == work_history_id:
                    return copy.deepcopy(job)
        return None

    def add_achievement(self, user_id: str, work_history_id: str, description: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            for job in self._profile(user_id)["work_history"]:
                if job["id"] == work_history_id:
                    achievement = {"id": _new_id("ach"), "description": description.strip()}
                    job["achievements"].append(achievement)
                    return dict(achievement)
        return None

    def delete_achievement(self, user_id: str, achievement_id: str) -> bool:
        with self._lock:
            for job in self._profile(user_id)["work_history"]:
                for i, achievement in enumerate(job["achievements"]):
                    if achievement["id"] == achievement_id:
                        del job["achievements"][i]
                        return True
        return False

    def add_skills(self, user_id: str, names: List[str], proficiency: str = "INTERMEDIATE", category: str = "General") -> int:
        """Add skills not already present (case-insensitive). Returns how many were new."""
        added = 0
        with self._lock:
            skills = self._profile(user_id)["skills"]
            known = {s["name"].lower() for s in skills}
            for name in names:
                if name.lower() in known:
                    continue
                skills.append({"name": name, "proficiency": proficiency, "category": category})
                known.add(name.lower())
                added += 1
        return added

    def store_resume(self, user_id: str, content: str) -> Dict[str, Any]:
        """
        Store raw resume text and pull out skills and roles.

        Returns:
            Summary dict (resume id, skills found, roles found)
        """
        skills: List[str] = []
        roles: List[Dict[str, Any]] = []
        for line in content.splitlines():
            skills_match = _SKILLS_LINE.match(line)
            if skills_match:
                skills.extend(split_skills(skills_match.group(2)))
                continue
            role_match = _ROLE_LINE.match(line)
            if role_match and len(line) < 120:
                dates = [d.strip() for d in (role_match.group("dates") or "").split("-")]
                roles.append({
                    "job_title": role_match.group("title").strip(),
                    "company_name": role_match.group("company").strip(),
                    "start_date": dates[0] or None,
                    "end_date": dates[1] if len(dates) > 1 and dates[1] else None,
                })

        resume = {"id": _new_id("resume"), "content": content, "stored_at": _now()}
        with self._lock:
            self._profile(user_id)["resumes"].append(resume)
        for role in roles:
            self.add_work_history(user_id, **role)
        new_skills = self.add_skills(user_id, skills)
        logger.info(f"Stored resume {resume['id']}: {len(roles)} roles, {new_skills} new skills")
        return {"resume_id": resume["id"], "skills": skills, "roles": roles}

    def store_job_posting(self, user_id: str, content: str) -> Dict[str, Any]:
        lines = [l.strip() for l in content.splitlines() if l.strip()]
        posting: Dict[str, Any] = {
            "id": _new_id("job"),
            "title": lines[0] if lines else "Untitled position",
            "company": None,
            "location": None,
            "skills": [],
            "content": content,
            "stored_at": _now(),
        }
        for line in lines:
            field_match = _FIELD_LINE.match(line)
            if field_match:
                key = field_match.group(1).lower()
                key = "title" if key == "position" else key
                posting[key] = field_match.group(2).strip()
                continue
            skills_match = _SKILLS_LINE.match(line)
            if skills_match:
                posting["skills"].extend(split_skills(skills_match.group(2)))
        with self._lock:
            self._profile(user_id)["job_postings"].append(posting)
        return copy.deepcopy(posting)

    def find_job_postings(
        self,
        user_id: str,
        title: Optional[str] = None,
        company: Optional[str] = None,
        location: Optional[str] = None,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        criteria = {"title": title, "company": company, "location": location}
        with self._lock:
            postings = list(self._profile(user_id)["job_postings"])
        matches = []
        for posting in reversed(postings):
            if all(
                not wanted or wanted.lower() in (posting.get(key) or "").lower()
                for key, wanted in criteria.items()
            ):
                matches.append(copy.deepcopy(posting))
        return matches[:limit]

    def get_job_posting(self, user_id: str, job_posting_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            for posting in self._profile(user_id)["job_postings"]:
                if posting["id"] == job_posting_id:
                    return copy.deepcopy(posting)
        return None

    def clear(self, user_id: Optional[str] = None) -> None:
        with self._lock:
            if user_id:
                self._profiles.pop(user_id, None)
            else:
                self._profiles.clear()


_store: Optional[ProfileStore] = None


def get_profile_store() -> ProfileStore:
    """Get or create the process-wide profile store."""
    global _store
    if _store is None:
        _store = ProfileStore()
    return _store


class ResourceNotFoundError(Exception):
    """Raised by a tool when the requested record does not exist."""

    def __init__(self, resource: str):
        super().__init__(f"No {resource} found")
        self.resource = resource
