"""Data models for companies, raw postings, canonical jobs and match inputs."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union


@dataclass(frozen=True)
class CompanyConfig:
    slug: str


@dataclass(frozen=True)
class LeverPosting:
    payload: dict[str, Any]
    provider: ClassVar[str] = "lever"


@dataclass(frozen=True)
class GreenhousePosting:
    payload: dict[str, Any]
    provider: ClassVar[str] = "greenhouse"


RawPosting = Union[LeverPosting, GreenhousePosting]


@dataclass(frozen=True)
class CanonicalJob:
    """Provider-agnostic job record.

    Sequence fields are tuples and always present. Instances are never
    mutated; re-scored copies are made with ``dataclasses.replace``.
    """

    id: str
    title: str
    company: str
    location: str
    source: str
    match_score: int = 0
    salary: str | None = None
    posted_at: str = ""
    description: str = ""
    clean_description: str = ""
    responsibilities: tuple[str, ...] = ()
    requirements: tuple[str, ...] = ()
    benefits: tuple[str, ...] = ()
    employment_type: str | None = None
    seniority: str | None = None
    skills: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    source_url: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready wire shape; every field present, camelCase keys."""
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "matchScore": self.match_score,
            "salary": self.salary or "",
            "postedAt": self.posted_at,
            "description": self.description,
            "cleanDescription": self.clean_description,
            "responsibilities": list(self.responsibilities),
            "requirements": list(self.requirements),
            "benefits": list(self.benefits),
            "employmentType": self.employment_type or "",
            "seniority": self.seniority or "",
            "skills": list(self.skills),
            "tags": list(self.tags),
            "sourceUrl": self.source_url or "",
            "source": self.source,
            "raw": self.raw,
        }


@dataclass
class CacheEntry:
    key: str
    timestamp: float
    ttl_seconds: float
    data: Any

    def is_fresh(self, now: float) -> bool:
        return now - self.timestamp < self.ttl_seconds


@dataclass(frozen=True)
class ExperienceEntry:
    role: str | None = None
    title: str | None = None
    bullets: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResumeProfile:
    skills: tuple[str, ...] = ()
    experience: tuple[ExperienceEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.skills and not self.experience

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ResumeProfile:
        """Build from loosely shaped resume data.

        Skills may be plain strings or objects carrying ``name`` or ``title``.
        """
        data = data or {}
        skills: list[str] = []
        for s in data.get("skills") or []:
            if isinstance(s, str):
                value = s
            elif isinstance(s, dict):
                value = s.get("name") or s.get("title") or ""
            else:
                value = ""
            if str(value).strip():
                skills.append(str(value).strip())

        experience: list[ExperienceEntry] = []
        for e in data.get("experience") or []:
            if not isinstance(e, dict):
                continue
            bullets = tuple(str(b) for b in (e.get("bullets") or []) if b)
            experience.append(
                ExperienceEntry(role=e.get("role"), title=e.get("title"), bullets=bullets)
            )
        return cls(skills=tuple(skills), experience=tuple(experience))


@dataclass(frozen=True)
class MatchPreferences:
    job_title: str | None = None
    location: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> MatchPreferences:
        data = data or {}
        return cls(
            job_title=data.get("job_title") or data.get("jobTitle"),
            location=data.get("location"),
        )


@dataclass(frozen=True)
class CandidateStatus:
    """Outcome of one request against one candidate URL."""

    company: str
    provider: str
    url: str
    ok: bool
    status: int
    result_count: int = 0
    preview: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "company": self.company,
            "provider": self.provider,
            "url": self.url,
            "ok": self.ok,
            "status": self.status,
            "resultCount": self.result_count,
            "preview": self.preview,
        }


@dataclass(frozen=True)
class ProviderError:
    company: str
    provider: str
    status: int
    detail: str = ""


@dataclass
class AggregationResult:
    jobs: list[CanonicalJob] = field(default_factory=list)
    provider_errors: list[ProviderError] = field(default_factory=list)
