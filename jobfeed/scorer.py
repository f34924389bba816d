"""Score canonical jobs against a resume profile and stated preferences."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from typing import Iterable

from jobfeed.log import get_logger
from jobfeed.models import CanonicalJob, MatchPreferences, ResumeProfile

log = get_logger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")

# Tokens of length 2 or less are discarded.
_MIN_TOKEN_LEN = 3

WEIGHTS_WITH_RESUME: dict[str, float] = {"skills": 0.6, "title": 0.3, "location": 0.1}
WEIGHTS_WITHOUT_RESUME: dict[str, float] = {"skills": 0.0, "title": 0.7, "location": 0.3}


@dataclass(frozen=True)
class MatchBreakdown:
    skills: float
    title: float
    location: float
    weights: dict[str, float]
    score: int


def _clean(s: str | None) -> str:
    return _NON_ALNUM.sub(" ", (s or "").lower())


def tokenize(text: str | None) -> list[str]:
    words = [w for w in _clean(text).split() if len(w) >= _MIN_TOKEN_LEN]
    return list(dict.fromkeys(words))


def _job_text(job: CanonicalJob) -> str:
    return " ".join([job.title or "", job.clean_description or job.description or "", " ".join(job.skills)])


def profile_phrases(profile: ResumeProfile | None) -> list[str]:
    """Skills plus experience roles, titles and bullets as cleaned phrases."""
    if profile is None:
        return []
    raw: list[str] = list(profile.skills)
    for e in profile.experience:
        raw.extend(p for p in (e.role, e.title) if p)
        raw.extend(e.bullets)
    phrases = (" ".join(_clean(s).split()) for s in raw)
    return list(dict.fromkeys(p for p in phrases if p))


def _skill_score(phrases: list[str], job_words: set[str], job_text: str) -> float:
    if not phrases:
        return 0.0
    text = job_text.lower()
    matched = 0
    for phrase in phrases:
        if any(t in job_words for t in tokenize(phrase)) or phrase in text:
            matched += 1
    return matched / len(phrases)


def _title_score(target: str | None, job_words: set[str]) -> float:
    target_words = tokenize(target)
    if not target_words:
        return 0.0
    return sum(1 for w in target_words if w in job_words) / len(target_words)


def _location_score(pref: str | None, job_location: str | None) -> float:
    pl = (pref or "").lower().strip()
    jl = (job_location or "").lower().strip()
    if not pl:
        return 0.0
    if "remote" in pl and "remote" in jl:
        return 1.0
    if jl and (pl in jl or jl in pl):
        return 1.0
    return 0.0


def match_breakdown(
    job: CanonicalJob,
    profile: ResumeProfile | None = None,
    prefs: MatchPreferences | None = None,
) -> MatchBreakdown:
    prefs = prefs or MatchPreferences()
    job_text = _job_text(job)
    job_words = set(tokenize(job_text))

    skills = _skill_score(profile_phrases(profile), job_words, job_text)
    title = _title_score(prefs.job_title, job_words)
    location = _location_score(prefs.location, job.location)

    # Without a resume, skill matching means nothing; title and location carry it.
    has_resume = profile is not None and not profile.is_empty
    weights = WEIGHTS_WITH_RESUME if has_resume else WEIGHTS_WITHOUT_RESUME

    total = skills * weights["skills"] + title * weights["title"] + location * weights["location"]
    clamped = min(1.0, max(0.0, total))
    score = int(math.floor(clamped * 100 + 0.5))
    return MatchBreakdown(skills=skills, title=title, location=location, weights=dict(weights), score=score)


def score_job(
    job: CanonicalJob,
    profile: ResumeProfile | None = None,
    prefs: MatchPreferences | None = None,
) -> int:
    """Relevance of *job* in [0, 100]; pure and deterministic."""
    return match_breakdown(job, profile, prefs).score


def rank_jobs(
    jobs: Iterable[CanonicalJob],
    profile: ResumeProfile | None = None,
    prefs: MatchPreferences | None = None,
    min_score: int = 0,
) -> list[CanonicalJob]:
    """Re-scored copies, best first; the input jobs are left untouched."""
    jobs = list(jobs)
    scored = [replace(j, match_score=score_job(j, profile, prefs)) for j in jobs]
    result = sorted([j for j in scored if j.match_score >= min_score], key=lambda j: -j.match_score)
    log.info("Scored %d jobs → %d at or above %d", len(jobs), len(result), min_score)
    return result
