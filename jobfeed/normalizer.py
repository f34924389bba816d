"""Map provider payloads onto the canonical job schema.

Each provider family has a fixed alias table; the first alias holding a
non-empty scalar wins, dotted aliases walk nested objects. Payload shapes
outside the known families go through the generic table.
"""
from __future__ import annotations

import html
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable

from jobfeed.extract import extract_sections
from jobfeed.log import get_logger
from jobfeed.models import CanonicalJob, RawPosting

log = get_logger(__name__)

FIELD_ALIASES: dict[str, dict[str, tuple[str, ...]]] = {
    "lever": {
        "id": ("id", "_id"),
        "title": ("text", "title", "position"),
        "company": ("company.name", "company"),
        "location": ("categories.location", "categories.locationName", "location"),
        "url": ("hostedUrl", "applyUrl", "url", "redirect_url"),
        "description": ("description", "descriptionPlain", "contents"),
        "posted_at": ("createdAt", "created_at"),
        "salary": ("salary", "compensation"),
    },
    "greenhouse": {
        "id": ("id", "job_id", "internal_job_id"),
        "title": ("title",),
        "company": ("company_name", "company.name"),
        "location": ("location.name", "location"),
        "url": ("absolute_url", "url"),
        "description": ("content", "description"),
        "posted_at": ("updated_at", "first_published", "created_at"),
        "salary": ("salary", "compensation"),
    },
    "generic": {
        "id": ("id", "job_id", "slug", "url"),
        "title": ("title", "name", "position", "role"),
        "company": ("company.name", "company", "employer", "organisation", "organization"),
        "location": ("location.name", "location.display_name", "location", "area", "region"),
        "url": ("url", "refs.landing_page", "refs.api", "sourceUrl", "source_url", "redirect_url"),
        "description": ("description", "contents", "summary", "snippet"),
        "posted_at": ("postedAt", "date_posted", "created_at", "posted", "publication_date"),
        "salary": ("salary", "salary_range", "remuneration", "package"),
    },
}

_SPLIT_RE = re.compile(r"[,;|]")
_SUFFIX_LEN = 7


def _lookup(payload: dict[str, Any], path: str) -> Any:
    value: Any = payload
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def first_value(payload: dict[str, Any], aliases: Iterable[str]) -> str:
    """First non-empty scalar among *aliases*, as a string; "" if none."""
    for alias in aliases:
        value = _lookup(payload, alias)
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, (str, int, float)):
            text = str(value).strip()
            if text:
                return text
    return ""


def as_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        out = []
        for v in value:
            if isinstance(v, dict):
                v = v.get("name") or v.get("title")
            if v:
                out.append(str(v).strip())
        return [v for v in out if v]
    if isinstance(value, str):
        return [s.strip() for s in _SPLIT_RE.split(value) if s.strip()]
    return [str(value)]


def _uniq(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for it in items:
        key = it.lower()
        if it and key not in seen:
            seen.add(key)
            out.append(it)
    return out


def synthetic_id(company: str, provider: str) -> str:
    return f"{company}-{provider}-{uuid.uuid4().hex[:_SUFFIX_LEN]}"


def _iso_from_epoch(value: Any) -> str:
    try:
        ts = float(value)
    except (TypeError, ValueError):
        return str(value or "")
    # Lever reports epoch milliseconds
    if ts > 1e12:
        ts /= 1000.0
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return ""


def _match_score(payload: dict[str, Any]) -> int:
    for key in ("matchScore", "match_score", "score"):
        value = payload.get(key)
        if value is None or isinstance(value, bool):
            continue
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            continue
    return 0


# -- provider specifics ----------------------------------------------------

def _lever_description(payload: dict[str, Any], fallback: str) -> str:
    """Fold Lever's ``lists`` and ``additional`` blocks into one document."""
    parts = [fallback]
    for block in payload.get("lists") or []:
        if not isinstance(block, dict):
            continue
        heading = str(block.get("text") or "").strip()
        content = str(block.get("content") or "")
        if heading:
            parts.append(f"<h3>{html.escape(heading)}</h3>")
        if content:
            parts.append(content if re.match(r"\s*<(ul|ol)\b", content, re.I) else f"<ul>{content}</ul>")
    if payload.get("additional"):
        parts.append(str(payload["additional"]))
    return "\n".join(p for p in parts if p)


def _lever_salary(payload: dict[str, Any]) -> str:
    rng = payload.get("salaryRange")
    if not isinstance(rng, dict):
        return ""
    low, high = rng.get("min"), rng.get("max")
    if low is None and high is None:
        return ""
    amount = f"{low}-{high}" if low is not None and high is not None else str(low if low is not None else high)
    return " ".join(str(p) for p in (rng.get("currency"), amount, rng.get("interval")) if p)


def _lever_tags(payload: dict[str, Any]) -> list[str]:
    categories = payload.get("categories") if isinstance(payload.get("categories"), dict) else {}
    tags = [str(categories[k]) for k in ("team", "department", "commitment") if categories.get(k)]
    return tags + as_list(payload.get("tags"))


def _greenhouse_tags(payload: dict[str, Any]) -> list[str]:
    return as_list(payload.get("departments")) + as_list(payload.get("tags"))


def _generic_tags(payload: dict[str, Any]) -> list[str]:
    tags = as_list(payload.get("tags"))
    for key in ("skills", "keywords", "categories"):
        tags.extend(as_list(payload.get(key)))
    return tags


# -- entry points ----------------------------------------------------------

def normalize_payload(payload: dict[str, Any], company: str, provider: str) -> CanonicalJob:
    """Canonical job for one raw payload of the given provider family."""
    table = FIELD_ALIASES.get(provider, FIELD_ALIASES["generic"])

    def get(name: str) -> str:
        return first_value(payload, table[name])

    description = get("description")
    posted_at = get("posted_at")
    salary = get("salary")

    if provider == "lever":
        description = _lever_description(payload, description)
        if payload.get("createdAt") is not None:
            posted_at = _iso_from_epoch(payload["createdAt"])
        salary = salary or _lever_salary(payload)
        tags = _lever_tags(payload)
    elif provider == "greenhouse":
        # the board API HTML-escapes content
        if "&lt;" in description:
            description = html.unescape(description)
        tags = _greenhouse_tags(payload)
    else:
        tags = _generic_tags(payload)
    tags = _uniq(tags)

    title = get("title")
    sections = extract_sections(
        description,
        context=" ".join([title] + tags),
        known_tags=tags,
    )

    return CanonicalJob(
        id=get("id") or synthetic_id(company, provider),
        title=title,
        company=company or get("company"),
        location=get("location"),
        source=provider,
        match_score=_match_score(payload),
        salary=salary or None,
        posted_at=posted_at,
        description=description,
        clean_description=sections.clean_description,
        responsibilities=sections.responsibilities,
        requirements=sections.requirements,
        benefits=sections.benefits,
        employment_type=sections.employment_type,
        seniority=sections.seniority,
        skills=sections.skills,
        tags=tuple(tags),
        source_url=get("url") or None,
        raw=payload,
    )


def normalize(raw: RawPosting, company: str) -> CanonicalJob:
    """Canonical job for a tagged raw posting; the tag picks the field table."""
    return normalize_payload(raw.payload, company, raw.provider)


def normalize_batch(raws: Iterable[RawPosting], company: str) -> list[CanonicalJob]:
    """Normalize one company's postings in source order.

    A posting that cannot be mapped is logged and dropped.
    """
    jobs: list[CanonicalJob] = []
    for raw in raws:
        try:
            jobs.append(normalize(raw, company))
        except (TypeError, ValueError, AttributeError, OverflowError) as exc:
            log.warning("Skipping malformed %s posting for %s: %s", raw.provider, company, exc)
    return jobs
