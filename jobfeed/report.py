"""Markdown reports: ranked job digest and provider diagnostics."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse

from jobfeed.config import REPORTS_DIR
from jobfeed.log import get_logger
from jobfeed.models import CandidateStatus, CanonicalJob

log = get_logger(__name__)

_TOP = 25


def _short_url_label(url: str) -> str:
    host = (urlparse(url).hostname or "").replace("www.", "")
    parts = host.split(".")
    return parts[0].capitalize() if parts and parts[0] else "Link"


def _clip(text: str, n: int) -> str:
    return text[:n] + ("…" if len(text) > n else "")


def build_jobs_report(jobs: list[CanonicalJob], *, query: str = "") -> str:
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    lines: list[str] = [f"# Job Digest — {date}", ""]

    sources = sorted({j.source for j in jobs})
    companies = {j.company for j in jobs}
    label = f" for “{query}”" if query else ""
    lines.append(
        f"**{len(jobs)}** jobs{label} from **{len(companies)}** companies ({', '.join(sources) or 'none'})"
    )
    lines.append("")

    top = jobs[:_TOP]
    if top:
        lines.append("## Top Matches")
        lines.append("")
        lines.append("| # | Role | Company | Location | Score | Type | Source | Link |")
        lines.append("|--:|------|---------|----------|------:|------|--------|------|")
        for i, j in enumerate(top, 1):
            loc = j.location.split(",")[0][:18]
            link = f"[{_short_url_label(j.source_url)}]({j.source_url})" if j.source_url else "—"
            lines.append(
                f"| {i} | {_clip(j.title, 40)} | {_clip(j.company, 22)} | {loc} | "
                f"{j.match_score}% | {j.employment_type or '—'} | {j.source} | {link} |"
            )
        lines.append("")

    log.info("Built jobs report: %d jobs", len(jobs))
    return "\n".join(lines)


def build_diagnostics_report(statuses: list[CandidateStatus]) -> str:
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M")
    lines: list[str] = [f"# ATS Feed Diagnostics — {date} UTC", ""]

    by_company: dict[str, list[CandidateStatus]] = {}
    for s in statuses:
        by_company.setdefault(s.company, []).append(s)

    dead = [
        (company, provider)
        for company, rows in by_company.items()
        for provider in sorted({r.provider for r in rows})
        if not any(r.ok and r.result_count for r in rows if r.provider == provider)
    ]
    lines.append(
        f"**{len(by_company)}** companies | **{len(statuses)}** candidate URLs | "
        f"**{len(dead)}** company/provider pairs with no postings"
    )
    lines.append("")

    for company, rows in by_company.items():
        lines.append(f"## {company}")
        lines.append("")
        lines.append("| Provider | URL | OK | Status | Results |")
        lines.append("|----------|-----|----|-------:|--------:|")
        for r in rows:
            ok = "✅" if r.ok else "❌"
            lines.append(f"| {r.provider} | {r.url or '—'} | {ok} | {r.status} | {r.result_count} |")
        lines.append("")

    if dead:
        lines.append("## No Postings")
        lines.append("")
        for company, provider in dead:
            lines.append(f"- **{company}** on {provider}")
        lines.append("")

    log.info("Built diagnostics report: %d companies, %d without postings", len(by_company), len(dead))
    return "\n".join(lines)


def write_report(content: str, name: str = "jobs") -> Path:
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    path = REPORTS_DIR / f"{name}_{date}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path
