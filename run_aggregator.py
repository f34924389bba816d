#!/usr/bin/env python3
"""CLI entry point.

Fetches jobs from every configured ATS board, optionally ranks them against
config/profile.yaml, and writes the canonical JSON list to disk.

Examples:
    python run_aggregator.py --out jobs.json
    python run_aggregator.py --query "data engineer" --rank --report
    python run_aggregator.py --diagnose
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from jobfeed.aggregator import JobAggregator
from jobfeed.config import PROFILE_PATH, load_profile
from jobfeed.log import configure_logging, get_logger
from jobfeed.report import build_diagnostics_report, build_jobs_report, write_report
from jobfeed.scorer import rank_jobs

log = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Aggregate and normalize jobs from Lever and Greenhouse boards.")
    p.add_argument("--query", type=str, default="", help="Case-insensitive filter over title, description and location.")
    p.add_argument("--out", type=str, default="jobs.json", help="Output JSON file path.")
    p.add_argument("--rank", action="store_true", help=f"Score and sort jobs against {PROFILE_PATH.name}.")
    p.add_argument("--min-score", type=int, default=0, help="Drop ranked jobs below this score.")
    p.add_argument("--report", action="store_true", help="Also write a Markdown digest to reports/.")
    p.add_argument("--diagnose", action="store_true", help="Probe every candidate URL and write a diagnostics report.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level.")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.verbose:
        configure_logging("DEBUG")
    aggregator = JobAggregator.from_settings()

    if args.diagnose:
        statuses = aggregator.diagnostics()
        path = write_report(build_diagnostics_report(statuses), name="diagnostics")
        log.info("Diagnostics: %d candidate URLs checked → %s", len(statuses), path)
        return 0

    jobs = aggregator.fetch_jobs(args.query)
    if args.rank:
        profile, prefs = load_profile()
        if profile is None and not (prefs.job_title or prefs.location):
            log.warning("No profile at %s — scores will all be 0", PROFILE_PATH)
        jobs = rank_jobs(jobs, profile, prefs, min_score=args.min_score)

    out_path = Path(args.out).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps([j.to_dict() for j in jobs], indent=2, ensure_ascii=False), encoding="utf-8")
    log.info("Wrote %d jobs → %s", len(jobs), out_path)

    if args.report:
        write_report(build_jobs_report(jobs, query=args.query), name="jobs")
    return 0


if __name__ == "__main__":
    sys.exit(main())
