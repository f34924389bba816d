"""
ATS job aggregation pipeline.

Runs: registry → provider fetch per company (bounded thread pool) →
normalize → dedupe → query filter → cache.
"""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Sequence

from jobfeed.cache import ResultCache
from jobfeed.config import Settings, load_settings
from jobfeed.log import get_logger
from jobfeed.models import AggregationResult, CandidateStatus, CanonicalJob, CompanyConfig, ProviderError
from jobfeed.normalizer import normalize_batch
from jobfeed.registry import CompanyRegistry
from jobfeed.sources import FetchOutcome, ProviderFetcher, get_fetchers

log = get_logger(__name__)


def matches_query(job: CanonicalJob, query: str) -> bool:
    if not query:
        return True
    hay = f"{job.title} {job.description} {job.location}".lower()
    return query.lower() in hay


def _fetch_company(fetcher: ProviderFetcher, company: CompanyConfig) -> tuple[FetchOutcome, list[CanonicalJob]]:
    """Wrapper for parallel fetching; one company never fails the pass."""
    try:
        outcome = fetcher.fetch(company.slug)
        jobs = normalize_batch(outcome.postings, company.slug)
        log.info("[%s/%s] returned %d jobs", fetcher.name, company.slug, len(jobs))
        return outcome, jobs
    except Exception as exc:
        log.error("[%s/%s] FAILED: %s", fetcher.name, company.slug, exc)
        failed = CandidateStatus(company.slug, fetcher.name, "", False, 0, 0, str(exc)[:200])
        return FetchOutcome(attempts=[failed]), []


class JobAggregator:
    def __init__(
        self,
        registry: CompanyRegistry,
        fetchers: Sequence[ProviderFetcher],
        cache: ResultCache | None = None,
        max_workers: int = 8,
    ) -> None:
        self.registry = registry
        self.fetchers = list(fetchers)
        self.cache = cache if cache is not None else ResultCache()
        self.max_workers = max(1, max_workers)

    @classmethod
    def from_settings(cls, settings: Settings | None = None, session=None) -> JobAggregator:
        settings = settings or load_settings()
        return cls(
            registry=CompanyRegistry.load(settings.companies_path),
            fetchers=get_fetchers(settings.providers, session=session, timeout=settings.fetch_timeout),
            cache=ResultCache(default_ttl=settings.cache_ttl),
            max_workers=settings.max_workers,
        )

    def _tasks(self) -> list[tuple[CompanyConfig, ProviderFetcher]]:
        return [(c, f) for c in self.registry for f in self.fetchers]

    def aggregate(self, query: str = "") -> AggregationResult:
        """Fetch every company from every provider; uncached."""
        query = (query or "").strip()
        tasks = self._tasks()
        if not tasks:
            log.warning("No companies or providers configured — nothing to fetch")
            return AggregationResult()

        log.info("Fetching %d company/provider pair(s) with %d worker(s)...", len(tasks), self.max_workers)
        results: dict[int, tuple[FetchOutcome, list[CanonicalJob]]] = {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(tasks))) as pool:
            futures = {
                pool.submit(_fetch_company, fetcher, company): i
                for i, (company, fetcher) in enumerate(tasks)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        result = AggregationResult()
        seen: set[str] = set()
        # merge in registry order so one company's postings keep source order
        for i, (company, fetcher) in enumerate(tasks):
            outcome, jobs = results[i]
            if outcome.unreachable:
                last = outcome.attempts[-1]
                result.provider_errors.append(
                    ProviderError(company.slug, fetcher.name, last.status, last.preview[:200])
                )
            for job in jobs:
                if job.id in seen:
                    continue
                seen.add(job.id)
                if matches_query(job, query):
                    result.jobs.append(job)

        log.info(
            "Aggregated %d job(s) for query=%r (%d provider error(s))",
            len(result.jobs), query, len(result.provider_errors),
        )
        return result

    def fetch_jobs(self, query: str = "") -> list[CanonicalJob]:
        """Cached aggregation keyed by query; never raises for provider trouble."""
        query = (query or "").strip()
        jobs = self.cache.get_or_fetch(f"ats:{query}", lambda: self.aggregate(query).jobs)
        # shared list; callers get their own
        return list(jobs)

    def diagnostics(self) -> list[CandidateStatus]:
        """Probe every candidate URL of every company and provider."""
        tasks = self._tasks()
        if not tasks:
            return []
        results: dict[int, list[CandidateStatus]] = {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(tasks))) as pool:
            futures = {
                pool.submit(fetcher.probe, company.slug): i
                for i, (company, fetcher) in enumerate(tasks)
            }
            for future in as_completed(futures):
                i = futures[future]
                try:
                    results[i] = future.result()
                except Exception as exc:
                    company, fetcher = tasks[i]
                    log.error("[%s/%s] probe FAILED: %s", fetcher.name, company.slug, exc)
                    results[i] = [CandidateStatus(company.slug, fetcher.name, "", False, 0, 0, str(exc)[:200])]
        return [status for i in range(len(tasks)) for status in results[i]]


_default: JobAggregator | None = None
_default_lock = threading.Lock()


def get_aggregator() -> JobAggregator:
    """Process-wide aggregator built from settings on first use."""
    global _default
    with _default_lock:
        if _default is None:
            _default = JobAggregator.from_settings()
        return _default


def fetch_jobs(query: str = "") -> list[CanonicalJob]:
    return get_aggregator().fetch_jobs(query)
