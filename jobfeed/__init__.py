"""ATS job aggregation, normalization and match scoring.

- `sources/` fetches raw postings from each provider's candidate URLs.
- `normalizer.py` and `extract.py` map them onto `models.CanonicalJob`.
- `aggregator.py` runs the pipeline on a bounded worker pool behind a cache.
- `scorer.py` rates a job against a resume profile and preferences.
"""
from jobfeed.aggregator import JobAggregator, fetch_jobs
from jobfeed.scorer import rank_jobs, score_job

__all__ = ["JobAggregator", "fetch_jobs", "rank_jobs", "score_job"]
