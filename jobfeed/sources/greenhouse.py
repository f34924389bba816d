"""Greenhouse job board API.

The ``content=true`` variant includes the (HTML-escaped) description and
departments for every job.
"""
from __future__ import annotations

from urllib.parse import quote

from jobfeed.models import GreenhousePosting
from jobfeed.sources.base import ProviderFetcher


class GreenhouseFetcher(ProviderFetcher):
    name = "greenhouse"
    posting_cls = GreenhousePosting

    def candidate_urls(self, company: str) -> list[str]:
        slug = quote(company, safe="")
        return [
            f"https://boards-api.greenhouse.io/v1/boards/{slug}/jobs?content=true",
            f"https://boards.greenhouse.io/{slug}.json",
        ]
