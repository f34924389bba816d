"""Lever public postings API.

Docs: https://github.com/lever/postings-api
"""
from __future__ import annotations

from urllib.parse import quote

from jobfeed.models import LeverPosting
from jobfeed.sources.base import ProviderFetcher


class LeverFetcher(ProviderFetcher):
    name = "lever"
    posting_cls = LeverPosting

    def candidate_urls(self, company: str) -> list[str]:
        slug = quote(company, safe="")
        return [
            f"https://api.lever.co/v0/postings/{slug}?mode=json",
            f"https://jobs.lever.co/{slug}.json",
        ]
