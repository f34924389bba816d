"""Candidate-URL fetching shared by every ATS provider family.

ATS board endpoints are undocumented and change shape without notice, so each
provider lists a few URL templates that are tried in order. A candidate that
errors, returns non-2xx, is not JSON or yields no postings is skipped; when
every candidate fails the company simply contributes no postings.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import requests

from jobfeed.config import DEFAULT_FETCH_TIMEOUT
from jobfeed.log import get_logger
from jobfeed.models import CandidateStatus, RawPosting

log = get_logger(__name__)

_PREVIEW_CHARS = 200


@dataclass
class FetchOutcome:
    postings: list[RawPosting] = field(default_factory=list)
    attempts: list[CandidateStatus] = field(default_factory=list)

    @property
    def unreachable(self) -> bool:
        """No postings and at least one candidate failed below the JSON level."""
        return not self.postings and any(not a.ok for a in self.attempts)


class ProviderFetcher(ABC):
    name: str = ""
    posting_cls: type = dict

    def __init__(self, session: Any = None, timeout: float = DEFAULT_FETCH_TIMEOUT) -> None:
        # the requests module and a requests.Session share the get() signature
        self._http = session if session is not None else requests
        self.timeout = timeout

    @abstractmethod
    def candidate_urls(self, company: str) -> list[str]:
        pass

    def extract_postings(self, payload: Any) -> list[dict[str, Any]] | None:
        """Pull the postings array out of a decoded body, or None if absent."""
        if isinstance(payload, list):
            items = payload
        elif isinstance(payload, dict):
            items = payload.get("postings")
            if not isinstance(items, list):
                items = payload.get("jobs")
        else:
            items = None
        if not isinstance(items, list):
            return None
        return [p for p in items if isinstance(p, dict)]

    def _try_candidate(self, company: str, url: str) -> tuple[CandidateStatus, list[dict[str, Any]]]:
        try:
            r = self._http.get(url, headers={"Accept": "application/json"}, timeout=self.timeout)
        except requests.RequestException as exc:
            return CandidateStatus(company, self.name, url, False, 0, 0, str(exc)[:_PREVIEW_CHARS]), []

        preview = (r.text or "")[:_PREVIEW_CHARS]
        if not r.ok:
            return CandidateStatus(company, self.name, url, False, r.status_code, 0, preview), []

        try:
            payload = r.json()
        except ValueError:
            return CandidateStatus(company, self.name, url, False, r.status_code, 0, preview), []

        items = self.extract_postings(payload) or []
        return CandidateStatus(company, self.name, url, True, r.status_code, len(items), preview), items

    def fetch(self, company: str) -> FetchOutcome:
        outcome = FetchOutcome()
        for url in self.candidate_urls(company):
            status, items = self._try_candidate(company, url)
            outcome.attempts.append(status)
            if items:
                log.info(
                    "%s candidate ok company=%s url=%s count=%d",
                    self.name, company, url, len(items),
                )
                outcome.postings = [self.posting_cls(payload=p) for p in items]
                return outcome
            log.debug(
                "%s candidate failed company=%s url=%s status=%s ok=%s",
                self.name, company, url, status.status, status.ok,
            )
        log.info("%s: no postings for company=%s", self.name, company)
        return outcome

    def fetch_postings(self, company: str) -> list[RawPosting]:
        return self.fetch(company).postings

    def probe(self, company: str) -> list[CandidateStatus]:
        """Hit every candidate (no early exit) and report what each returned."""
        return [self._try_candidate(company, url)[0] for url in self.candidate_urls(company)]
