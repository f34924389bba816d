"""Company registry: the board slugs polled on every aggregation pass."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Iterator

from jobfeed.config import COMPANIES_PATH
from jobfeed.log import get_logger
from jobfeed.models import CompanyConfig

log = get_logger(__name__)


class CompanyRegistry:
    def __init__(self, companies: Iterable[CompanyConfig] = ()) -> None:
        self._companies: tuple[CompanyConfig, ...] = tuple(companies)

    @classmethod
    def from_slugs(cls, slugs: Iterable[object]) -> CompanyRegistry:
        seen: set[str] = set()
        companies: list[CompanyConfig] = []
        for item in slugs:
            if not isinstance(item, str) or not item.strip():
                log.warning("Skipping invalid company entry: %r", item)
                continue
            slug = item.strip()
            if slug in seen:
                continue
            seen.add(slug)
            companies.append(CompanyConfig(slug=slug))
        return cls(companies)

    @classmethod
    def load(cls, path: Path = COMPANIES_PATH) -> CompanyRegistry:
        """Read a JSON array of slugs; any failure yields an empty registry."""
        try:
            raw = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            log.warning("Failed to read companies file %s: %s", path, str(exc)[:200])
            return cls()

        try:
            data = json.loads(raw or "[]")
        except ValueError as exc:
            log.warning("Companies file %s is not valid JSON: %s", path, str(exc)[:200])
            return cls()

        if not isinstance(data, list):
            log.warning("Companies file %s must hold a JSON array, got %s", path, type(data).__name__)
            return cls()

        registry = cls.from_slugs(data)
        log.info("Loaded %d companies (sample: %s)", len(registry), list(registry.slugs[:6]))
        return registry

    @property
    def companies(self) -> tuple[CompanyConfig, ...]:
        return self._companies

    @property
    def slugs(self) -> tuple[str, ...]:
        return tuple(c.slug for c in self._companies)

    def __iter__(self) -> Iterator[CompanyConfig]:
        return iter(self._companies)

    def __len__(self) -> int:
        return len(self._companies)
