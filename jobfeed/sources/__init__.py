from .base import FetchOutcome, ProviderFetcher
from .greenhouse import GreenhouseFetcher
from .lever import LeverFetcher

from jobfeed.config import DEFAULT_FETCH_TIMEOUT
from jobfeed.log import get_logger

log = get_logger(__name__)

__all__ = [
    "FetchOutcome", "ProviderFetcher", "LeverFetcher", "GreenhouseFetcher",
    "PROVIDERS", "get_fetchers",
]

PROVIDERS: dict[str, type[ProviderFetcher]] = {
    LeverFetcher.name: LeverFetcher,
    GreenhouseFetcher.name: GreenhouseFetcher,
}


def get_fetchers(
    names, session=None, timeout: float = DEFAULT_FETCH_TIMEOUT
) -> list[ProviderFetcher]:
    fetchers: list[ProviderFetcher] = []
    for name in names:
        cls = PROVIDERS.get(name.lower())
        if cls is None:
            log.warning("Unknown ATS provider %r, skipping", name)
            continue
        fetchers.append(cls(session=session, timeout=timeout))
        log.info("Registered provider: %s", cls.name)
    return fetchers
