"""Load pipeline settings, company registry path and match profile."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import load_dotenv

from jobfeed.log import get_logger
from jobfeed.models import MatchPreferences, ResumeProfile

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
COMPANIES_PATH: Path = CONFIG_DIR / "ats_companies.json"
PROFILE_PATH: Path = CONFIG_DIR / "profile.yaml"
REPORTS_DIR: Path = ROOT_DIR / "reports"

DEFAULT_CACHE_TTL = 3600
DEFAULT_MAX_WORKERS = 8
DEFAULT_FETCH_TIMEOUT = 8.0
DEFAULT_PROVIDERS: tuple[str, ...] = ("lever", "greenhouse")


@dataclass(frozen=True)
class Settings:
    cache_ttl: int = DEFAULT_CACHE_TTL
    max_workers: int = DEFAULT_MAX_WORKERS
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    providers: tuple[str, ...] = DEFAULT_PROVIDERS
    companies_path: Path = COMPANIES_PATH


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _env_number(key: str, default, cast):
    raw = get_env(key)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        log.warning("Invalid %s=%r, using default %s", key, raw, default)
        return default


def load_settings() -> Settings:
    """Read settings from the environment (and .env)."""
    providers = tuple(
        p.strip().lower() for p in get_env("ATS_PROVIDERS").split(",") if p.strip()
    )
    companies = get_env("ATS_COMPANIES_PATH")
    return Settings(
        cache_ttl=max(0, _env_number("ATS_CACHE_TTL", DEFAULT_CACHE_TTL, int)),
        max_workers=max(1, _env_number("ATS_MAX_WORKERS", DEFAULT_MAX_WORKERS, int)),
        fetch_timeout=_env_number("ATS_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT, float),
        providers=providers or DEFAULT_PROVIDERS,
        companies_path=Path(companies) if companies else COMPANIES_PATH,
    )


def load_profile(
    path: Path = PROFILE_PATH,
) -> tuple[ResumeProfile | None, MatchPreferences]:
    """Resume profile and match preferences from profile.yaml.

    A missing or unreadable file means "no resume, no preferences".
    """
    if not path.exists():
        return None, MatchPreferences()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        log.warning("Failed to read profile %s: %s", path, exc)
        return None, MatchPreferences()

    if not isinstance(data, dict):
        log.warning("Profile %s is not a mapping, ignoring", path)
        return None, MatchPreferences()

    resume = ResumeProfile.from_dict(data.get("resume")) if data.get("resume") else None
    return resume, MatchPreferences.from_dict(data.get("preferences"))
