"""Unit tests for environment settings and profile loading."""

from pathlib import Path

import pytest

from jobfeed.config import COMPANIES_PATH, DEFAULT_PROVIDERS, load_profile, load_settings

ENV_KEYS = ("ATS_CACHE_TTL", "ATS_MAX_WORKERS", "ATS_FETCH_TIMEOUT", "ATS_PROVIDERS", "ATS_COMPANIES_PATH")


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestLoadSettings:
    def test_defaults(self, clean_env):
        s = load_settings()
        assert s.cache_ttl == 3600
        assert s.max_workers == 8
        assert s.fetch_timeout == 8.0
        assert s.providers == DEFAULT_PROVIDERS
        assert s.companies_path == COMPANIES_PATH

    def test_overrides(self, clean_env):
        clean_env.setenv("ATS_CACHE_TTL", "120")
        clean_env.setenv("ATS_MAX_WORKERS", "3")
        clean_env.setenv("ATS_FETCH_TIMEOUT", "2.5")
        clean_env.setenv("ATS_PROVIDERS", " Lever , ")
        clean_env.setenv("ATS_COMPANIES_PATH", "/tmp/boards.json")
        s = load_settings()
        assert (s.cache_ttl, s.max_workers, s.fetch_timeout) == (120, 3, 2.5)
        assert s.providers == ("lever",)
        assert s.companies_path == Path("/tmp/boards.json")

    def test_invalid_numbers_fall_back(self, clean_env):
        clean_env.setenv("ATS_CACHE_TTL", "an hour")
        clean_env.setenv("ATS_FETCH_TIMEOUT", "soon")
        s = load_settings()
        assert s.cache_ttl == 3600
        assert s.fetch_timeout == 8.0

    def test_values_are_clamped(self, clean_env):
        clean_env.setenv("ATS_CACHE_TTL", "-5")
        clean_env.setenv("ATS_MAX_WORKERS", "0")
        s = load_settings()
        assert s.cache_ttl == 0
        assert s.max_workers == 1


class TestLoadProfile:
    def test_resume_and_preferences(self, tmp_path):
        path = tmp_path / "profile.yaml"
        path.write_text(
            "resume:\n"
            "  skills:\n"
            "    - Python\n"
            "    - name: Kubernetes\n"
            "  experience:\n"
            "    - role: SRE\n"
            "      bullets: [Ran clusters]\n"
            "preferences:\n"
            "  jobTitle: Platform Engineer\n"
            "  location: Remote\n",
            encoding="utf-8",
        )
        resume, prefs = load_profile(path)
        assert resume.skills == ("Python", "Kubernetes")
        assert resume.experience[0].role == "SRE"
        assert resume.experience[0].bullets == ("Ran clusters",)
        assert prefs.job_title == "Platform Engineer"
        assert prefs.location == "Remote"

    def test_missing_file(self, tmp_path):
        resume, prefs = load_profile(tmp_path / "missing.yaml")
        assert resume is None
        assert prefs.job_title is None

    @pytest.mark.parametrize("content", ["resume: [unclosed", "- just\n- a list\n"])
    def test_unusable_file(self, tmp_path, content):
        path = tmp_path / "profile.yaml"
        path.write_text(content, encoding="utf-8")
        resume, prefs = load_profile(path)
        assert resume is None
        assert prefs.location is None

    def test_preferences_without_resume(self, tmp_path):
        path = tmp_path / "profile.yaml"
        path.write_text("preferences:\n  job_title: Analyst\n", encoding="utf-8")
        resume, prefs = load_profile(path)
        assert resume is None
        assert prefs.job_title == "Analyst"
