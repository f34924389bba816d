"""Integration tests for the aggregation pipeline with faked provider HTTP."""

import json
import time

import pytest

from fakes import FakeResponse, FakeSession, greenhouse_url, lever_board_url, lever_url
from jobfeed import aggregator as aggregator_module
from jobfeed.aggregator import JobAggregator, matches_query
from jobfeed.cache import ResultCache
from jobfeed.config import Settings
from jobfeed.registry import CompanyRegistry
from jobfeed.sources import GreenhouseFetcher, LeverFetcher


def build(slugs, session, clock, providers=("lever", "greenhouse"), ttl=60):
    fetchers = {"lever": LeverFetcher, "greenhouse": GreenhouseFetcher}
    return JobAggregator(
        registry=CompanyRegistry.from_slugs(slugs),
        fetchers=[fetchers[p](session=session) for p in providers],
        cache=ResultCache(default_ttl=ttl, clock=clock),
        max_workers=4,
    )


@pytest.fixture
def acme_session(lever_payload):
    return FakeSession({
        lever_url("acme"): FakeResponse(200, [
            lever_payload(id="l-1", text="Backend Engineer"),
            lever_payload(id="l-2", text="Product Designer", categories={"location": "Lisbon"}),
        ]),
    })


class TestFetchJobs:
    def test_two_lever_postings(self, acme_session, clock):
        jobs = build(["acme"], acme_session, clock).fetch_jobs("")
        assert len(jobs) == 2
        assert all(j.source == "lever" for j in jobs)
        assert [j.id for j in jobs] == ["l-1", "l-2"]
        assert all(j.company == "acme" for j in jobs)

    def test_unreachable_company_yields_nothing_and_does_not_raise(self, clock):
        agg = build(["ghost-co"], FakeSession(), clock)
        assert agg.fetch_jobs("") == []

    def test_query_filters_title_description_and_location(self, acme_session, clock):
        agg = build(["acme"], acme_session, clock)
        assert [j.id for j in agg.fetch_jobs("designer")] == ["l-2"]
        assert [j.id for j in agg.fetch_jobs("LISBON")] == ["l-2"]
        assert [j.id for j in agg.fetch_jobs("kafka")] == ["l-1", "l-2"]
        assert agg.fetch_jobs("haskell") == []

    def test_second_call_is_served_from_cache(self, acme_session, clock):
        agg = build(["acme"], acme_session, clock)
        first = agg.fetch_jobs("")
        calls = len(acme_session.calls)
        second = agg.fetch_jobs("")
        assert len(acme_session.calls) == calls
        assert first == second
        assert first is not second

    def test_refetches_after_ttl(self, acme_session, clock):
        agg = build(["acme"], acme_session, clock, ttl=60)
        agg.fetch_jobs("")
        calls = len(acme_session.calls)
        clock.advance(61)
        agg.fetch_jobs("")
        assert len(acme_session.calls) == calls * 2

    def test_queries_are_cached_separately(self, acme_session, clock):
        agg = build(["acme"], acme_session, clock)
        agg.fetch_jobs("designer")
        agg.fetch_jobs("engineer")
        assert agg.cache.get_entry("ats:designer") is not None
        assert agg.cache.get_entry("ats:engineer") is not None

    def test_callers_cannot_corrupt_cached_list(self, acme_session, clock):
        agg = build(["acme"], acme_session, clock)
        agg.fetch_jobs("").clear()
        assert len(agg.fetch_jobs("")) == 2


class TestAggregate:
    def test_provider_errors_are_reported(self, acme_session, clock):
        result = build(["acme"], acme_session, clock).aggregate("")
        assert len(result.jobs) == 2
        # acme has no greenhouse board
        assert [(e.company, e.provider, e.status) for e in result.provider_errors] == [
            ("acme", "greenhouse", 404)
        ]

    def test_empty_board_is_not_an_error(self, clock):
        session = FakeSession({
            lever_url("quiet"): FakeResponse(200, []),
            lever_board_url("quiet"): FakeResponse(200, []),
        })
        result = build(["quiet"], session, clock, providers=("lever",)).aggregate("")
        assert result.jobs == []
        assert result.provider_errors == []

    def test_one_failing_fetcher_does_not_break_the_rest(self, acme_session, clock):
        class ExplodingFetcher(GreenhouseFetcher):
            def fetch(self, company):
                raise RuntimeError("board exploded")

        agg = JobAggregator(
            registry=CompanyRegistry.from_slugs(["acme"]),
            fetchers=[LeverFetcher(session=acme_session), ExplodingFetcher(session=acme_session)],
            cache=ResultCache(clock=clock),
        )
        result = agg.aggregate("")
        assert len(result.jobs) == 2
        assert result.provider_errors[0].provider == "greenhouse"
        assert "board exploded" in result.provider_errors[0].detail

    def test_duplicate_ids_are_dropped_in_registry_order(self, lever_payload, clock):
        posting = [lever_payload(id="shared")]
        session = FakeSession({
            lever_url("acme"): FakeResponse(200, posting),
            lever_url("acme-eu"): FakeResponse(200, posting),
        })
        jobs = build(["acme", "acme-eu"], session, clock, providers=("lever",)).aggregate("").jobs
        assert [(j.id, j.company) for j in jobs] == [("shared", "acme")]

    def test_mixed_providers_merge_in_registry_order(self, lever_payload, greenhouse_payload, clock):
        session = FakeSession({
            lever_url("acme"): FakeResponse(200, [lever_payload(id="l-1")]),
            greenhouse_url("globex"): FakeResponse(200, {"jobs": [greenhouse_payload(id=7)]}),
        })
        jobs = build(["acme", "globex"], session, clock).aggregate("").jobs
        assert [(j.company, j.source, j.id) for j in jobs] == [
            ("acme", "lever", "l-1"),
            ("globex", "greenhouse", "7"),
        ]

    def test_nothing_configured(self, clock):
        result = build([], FakeSession(), clock).aggregate("")
        assert result.jobs == []
        assert result.provider_errors == []


def test_diagnostics_keeps_task_order(clock):
    session = FakeSession({lever_url("beta"): FakeResponse(200, [{"id": "1"}])})
    statuses = build(["acme", "beta"], session, clock, providers=("lever",)).diagnostics()
    assert [(s.company, s.url, s.ok) for s in statuses] == [
        ("acme", lever_url("acme"), False),
        ("acme", lever_board_url("acme"), False),
        ("beta", lever_url("beta"), True),
        ("beta", lever_board_url("beta"), False),
    ]


def test_from_settings(tmp_path, acme_session):
    path = tmp_path / "companies.json"
    path.write_text(json.dumps(["acme"]), encoding="utf-8")
    settings = Settings(cache_ttl=5, max_workers=2, fetch_timeout=1.5, providers=("lever",), companies_path=path)
    agg = JobAggregator.from_settings(settings, session=acme_session)
    assert agg.registry.slugs == ("acme",)
    assert [f.name for f in agg.fetchers] == ["lever"]
    assert agg.cache.default_ttl == 5
    assert agg.max_workers == 2
    assert len(agg.fetch_jobs()) == 2
    assert acme_session.calls[0]["timeout"] == 1.5


def test_module_level_fetch_jobs_uses_shared_aggregator(monkeypatch, acme_session, clock):
    agg = build(["acme"], acme_session, clock, providers=("lever",))
    monkeypatch.setattr(aggregator_module, "_default", agg)
    assert aggregator_module.get_aggregator() is agg
    assert len(aggregator_module.fetch_jobs("engineer")) == 1


def test_matches_query_empty_query_matches_everything(lever_posting):
    from jobfeed.normalizer import normalize

    assert matches_query(normalize(lever_posting(), "acme"), "")


def test_non_finite_score_keeps_company_postings(lever_payload, clock):
    session = FakeSession({
        lever_url("acme"): FakeResponse(200, [
            lever_payload(id="ok-1"),
            lever_payload(id="bad", matchScore=float("inf")),
        ]),
    })
    result = build(["acme"], session, clock, providers=("lever",)).aggregate("")
    assert [j.id for j in result.jobs] == ["ok-1", "bad"]
    assert result.provider_errors == []


def test_slow_boards_are_fetched_in_parallel(lever_payload, clock):
    slugs = ["acme", "globex", "initech", "umbrella"]
    delay = 0.3
    session = FakeSession(
        {lever_url(s): FakeResponse(200, [lever_payload(id=f"{s}-1")]) for s in slugs},
        delay=delay,
    )
    agg = build(slugs, session, clock, providers=("lever",))
    assert agg.max_workers == 4

    started = time.monotonic()
    jobs = agg.aggregate("").jobs
    elapsed = time.monotonic() - started

    assert [j.id for j in jobs] == [f"{s}-1" for s in slugs]
    assert elapsed < delay * len(slugs) * 0.75
