"""
Pytest configuration and shared fixtures.

Tests never touch the network: fetchers get a FakeSession that serves canned
responses per URL and records every request.
"""

import os

import pytest
import requests

os.environ.setdefault("LOG_TO_FILE", "false")

from fakes import FakeClock, FakeSession  # noqa: E402
from jobfeed.models import GreenhousePosting, LeverPosting  # noqa: E402


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")


@pytest.fixture
def lever_payload():
    def make(**overrides):
        payload = {
            "id": "5ac21346-8e0c-4494-8e7a-3eb92ff77902",
            "text": "Senior Backend Engineer",
            "categories": {
                "location": "Remote - US",
                "team": "Platform",
                "commitment": "Full-time",
            },
            "hostedUrl": "https://jobs.lever.co/acme/5ac21346",
            "applyUrl": "https://jobs.lever.co/acme/5ac21346/apply",
            "createdAt": 1700000000000,
            "description": "<p>Join the Platform team.</p>",
            "lists": [
                {"text": "What you will do", "content": "<li>Design APIs</li><li>Operate Kafka clusters</li>"},
                {"text": "Requirements", "content": "<li>5+ years of Python</li>"},
            ],
            "additional": "<p>We are an equal opportunity employer.</p>",
        }
        payload.update(overrides)
        return payload

    return make


@pytest.fixture
def greenhouse_payload():
    def make(**overrides):
        payload = {
            "id": 4012345,
            "title": "Data Engineer",
            "location": {"name": "New York, NY"},
            "absolute_url": "https://boards.greenhouse.io/acme/jobs/4012345",
            "updated_at": "2024-05-01T12:00:00-04:00",
            "content": (
                "&lt;p&gt;Build pipelines.&lt;/p&gt;"
                "&lt;h3&gt;Responsibilities&lt;/h3&gt;"
                "&lt;ul&gt;&lt;li&gt;Own Airflow DAGs&lt;/li&gt;&lt;/ul&gt;"
            ),
            "departments": [{"id": 1, "name": "Data"}],
        }
        payload.update(overrides)
        return payload

    return make


@pytest.fixture
def lever_posting(lever_payload):
    return lambda **kw: LeverPosting(payload=lever_payload(**kw))


@pytest.fixture
def greenhouse_posting(greenhouse_payload):
    return lambda **kw: GreenhousePosting(payload=greenhouse_payload(**kw))
