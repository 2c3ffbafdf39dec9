import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from atlas_agenda.services.atlas import AtlasClient, CompletionResult
from atlas_agenda.services.pipeline import AppointmentPipeline
from atlas_agenda.state import InMemoryState

RIYADH = timezone(timedelta(hours=3))


class FakeAtlasClient:
    def __init__(self, assistant=None, error=None):
        self.assistant = assistant
        self.error = error
        self.calls = []

    async def complete(self, user_text):
        self.calls.append(user_text)
        if self.error is not None:
            raise self.error
        return CompletionResult(raw={}, assistant=self.assistant)


def envelope(content):
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def appointments_reply(*items):
    return json.dumps({"appointments": list(items)}, ensure_ascii=False)


@pytest.fixture
def tz():
    return RIYADH


@pytest.fixture
def fixed_now():
    return datetime(2025, 5, 1, 8, 15, tzinfo=RIYADH)


@pytest.fixture
def event_log():
    return InMemoryState(max_events=50)


@pytest.fixture
def atlas_sources():
    return [{"ATLAS_API_KEY": "test-key"}]


@pytest.fixture
def make_pipeline(fixed_now, event_log):
    def _make(assistant=None, error=None, client=None):
        client = client or FakeAtlasClient(assistant=assistant, error=error)
        pipeline = AppointmentPipeline(
            client=client,
            clock=lambda: fixed_now,
            tz=RIYADH,
            event_log=event_log,
        )
        return pipeline, client

    return _make


@pytest.fixture
def mock_atlas(atlas_sources):
    """AtlasClient wired to an httpx.MockTransport; `requests` records calls."""

    def _make(status=200, json_body=None, text=None, sources=None):
        requests = []

        def handler(request):
            requests.append(request)
            if text is not None:
                return httpx.Response(status, text=text)
            return httpx.Response(status, json=json_body)

        client = AtlasClient(
            sources=sources if sources is not None else atlas_sources,
            transport=httpx.MockTransport(handler),
        )
        return client, requests

    return _make
