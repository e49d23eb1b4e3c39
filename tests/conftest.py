"""Shared test fixtures."""
from urllib.parse import parse_qs

import httpx
import pytest

from pulse.tagme.client import TagMeClient
from pulse.tagme.config import TagMeSettings
from pulse.tagme.tagger import TagMeTagger


class FakeTagMe:
    """In-process stand-in for the TagMe /tag endpoint (an httpx MockTransport handler)."""

    def __init__(self):
        self.annotations: list[tuple[str, float]] = []
        self.status_code = 200
        self.body: bytes | None = None
        self.fault: Exception | None = None
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fault is not None:
            raise self.fault
        if self.body is not None:
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(
            self.status_code,
            json={
                "timestamp": "2015-11-02T10:00:00",
                "time": 3,
                "lang": "en",
                "annotations": [
                    {"id": i, "title": title, "rho": rho, "spot": title.lower(),
                     "start": 0, "end": len(title), "link_probability": 0.5}
                    for i, (title, rho) in enumerate(self.annotations)
                ],
            },
        )

    def form(self, index: int = -1) -> dict[str, str]:
        """Decoded form fields of a recorded request."""
        fields = parse_qs(self.requests[index].content.decode())
        return {k: v[0] for k, v in fields.items()}


@pytest.fixture
def settings():
    return TagMeSettings(endpoint="https://tagme.test/tagme", token="secret-token", timeout_s=2.0)


@pytest.fixture
def fake_tagme():
    return FakeTagMe()


@pytest.fixture
def client(settings, fake_tagme):
    c = TagMeClient(settings, transport=httpx.MockTransport(fake_tagme))
    yield c
    c.close()


@pytest.fixture
def tagger(client):
    return TagMeTagger(client)


@pytest.fixture
def sample_messages():
    return [
        {"id": "m1", "text": "Rome is the capital of Italy", "language": "EN"},
        {"id": "m2", "text": "Parigi è la capitale della Francia", "language": "it"},
        {"id": "m3", "text": "Paris est la capitale de la France", "language": "fr"},
        {"id": "m4", "text": "no language detected", "language": None},
    ]
