"""Shared fixtures: a throwaway state directory and a stubbed completions endpoint."""

import json

import httpx
import pytest

from gippy.api.completions import ChatCompletionsClient
from gippy.workspace import Workspace

TEST_BASE_URL = "https://api.test/v1"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "GIPPY_HOME",
        "GIPPY_REQUEST_TIMEOUT",
        "APPLICATIONINSIGHTS_CONNECTION_STRING",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def state_dir(tmp_path):
    return tmp_path / "state"


@pytest.fixture
def workspace(state_dir):
    return Workspace.open(state_dir)


class StubEndpoint:
    """Records every request and answers with canned choices or an error."""

    def __init__(self, *contents, status_code=200, error=None):
        self.contents = list(contents)
        self.status_code = status_code
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": {"message": "nope"}})
        choices = [{"index": i, "message": {"role": "assistant", "content": c}} for i, c in enumerate(self.contents)]
        return httpx.Response(200, json={"choices": choices})

    @property
    def bodies(self):
        return [json.loads(r.content) for r in self.requests]

    def client(self) -> ChatCompletionsClient:
        return ChatCompletionsClient(base_url=TEST_BASE_URL, timeout=5.0, transport=httpx.MockTransport(self))


@pytest.fixture
def endpoint_factory():
    return StubEndpoint


def lines(*answers):
    """A read_line stand-in that replays ``answers`` and then hits EOF."""
    it = iter(answers)

    def _read(prompt=""):
        try:
            return next(it)
        except StopIteration:
            raise EOFError

    return _read


@pytest.fixture
def replay():
    return lines
