import pytest

from diagramflow.animation import ManualScheduler
from diagramflow.inference.base import LLMClient


LINEAR_REPLY = (
    '{"nodes":[{"id":"1","label":"A"},{"id":"2","label":"B"},{"id":"3","label":"C"}],'
    '"edges":[{"id":"e1","source":"1","target":"2"},{"id":"e2","source":"2","target":"3"}]}'
)


class FakeClient(LLMClient):
    provider = "Fake"

    def __init__(self, reply: str = LINEAR_REPLY, on_generate=None):
        self.reply = reply
        self.on_generate = on_generate
        self.calls = []

    def generate(self, prompt, image=None):
        self.calls.append({"prompt": prompt, "image": image})
        if self.on_generate is not None:
            self.on_generate()
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class FakeResponse:
    def __init__(self, payload=None, status_code=200, reason="OK", text="", invalid_json=False):
        self._payload = payload or {}
        self._invalid_json = invalid_json
        self.status_code = status_code
        self.reason = reason
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


@pytest.fixture
def linear_reply():
    return LINEAR_REPLY


@pytest.fixture
def scheduler():
    return ManualScheduler()
