import io
import json
import urllib.request

import pytest


class FakeResponse:
    def __init__(self, body: bytes, content_type: str = "application/json") -> None:
        self.headers = {"Content-Type": content_type}
        self._body = io.BytesIO(body)
        self.closed = False

    def __iter__(self):
        return iter(self._body.readline, b"")

    def read(self) -> bytes:
        return self._body.read()

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def sse_body(*payloads: str) -> bytes:
    return "".join(f"data: {p}\n\n" for p in payloads).encode("utf-8")


def delta_chunk(**delta) -> str:
    return json.dumps({"choices": [{"index": 0, "delta": delta, "finish_reason": None}]})


class UrlopenStub:
    def __init__(self) -> None:
        self.requests = []
        self.responses = []
        self.error = None

    def __call__(self, req, **kwargs):
        self.requests.append((req, kwargs))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    def payload(self, index: int = -1) -> dict:
        return json.loads(self.requests[index][0].data.decode("utf-8"))


@pytest.fixture
def urlopen_stub(monkeypatch):
    stub = UrlopenStub()
    monkeypatch.setattr(urllib.request, "urlopen", stub)
    return stub
