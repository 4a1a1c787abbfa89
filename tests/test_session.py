import io

import pytest

from conftest import delta_chunk
from heygpt.config import Settings
from heygpt.errors import TransportError
from heygpt.model import ChatResponse, Message
from heygpt.session import Session
from heygpt.transport import StreamData, StreamFailure, StreamOpened


class FakeSource:
    def __init__(self, events):
        self.events = events
        self.closed = False

    def __iter__(self):
        return iter(self.events)

    def close(self):
        self.closed = True


class FakeClient:
    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []
        self.sources = []

    def stream(self, chat):
        self.requests.append(chat)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            events = [StreamOpened(), StreamData(delta_chunk(content="half")), StreamFailure(reply)]
        else:
            events = [StreamOpened(), StreamData(delta_chunk(role="assistant"))]
            events += [StreamData(delta_chunk(content=part)) for part in reply]
            events.append(StreamData("[DONE]"))
        source = FakeSource(events)
        self.sources.append(source)
        return source

    def complete(self, chat):
        self.requests.append(chat)
        return ChatResponse.model_validate({"choices": [{"message": {"role": "assistant", "content": self.replies.pop(0)}}]})


class FakeEditor:
    def __init__(self, lines, end=EOFError):
        self.lines = list(lines)
        self.end = end
        self.prompts = []
        self.history = []
        self.loaded = False
        self.saved = False

    def load_history(self):
        self.loaded = True

    def read_line(self, prompt):
        self.prompts.append(prompt)
        if not self.lines:
            raise self.end()
        return self.lines.pop(0)

    def add_history(self, line):
        self.history.append(line)

    def save_history(self):
        self.saved = True


@pytest.fixture(autouse=True)
def no_color(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")


def make_session(replies, stream=True, **settings):
    client = FakeClient(replies)
    out = io.StringIO()
    session = Session(Settings(api_key="sk-test", stream=stream, **settings), client=client, out=out)
    return session, client, out


def test_one_shot_joins_prompt_words():
    session, client, out = make_session([["Paris", "."]], model="gpt-x", temperature=0.1)
    reply = session.run_one_shot(["capital", "of", "France?"])

    assert reply == Message(role="assistant", content="Paris.")
    assert out.getvalue() == "Paris.\n"
    request = client.requests[0]
    assert request.model == "gpt-x"
    assert request.stream is True
    assert request.temperature == 0.1
    assert request.top_p is None
    assert request.messages == [Message(role="user", content="capital of France?")]
    assert client.sources[0].closed


def test_interactive_transcript_grows_and_is_resent():
    replies = [["one"], ["two"], ["three"]]
    session, client, out = make_session(replies)
    editor = FakeEditor(["a", "b", "c"])
    session.run_interactive(editor)

    assert [m.role for m in session.messages] == ["user", "assistant"] * 3
    assert [m.content for m in session.messages] == ["a", "one", "b", "two", "c", "three"]
    for turn, request in enumerate(client.requests):
        assert request.messages == session.messages[: 2 * turn + 1]
    assert editor.loaded
    assert editor.saved
    assert editor.history == ["a", "b", "c"]
    assert out.getvalue().endswith("CTRL-D\n")
    assert "assistant => one\n" in out.getvalue()
    assert editor.prompts[0] == "user => "


def test_empty_lines_do_not_reach_the_model():
    session, client, out = make_session([])
    editor = FakeEditor(["", "", ""], end=KeyboardInterrupt)
    session.run_interactive(editor)

    assert session.messages == []
    assert client.requests == []
    assert editor.history == []
    assert out.getvalue() == "CTRL-C\n"
    assert editor.saved


def test_stream_failure_ends_interactive_session():
    session, client, out = make_session([["ok"], TransportError("connection reset")])
    editor = FakeEditor(["first", "second", "third"])
    with pytest.raises(TransportError):
        session.run_interactive(editor)

    assert [m.content for m in session.messages] == ["first", "ok", "second"]
    assert "half" in out.getvalue()
    assert all(source.closed for source in client.sources)
    assert not editor.saved


@pytest.mark.parametrize(
    "content, expected",
    [("\nHello", "Hello"), ("Hello\nWorld", "Hello\nWorld")],
)
def test_non_stream_reply(content, expected):
    session, client, out = make_session([content], stream=False)
    reply = session.run_one_shot(["hi"])

    assert reply.content == expected
    assert reply.role == "assistant"
    assert out.getvalue() == expected + "\n"
    assert client.requests[0].stream is False
    assert session.messages[-1] == reply


def test_build_request_copies_transcript():
    session, _, _ = make_session([])
    session.messages.append(Message(role="system", content="be brief"))
    request = session.build_request()
    session.messages.append(Message(role="user", content="later"))
    assert request.messages == [Message(role="system", content="be brief")]
