"""Fold a streamed chat completion into one message while echoing it."""

from __future__ import annotations

import enum
import logging
import sys
from contextlib import closing
from typing import Iterable, List, Optional, TextIO

from .errors import TransportError
from .model import Message, parse_chunk, strip_leading_newline
from .transport import EventSource, StreamData, StreamEvent, StreamFailure, StreamOpened

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


class ReducerState(enum.Enum):
    OPEN = "open"
    ACCUMULATING = "accumulating"
    DONE = "done"
    FAILED = "failed"


class StreamReducer:
    """Single-pass state machine: OPEN -> ACCUMULATING -> DONE, or FAILED.

    ``feed`` takes events in arrival order and returns True once the stream
    has ended with the sentinel. Content fragments are written to ``out`` and
    flushed as soon as they are accepted; a failure never yields a message,
    but text already written stays on the terminal.
    """

    def __init__(self, out: Optional[TextIO] = None) -> None:
        self.out = out if out is not None else sys.stdout
        self.state = ReducerState.OPEN
        self._role: List[str] = []
        self._content: List[str] = []

    @property
    def finished(self) -> bool:
        return self.state in (ReducerState.DONE, ReducerState.FAILED)

    @property
    def message(self) -> Message:
        if self.state is not ReducerState.DONE:
            raise RuntimeError(f"no message available in state {self.state.value}")
        return Message(role="".join(self._role), content="".join(self._content))

    def feed(self, event: StreamEvent) -> bool:
        if self.finished:
            raise RuntimeError(f"event fed to a {self.state.value} stream")
        try:
            self._dispatch(event)
        except Exception:
            self.state = ReducerState.FAILED
            raise
        return self.state is ReducerState.DONE

    def consume(self, events: Iterable[StreamEvent]) -> Message:
        for event in events:
            if self.feed(event):
                return self.message
        self.state = ReducerState.FAILED
        raise TransportError(f"stream ended before {DONE_SENTINEL}")

    def _dispatch(self, event: StreamEvent) -> None:
        if isinstance(event, StreamOpened):
            logger.debug("response stream opened")
        elif isinstance(event, StreamData):
            self._on_data(event.data)
        elif isinstance(event, StreamFailure):
            raise event.error
        else:
            raise TypeError(f"unexpected stream event: {event!r}")

    def _on_data(self, data: str) -> None:
        if data == DONE_SENTINEL:
            logger.debug("response stream ended with %s", DONE_SENTINEL)
            self.out.write("\n")
            self.out.flush()
            self.state = ReducerState.DONE
            logger.debug("response stream full message: %r", self.message)
            return

        logger.debug("response stream message: %r", data)
        delta = parse_chunk(data).delta
        self.state = ReducerState.ACCUMULATING
        if delta.role is not None:
            self._role.append(delta.role)
        if delta.content is not None:
            fragment = delta.content
            if not any(self._content):
                fragment = strip_leading_newline(fragment)
            self.out.write(fragment)
            self._content.append(fragment)
        self.out.flush()


def read_stream(source: EventSource, out: Optional[TextIO] = None) -> Message:
    """Reduce an event source to one message, closing it on every exit path."""
    with closing(source):
        return StreamReducer(out).consume(source)
