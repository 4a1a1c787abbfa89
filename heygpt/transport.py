from __future__ import annotations

import http.client
import json
import logging
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from .config import Settings
from .errors import TransportError
from .model import ChatRequest, ChatResponse, parse_response

logger = logging.getLogger(__name__)

EVENT_STREAM = "text/event-stream"


# ----------------------------
# Stream events
# ----------------------------

@dataclass(frozen=True)
class StreamOpened:
    pass


@dataclass(frozen=True)
class StreamData:
    data: str


@dataclass(frozen=True)
class StreamFailure:
    error: TransportError


StreamEvent = Union[StreamOpened, StreamData, StreamFailure]


def iter_sse_data(lines: Iterable[bytes]) -> Iterator[str]:
    """Yield the data payload of each server-sent event found in ``lines``.

    Multiple ``data`` lines of one event are joined with newlines. Comments
    and the ``event``/``id``/``retry`` fields are skipped. An event that is not
    terminated by a blank line is still dispatched when the input ends.
    """
    data: List[str] = []
    for raw in lines:
        line = raw.decode("utf-8").rstrip("\r\n")
        if not line:
            if data:
                yield "\n".join(data)
                data = []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            data.append(value)
    if data:
        yield "\n".join(data)


def _http_error(exc: urllib.error.HTTPError) -> TransportError:
    try:
        detail = exc.read().decode("utf-8", errors="replace") if exc.fp else str(exc)
    finally:
        exc.close()
    return TransportError(f"request failed: {exc.code} {detail}".rstrip(), status=exc.code)


class EventSource:
    """Server-sent event stream over one POST request.

    Nothing is sent until the source is iterated. Iteration yields
    ``StreamOpened`` once the response headers check out, then one
    ``StreamData`` per event. Any failure is reported as a single
    ``StreamFailure`` after which iteration stops.
    """

    def __init__(self, req: urllib.request.Request, timeout: Optional[float] = None) -> None:
        self._request = req
        self._timeout = timeout
        self._response: Any = None
        self.closed = False

    def __iter__(self) -> Iterator[StreamEvent]:
        if self.closed:
            raise TransportError("event source already closed")
        try:
            self._response = _urlopen(self._request, self._timeout)
        except urllib.error.HTTPError as exc:
            yield StreamFailure(_http_error(exc))
            return
        except (OSError, http.client.HTTPException) as exc:
            yield StreamFailure(TransportError(f"connection failed: {exc}"))
            return

        content_type = self._response.headers.get("Content-Type") or ""
        if not content_type.startswith(EVENT_STREAM):
            yield StreamFailure(TransportError(f"invalid content type: {content_type!r}"))
            return

        yield StreamOpened()
        try:
            for data in iter_sse_data(self._response):
                yield StreamData(data)
        except UnicodeDecodeError as exc:
            yield StreamFailure(TransportError(f"malformed event stream: {exc}"))
        except (OSError, http.client.HTTPException) as exc:
            yield StreamFailure(TransportError(f"event stream error: {exc}"))

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._response is not None:
            self._response.close()
            self._response = None

    def __enter__(self) -> "EventSource":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def _urlopen(req: urllib.request.Request, timeout: Optional[float]) -> Any:
    kwargs: Dict[str, Any] = {"context": ssl.create_default_context()}
    if timeout is not None:
        kwargs["timeout"] = timeout
    return urllib.request.urlopen(req, **kwargs)


class ChatClient:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def complete(self, chat: ChatRequest) -> ChatResponse:
        req = self._build_request(chat)
        try:
            with _urlopen(req, self.settings.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            raise _http_error(exc) from exc
        except (OSError, http.client.HTTPException) as exc:
            raise TransportError(f"request failed: {exc}") from exc
        response = parse_response(raw)
        logger.debug("response message: %r", response)
        return response

    def stream(self, chat: ChatRequest) -> EventSource:
        return EventSource(self._build_request(chat), timeout=self.settings.timeout)

    def _build_request(self, chat: ChatRequest) -> urllib.request.Request:
        payload = chat.to_payload()
        logger.debug("request body: %s", payload)
        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }
        if chat.stream:
            headers["Accept"] = EVENT_STREAM
        data = json.dumps(payload).encode("utf-8")
        return urllib.request.Request(self.settings.completions_url, data=data, headers=headers, method="POST")
