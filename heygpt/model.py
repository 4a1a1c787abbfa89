from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ProtocolError

# ----------------------------
# Wire models
# ----------------------------

class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str = ""  # "system" | "user" | "assistant"
    content: str = ""


class ChatRequest(BaseModel):
    model: str
    stream: bool = True
    messages: List[Message] = Field(default_factory=list)
    temperature: Optional[float] = None
    top_p: Optional[float] = None

    def to_payload(self) -> Dict[str, Any]:
        # Servers reject explicit nulls for sampling parameters, so unset fields are dropped.
        return self.model_dump(exclude_none=True)


class Choice(BaseModel):
    message: Message


class ChatResponse(BaseModel):
    choices: List[Choice] = Field(default_factory=list)

    @property
    def message(self) -> Message:
        if not self.choices:
            raise ProtocolError("response contained no choices")
        return self.choices[0].message


class Delta(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class StreamChoice(BaseModel):
    delta: Delta = Field(default_factory=Delta)


class StreamChunk(BaseModel):
    choices: List[StreamChoice] = Field(default_factory=list)

    @property
    def delta(self) -> Delta:
        if not self.choices:
            raise ProtocolError("stream chunk contained no choices")
        return self.choices[0].delta


def parse_response(raw: str | bytes) -> ChatResponse:
    try:
        return ChatResponse.model_validate_json(raw)
    except ValidationError as exc:
        raise ProtocolError(f"invalid completion response: {exc}") from exc


def parse_chunk(raw: str) -> StreamChunk:
    try:
        return StreamChunk.model_validate_json(raw)
    except ValidationError as exc:
        raise ProtocolError(f"invalid stream chunk {raw!r}: {exc}") from exc


def strip_leading_newline(text: str) -> str:
    """Drop the stray newline (and any whitespace after it) some backends emit first."""
    if text.startswith("\n"):
        return text.lstrip()
    return text
