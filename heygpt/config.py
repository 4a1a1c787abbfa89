from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigError

OPENAI_API_KEY = "OPENAI_API_KEY"
OPENAI_API_BASE = "OPENAI_API_BASE"
DEFAULT_API_BASE = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-3.5-turbo"
READLINE_HISTORY = ".heygpt_history"


@dataclass(frozen=True)
class Settings:
    """Session-wide configuration, fixed at startup."""

    api_key: str
    api_base: str = DEFAULT_API_BASE
    model: str = DEFAULT_MODEL
    stream: bool = True
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    timeout: Optional[float] = None

    @property
    def completions_url(self) -> str:
        return f"{self.api_base}/chat/completions"


def history_path() -> Path:
    return Path.home() / READLINE_HISTORY


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    model: str = DEFAULT_MODEL,
    stream: bool = True,
    temperature: Optional[float] = None,
    top_p: Optional[float] = None,
    timeout: Optional[float] = None,
) -> Settings:
    env = os.environ if environ is None else environ
    api_key = env.get(OPENAI_API_KEY)
    if not api_key:
        raise ConfigError(f"{OPENAI_API_KEY} not set")
    api_base = str(env.get(OPENAI_API_BASE) or DEFAULT_API_BASE).rstrip("/")
    return Settings(
        api_key=api_key,
        api_base=api_base,
        model=model,
        stream=stream,
        temperature=temperature,
        top_p=top_p,
        timeout=timeout,
    )
