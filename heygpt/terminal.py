from __future__ import annotations

import logging
import os
import re
import sys
from pathlib import Path
from typing import Optional, TextIO

try:
    import readline
except ImportError:  # Windows without pyreadline3
    readline = None

from .errors import InputError

logger = logging.getLogger(__name__)

RESET = "\033[0m"
BOLD = "\033[1m"
FG_GREEN = "\033[32m"
FG_CYAN = "\033[36m"
FG_RED = "\033[31m"

_ANSI_PATTERN = re.compile(r"\033\[[0-9;]*[A-Za-z]")


def style(text: str, *codes: str, stream: Optional[TextIO] = None) -> str:
    target = stream if stream is not None else sys.stdout
    if os.getenv("NO_COLOR") is not None or not target.isatty():
        return text
    return "".join(codes) + text + RESET


def readline_safe(prompt: str) -> str:
    # Readline counts escape codes as printable unless wrapped in \001/\002.
    if readline is None or "\033[" not in prompt:
        return prompt
    return _ANSI_PATTERN.sub(lambda m: f"\001{m.group(0)}\002", prompt)


class LineEditor:
    """``input()`` with readline history persisted in a per-user file."""

    def __init__(self, history_file: Optional[Path] = None) -> None:
        self.history_file = history_file
        self._added = 0

    def load_history(self) -> None:
        if readline is None:
            return
        # Only lines that reach the model are recorded, see add_history.
        readline.set_auto_history(False)
        if self.history_file is None:
            return
        try:
            readline.read_history_file(str(self.history_file))
        except OSError as exc:
            # First run, or an unreadable file; start with an empty history.
            logger.debug("history not loaded from %s: %s", self.history_file, exc)

    def read_line(self, prompt: str) -> str:
        try:
            return input(readline_safe(prompt))
        except (EOFError, KeyboardInterrupt):
            raise
        except (OSError, UnicodeDecodeError) as exc:
            raise InputError(f"Readline error: {exc}") from exc

    def add_history(self, line: str) -> None:
        if readline is None:
            return
        readline.add_history(line)
        self._added += 1

    def save_history(self) -> None:
        if readline is None or self.history_file is None or not self._added:
            return
        try:
            # append_history_file does not create the file.
            self.history_file.touch(exist_ok=True)
            readline.append_history_file(self._added, str(self.history_file))
        except OSError as exc:
            raise InputError(f"failed to save history to {self.history_file}: {exc}") from exc
        self._added = 0
