from __future__ import annotations

import sys
from typing import List, Optional, Sequence, TextIO

from .config import Settings
from .model import ChatRequest, Message, strip_leading_newline
from .stream import read_stream
from .terminal import BOLD, FG_CYAN, FG_GREEN, LineEditor, style
from .transport import ChatClient


class Session:
    """One conversation; the transcript lives only as long as the process."""

    def __init__(self, settings: Settings, client: Optional[ChatClient] = None, out: Optional[TextIO] = None) -> None:
        self.settings = settings
        self.client = client if client is not None else ChatClient(settings)
        self.out = out if out is not None else sys.stdout
        self.messages: List[Message] = []

    def run_one_shot(self, prompt: Sequence[str]) -> Message:
        self.messages.append(Message(role="user", content=" ".join(prompt)))
        response = self.complete_and_print()
        self.messages.append(response)
        return response

    def run_interactive(self, editor: LineEditor) -> None:
        editor.load_history()
        user_prompt = f"{style('user', BOLD, FG_CYAN)} => "
        assistant_label = f"{style('assistant', BOLD, FG_GREEN)} => "

        while True:
            try:
                line = editor.read_line(user_prompt)
            except KeyboardInterrupt:
                print("CTRL-C", file=self.out)
                break
            except EOFError:
                print("CTRL-D", file=self.out)
                break
            if not line:
                continue
            editor.add_history(line)

            self.messages.append(Message(role="user", content=line))
            self.out.write(assistant_label)
            self.out.flush()
            self.messages.append(self.complete_and_print())

        editor.save_history()

    def build_request(self) -> ChatRequest:
        return ChatRequest(
            model=self.settings.model,
            stream=self.settings.stream,
            messages=list(self.messages),
            temperature=self.settings.temperature,
            top_p=self.settings.top_p,
        )

    def complete_and_print(self) -> Message:
        """Complete the transcript, echo the reply to ``out`` and return it."""
        chat = self.build_request()
        if chat.stream:
            return read_stream(self.client.stream(chat), self.out)
        return self._do_non_stream_request(chat)

    def _do_non_stream_request(self, chat: ChatRequest) -> Message:
        message = self.client.complete(chat).message
        content = strip_leading_newline(message.content)
        if content != message.content:
            message = message.model_copy(update={"content": content})
        print(message.content, file=self.out)
        self.out.flush()
        return message
