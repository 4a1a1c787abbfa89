from __future__ import annotations


class HeyGptError(RuntimeError):
    """Base class for failures reported to the user before exiting."""


class ConfigError(HeyGptError):
    pass


class TransportError(HeyGptError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


# Malformed frames are reported like transport failures; they usually mean a corrupted stream.
class ProtocolError(TransportError):
    pass


class InputError(HeyGptError):
    pass
