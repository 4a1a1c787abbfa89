# Explicit exports keep the public surface small.
from .config import Settings, load_settings
from .errors import ConfigError, HeyGptError, InputError, ProtocolError, TransportError
from .model import ChatRequest, ChatResponse, Message
from .session import Session
from .stream import StreamReducer, read_stream
from .transport import ChatClient, EventSource

__version__ = "0.1.0"

__all__ = [
    "ChatClient",
    "ChatRequest",
    "ChatResponse",
    "ConfigError",
    "EventSource",
    "HeyGptError",
    "InputError",
    "Message",
    "ProtocolError",
    "Session",
    "Settings",
    "StreamReducer",
    "TransportError",
    "load_settings",
    "read_stream",
]
