"""smail - streaming email assistant backend and client."""

__version__ = "0.1.0"

from smail.core.agent import Agent
from smail.core.config import Config
from smail.core.message import Message, Role
from smail.protocol.events import StreamEvent, parse_event, serialize_event

__all__ = [
    "Agent",
    "Config",
    "Message",
    "Role",
    "StreamEvent",
    "parse_event",
    "serialize_event",
]
