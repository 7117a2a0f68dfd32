"""Real-time offer channel layer."""

from .protocol import OfferChannel, EventHandler
from .events import parse_wire_event, parse_bot_response, coerce_price
from .factory import create_channel

__all__ = [
    "OfferChannel",
    "EventHandler",
    "parse_wire_event",
    "parse_bot_response",
    "coerce_price",
    "create_channel",
]
