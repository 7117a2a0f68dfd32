"""
Wire payload parsing for negotiation events.

WHAT: Turn socket events and bot responses into ChannelEvent objects
WHY: The server speaks several dialects (dedicated events, bot-response, errors)
HOW: Event-name dispatch plus a normalised bot status vocabulary
"""

import math
from typing import Any, Dict

from ..models.negotiation import ChannelEvent, EventKind
from ..utils.logger import get_logger

logger = get_logger(__name__)


# Server -> client event names
EVENT_MESSAGE = "negotiation-message"
EVENT_ACCEPTED = "negotiation-accepted"
EVENT_REJECTED = "negotiation-rejected"
EVENT_BOT_RESPONSE = "bot-response"
EVENT_BOT_ERROR = "bot-error"
EVENT_SOCKET_ERROR = "socket-error"

# Client -> server event names
EMIT_JOIN = "join-negotiation"
EMIT_OFFER = "negotiate-message"

INBOUND_EVENTS = (
    EVENT_MESSAGE,
    EVENT_ACCEPTED,
    EVENT_REJECTED,
    EVENT_BOT_RESPONSE,
    EVENT_BOT_ERROR,
    EVENT_SOCKET_ERROR,
)

_DIRECT_KINDS: Dict[str, EventKind] = {
    EVENT_MESSAGE: "message",
    EVENT_ACCEPTED: "accepted",
    EVENT_REJECTED: "rejected",
    EVENT_BOT_ERROR: "error",
    EVENT_SOCKET_ERROR: "error",
}

# Automated responder status/type vocabulary
_BOT_STATUS_KINDS: Dict[str, EventKind] = {
    "accepted": "accepted",
    "acceptance": "accepted",
    "rejected": "rejected",
    "rejection": "rejected",
    "countered": "message",
    "negotiating": "message",
    "counter_offer": "message",
    "final_offer": "message",
    "message": "message",
    "greeting": "message",
    "error": "error",
}


def coerce_price(value: Any) -> float | None:
    """
    Parse a price from a wire value.
    
    Returns:
        A positive finite float, or None if the value is missing or unusable
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring non-numeric price: {value!r}")
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


def _first_price(payload: Dict[str, Any], *keys: str) -> float | None:
    for key in keys:
        price = coerce_price(payload.get(key))
        if price is not None:
            return price
    return None


def _negotiation_id(payload: Dict[str, Any]) -> str | None:
    value = payload.get("negotiationId")
    return str(value) if value not in (None, "") else None


def _as_dict(payload: Any) -> Dict[str, Any]:
    if isinstance(payload, dict):
        return payload
    if isinstance(payload, str):
        return {"message": payload}
    return {}


def bot_status_kind(payload: Dict[str, Any]) -> EventKind | None:
    """Map a bot reply's status (or type) onto an event kind."""
    for key in ("status", "type"):
        value = payload.get(key)
        if isinstance(value, str) and value.lower() in _BOT_STATUS_KINDS:
            return _BOT_STATUS_KINDS[value.lower()]
    return None


def parse_bot_response(payload: Any) -> ChannelEvent | None:
    """
    Parse an automated responder reply.
    
    Accepts both the creation call's ``botResponse`` object and the socket
    ``bot-response`` payload.
    
    Returns:
        ChannelEvent, or None if the status is not recognised
    """
    data = _as_dict(payload)
    kind = bot_status_kind(data)
    if kind is None:
        logger.warning(f"Unrecognised bot response status: {data.get('status')!r}")
        return None
    
    proposed = _first_price(data, "proposedPrice", "counterPrice", "finalPrice")
    final = _first_price(data, "finalPrice", "proposedPrice", "counterPrice") if kind == "accepted" else None
    
    return ChannelEvent(
        kind=kind,
        message=str(data.get("message") or ""),
        proposed_price=proposed if kind == "message" else None,
        final_price=final,
        negotiation_id=_negotiation_id(data),
    )


def parse_wire_event(event_name: str, payload: Any) -> ChannelEvent | None:
    """
    Parse one inbound socket event.
    
    Args:
        event_name: Socket event name
        payload: Event payload as delivered by the transport
    
    Returns:
        ChannelEvent, or None for unknown events and unparseable payloads
    """
    if event_name == EVENT_BOT_RESPONSE:
        return parse_bot_response(payload)
    
    kind = _DIRECT_KINDS.get(event_name)
    if kind is None:
        logger.debug(f"Ignoring unknown channel event: {event_name}")
        return None
    
    data = _as_dict(payload)
    message = str(data.get("message") or "")
    
    if kind == "message":
        return ChannelEvent(
            kind="message",
            message=message,
            proposed_price=_first_price(data, "proposedPrice", "counterPrice"),
            negotiation_id=_negotiation_id(data),
        )
    
    if kind == "accepted":
        final_price = _first_price(data, "finalPrice", "proposedPrice")
        if final_price is None:
            logger.warning(f"{event_name} without a usable finalPrice: {data!r}")
        return ChannelEvent(
            kind="accepted",
            message=message,
            final_price=final_price,
            negotiation_id=_negotiation_id(data),
        )
    
    return ChannelEvent(kind=kind, message=message, negotiation_id=_negotiation_id(data))
