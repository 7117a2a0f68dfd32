"""
Test doubles for the negotiation transport and REST initiator.

WHAT: In-memory OfferChannel and scripted SessionInitiator
WHY: Test the orchestrator without a socket server or HTTP API
HOW: Record every call; tests push inbound events by hand
"""

import asyncio
from typing import Any, Dict, List

from negotiation_client.channel.events import parse_wire_event
from negotiation_client.models.negotiation import ChannelEvent, InitiatorResult


class MockOfferChannel:
    """
    In-memory offer channel.
    
    Handlers are kept after close() on purpose, so tests can check that the
    orchestrator itself ignores events for a discarded negotiation.
    """
    
    def __init__(self, open_error: Exception | None = None):
        self.open_error = open_error
        self.connected = False
        self.handlers: List = []
        self.open_calls: List[str] = []
        self.joined: List[str] = []
        self.sent: List[Dict[str, Any]] = []
        self.close_calls = 0
    
    @property
    def closed(self) -> bool:
        return self.close_calls > 0
    
    async def open(self, auth_token: str) -> "MockOfferChannel":
        self.open_calls.append(auth_token)
        if self.open_error is not None:
            raise self.open_error
        self.connected = True
        return self
    
    async def join_session(self, session_id: str) -> None:
        self.joined.append(session_id)
    
    async def send_offer(self, session_id: str, amount: float, message: str) -> None:
        self.sent.append({"session_id": session_id, "amount": amount, "message": message})
    
    def on_event(self, handler) -> None:
        self.handlers.append(handler)
    
    async def close(self) -> None:
        self.close_calls += 1
        self.connected = False
    
    def push(self, event: ChannelEvent) -> None:
        """Deliver an inbound event to every registered handler."""
        for handler in list(self.handlers):
            handler(event)
    
    def push_wire(self, event_name: str, payload: Any) -> None:
        """Deliver a raw socket event through the wire parser."""
        event = parse_wire_event(event_name, payload)
        assert event is not None, f"unparseable test event {event_name}: {payload!r}"
        self.push(event)


class MockInitiator:
    """
    Scripted initiator.
    
    Results (InitiatorResult or Exception) are consumed in order. When ``gate``
    is set, create() waits on it so tests can interleave events with the call.
    """
    
    def __init__(self, results: List[Any] | None = None):
        self.results = list(results or [])
        self.calls: List[Dict[str, Any]] = []
        self.cart_calls: List[Dict[str, Any]] = []
        self.gate: asyncio.Event | None = None
        self.started: asyncio.Event | None = None
    
    def queue(self, *results: Any) -> None:
        self.results.extend(results)
    
    async def create(self, product_id: str, proposed_price: float, *, auth_token: str) -> InitiatorResult:
        self.calls.append({
            "product_id": product_id,
            "proposed_price": proposed_price,
            "auth_token": auth_token,
        })
        if self.started is not None:
            self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result
    
    async def add_to_cart(self, negotiation_id: str, *, auth_token: str) -> Dict[str, Any]:
        self.cart_calls.append({"negotiation_id": negotiation_id, "auth_token": auth_token})
        return {"negotiation": {"id": negotiation_id, "addedToCart": True}, "cartItemsCount": 1}
