"""
Offer channel protocol definition.

WHAT: Abstract interface for the persistent negotiation transport
WHY: Decouple the orchestrator from a specific socket implementation
HOW: Use Protocol to define open/join/send/subscribe/close
"""

from typing import Callable, Protocol

from ..models.negotiation import ChannelEvent

EventHandler = Callable[[ChannelEvent], None]


class OfferChannel(Protocol):
    """Protocol defining the interface every offer channel must implement."""
    
    @property
    def connected(self) -> bool:
        """Whether the transport is currently connected."""
        ...
    
    async def open(self, auth_token: str) -> "OfferChannel":
        """Connect with the given bearer credential and return the open channel."""
        ...
    
    async def join_session(self, session_id: str) -> None:
        """Scope inbound events to a negotiation session."""
        ...
    
    async def send_offer(self, session_id: str, amount: float, message: str) -> None:
        """Emit an outbound offer (fire-and-forget)."""
        ...
    
    def on_event(self, handler: EventHandler) -> None:
        """Register a callback invoked once per inbound event, in arrival order."""
        ...
    
    async def close(self) -> None:
        """Release the connection (idempotent)."""
        ...
