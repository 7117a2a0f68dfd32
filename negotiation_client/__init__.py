"""
Negotiation client - real-time price negotiation for the marketplace.

Provides the orchestrator a storefront widget drives, plus the REST initiator
and Socket.IO offer channel it is built on.
"""

from .core.orchestrator import NegotiationOrchestrator
from .api.initiator import NegotiationInitiator
from .channel.socketio_channel import SocketIOOfferChannel
from .models.negotiation import NegotiationSession, Offer, ChannelEvent
from .utils.exceptions import (
    NegotiationError,
    InvalidOfferError,
    AuthenticationError,
    ValidationError,
    ServiceUnavailableError,
    OrchestratorError,
    NegotiationNotActiveError,
    ChannelConnectionError,
)

__version__ = "0.1.0"
__all__ = [
    "NegotiationOrchestrator",
    "NegotiationInitiator",
    "SocketIOOfferChannel",
    "NegotiationSession",
    "Offer",
    "ChannelEvent",
    "NegotiationError",
    "InvalidOfferError",
    "AuthenticationError",
    "ValidationError",
    "ServiceUnavailableError",
    "OrchestratorError",
    "NegotiationNotActiveError",
    "ChannelConnectionError",
]
