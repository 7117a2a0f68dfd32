"""Negotiation domain models."""

from .negotiation import (
    Offer,
    ChannelEvent,
    BuyerSubmission,
    InitiatorResult,
    NegotiationSession,
    SessionStatus,
    TERMINAL_STATUSES,
)

__all__ = [
    "Offer",
    "ChannelEvent",
    "BuyerSubmission",
    "InitiatorResult",
    "NegotiationSession",
    "SessionStatus",
    "TERMINAL_STATUSES",
]
