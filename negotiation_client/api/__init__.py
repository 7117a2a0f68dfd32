"""REST side of the negotiation protocol."""

from .initiator import NegotiationInitiator, SessionInitiator

__all__ = ["NegotiationInitiator", "SessionInitiator"]
