"""
Negotiation domain models.

WHAT: Offers, inbound events and the negotiation session state container
WHY: One immutable projection of the server-side negotiation for the UI to render
HOW: Frozen Pydantic v2 models; NegotiationSession.apply is the pure transition function
"""

from pydantic import BaseModel, Field, model_validator
from typing import Literal, Union
from datetime import datetime, timezone


SessionStatus = Literal[
    "uninitiated",
    "awaiting_response",
    "countered",
    "accepted",
    "rejected",
    "errored",
]
OfferOrigin = Literal["buyer", "counterparty"]
EventKind = Literal["message", "accepted", "rejected", "error"]

TERMINAL_STATUSES = ("accepted", "rejected")

# Statuses from which the buyer may put a new price on the table
SUBMITTABLE_STATUSES = ("uninitiated", "countered", "errored")

# Statuses in which inbound counterparty events are applied
RESPONSIVE_STATUSES = ("awaiting_response", "countered", "errored")


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


class Offer(BaseModel):
    """One priced proposal within a negotiation, attributed to either party."""
    
    origin: OfferOrigin
    amount: float | None = Field(default=None, gt=0.0)
    message: str = ""
    timestamp: datetime = Field(default_factory=utcnow)
    is_terminal: bool = False
    
    model_config = {"frozen": True}
    
    @model_validator(mode="after")
    def buyer_offer_has_amount(self) -> "Offer":
        """Buyer offers always carry a price; counterparty replies may not."""
        if self.origin == "buyer" and self.amount is None:
            raise ValueError("buyer offers require an amount")
        return self


class ChannelEvent(BaseModel):
    """An inbound counterparty event, streamed or returned with session creation."""
    
    kind: EventKind
    message: str = ""
    proposed_price: float | None = Field(default=None, gt=0.0)
    final_price: float | None = Field(default=None, gt=0.0)
    negotiation_id: str | None = None
    received_at: datetime = Field(default_factory=utcnow)
    
    model_config = {"frozen": True}


class BuyerSubmission(BaseModel):
    """A price the local buyer has submitted."""
    
    amount: float = Field(gt=0.0)
    message: str = ""
    submitted_at: datetime = Field(default_factory=utcnow)
    
    model_config = {"frozen": True}


SessionInput = Union[ChannelEvent, BuyerSubmission]


class InitiatorResult(BaseModel):
    """Outcome of the one-shot negotiation creation call."""
    
    session_id: str = Field(min_length=1)
    server_status: str | None = None
    immediate_response: ChannelEvent | None = None
    
    model_config = {"frozen": True}


class NegotiationSession(BaseModel):
    """
    Client-side projection of one (buyer, product) negotiation.
    
    Instances are immutable: every transition returns a new session, so a
    snapshot handed to the UI can never change underneath it.
    """
    
    product_id: str
    original_price: float = Field(gt=0.0)
    buyer_id: str | None = None
    session_id: str | None = None
    status: SessionStatus = "uninitiated"
    history: tuple[Offer, ...] = ()
    final_price: float | None = None
    
    model_config = {"frozen": True}
    
    @model_validator(mode="after")
    def final_price_iff_accepted(self) -> "NegotiationSession":
        """Ensure final_price is present exactly when the session is accepted."""
        if (self.status == "accepted") != (self.final_price is not None):
            raise ValueError("final_price must be set if and only if status is 'accepted'")
        return self
    
    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
    
    @property
    def can_submit(self) -> bool:
        """Whether a buyer submission would be applied in the current status."""
        return self.status in SUBMITTABLE_STATUSES
    
    @property
    def last_offer(self) -> Offer | None:
        return self.history[-1] if self.history else None
    
    @property
    def last_buyer_amount(self) -> float | None:
        for offer in reversed(self.history):
            if offer.origin == "buyer":
                return offer.amount
        return None
    
    @property
    def savings(self) -> float | None:
        """Amount saved against the list price once accepted."""
        if self.final_price is None:
            return None
        return self.original_price - self.final_price
    
    @property
    def savings_percentage(self) -> int | None:
        """Savings as a rounded percentage of the list price once accepted."""
        if self.final_price is None:
            return None
        return round((self.original_price - self.final_price) / self.original_price * 100)
    
    def with_session_id(self, session_id: str) -> "NegotiationSession":
        """
        Record the server-assigned session id.
        
        Raises:
            ValueError: If a different id was already recorded
        """
        if self.session_id is not None and self.session_id != session_id:
            raise ValueError(
                f"session id already assigned ({self.session_id}), got {session_id}"
            )
        return self.model_copy(update={"session_id": session_id})
    
    def apply(self, event: SessionInput) -> "NegotiationSession":
        """
        Return the session state that follows ``event``.
        
        Transitions:
            uninitiated/countered/errored + buyer submission -> awaiting_response
            awaiting_response/countered/errored + message   -> countered
            awaiting_response/countered/errored + accepted  -> accepted (sets final_price)
            awaiting_response/countered/errored + rejected  -> rejected
            awaiting_response/countered/errored + error     -> errored
        
        Anything else, including every event once accepted or rejected, returns
        the session unchanged.
        """
        if self.is_terminal:
            return self
        
        if isinstance(event, BuyerSubmission):
            if not self.can_submit:
                return self
            offer = Offer(
                origin="buyer",
                amount=event.amount,
                message=event.message,
                timestamp=self._next_timestamp(event.submitted_at),
            )
            return self._append(offer, status="awaiting_response")
        
        if self.status not in RESPONSIVE_STATUSES:
            return self
        
        timestamp = self._next_timestamp(event.received_at)
        
        if event.kind == "message":
            offer = Offer(
                origin="counterparty",
                amount=event.proposed_price,
                message=event.message,
                timestamp=timestamp,
            )
            return self._append(offer, status="countered")
        
        if event.kind == "accepted":
            final_price = event.final_price or event.proposed_price or self.last_buyer_amount
            if final_price is None:
                return self
            offer = Offer(
                origin="counterparty",
                amount=final_price,
                message=event.message,
                timestamp=timestamp,
                is_terminal=True,
            )
            return self._append(offer, status="accepted", final_price=final_price)
        
        if event.kind == "rejected":
            offer = Offer(
                origin="counterparty",
                message=event.message,
                timestamp=timestamp,
                is_terminal=True,
            )
            return self._append(offer, status="rejected")
        
        # error
        offer = Offer(origin="counterparty", message=event.message, timestamp=timestamp)
        return self._append(offer, status="errored")
    
    def _next_timestamp(self, candidate: datetime) -> datetime:
        """Clamp so history timestamps never go backwards."""
        last = self.last_offer
        if last is not None and candidate < last.timestamp:
            return last.timestamp
        return candidate
    
    def _append(self, offer: Offer, **updates) -> "NegotiationSession":
        return self.model_copy(update={"history": self.history + (offer,), **updates})
