"""
Negotiation orchestrator.

WHAT: State machine driving one negotiation widget
WHY: Hide the two delivery paths (one-shot creation vs. streamed events) behind one interface
HOW: Owns the active session and channel, applies every input through
     NegotiationSession.apply, and fences stale work with a generation counter
"""

import asyncio
import math
import numbers
from typing import Any, Callable, Dict, List, Optional

from .config import settings
from ..api.initiator import SessionInitiator
from ..channel.factory import create_channel
from ..channel.protocol import OfferChannel
from ..models.negotiation import BuyerSubmission, ChannelEvent, NegotiationSession
from ..utils.exceptions import (
    AuthenticationError,
    ChannelConnectionError,
    InvalidOfferError,
    NegotiationError,
    NegotiationNotActiveError,
    OrchestratorError,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

StateListener = Callable[[Optional[NegotiationSession]], None]


class NegotiationOrchestrator:
    """
    Drive a single active negotiation.

    WHAT: Closed -> Open(uninitiated) -> Open(awaiting_response <-> countered)
          -> Open(accepted | rejected) -> Closed
    WHY: The UI needs one coherent session snapshot, whatever path an event took
    HOW: propose_price calls are serialized by a lock; channel events are applied
         synchronously in arrival order; open_for/close bump a generation so
         results and events belonging to a discarded session are dropped
    """

    def __init__(
        self,
        initiator: SessionInitiator,
        auth_token: str,
        *,
        channel_factory: Callable[[], OfferChannel] = create_channel,
        buyer_id: Optional[str] = None,
    ):
        """
        Initialize a closed orchestrator.

        Args:
            initiator: REST client creating negotiations
            auth_token: Bearer credential for the initiator and the channel
            channel_factory: Builds a fresh channel for every opened negotiation
            buyer_id: Optional buyer identifier recorded on sessions
        """
        self._initiator = initiator
        self._auth_token = auth_token
        self._channel_factory = channel_factory
        self._buyer_id = buyer_id

        self._session: Optional[NegotiationSession] = None
        self._channel: Optional[OfferChannel] = None
        self._joined_session_id: Optional[str] = None
        self._generation = 0

        # Inbound events seen while the first offer's creation call is in flight
        self._creating = False
        self._pending_events: List[ChannelEvent] = []

        self._listeners: List[StateListener] = []
        self._propose_lock = asyncio.Lock()

    @property
    def current_state(self) -> Optional[NegotiationSession]:
        """Immutable snapshot of the active session (None when closed)."""
        return self._session

    @property
    def is_open(self) -> bool:
        return self._session is not None

    @property
    def is_listening(self) -> bool:
        """True when the channel is connected and joined to the active negotiation."""
        if self._session is None or self._channel is None or not self._channel.connected:
            return False
        session_id = self._session.session_id
        return session_id is None or self._joined_session_id == session_id

    def set_auth_token(self, auth_token: str) -> None:
        """Swap the credential after the user re-authenticates."""
        self._auth_token = auth_token

    def on_state_change(self, listener: StateListener) -> Callable[[], None]:
        """
        Subscribe to session transitions.

        Returns:
            Callable that removes the subscription
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def open_for(
        self, product_id: str, original_price: float, *, buyer_id: Optional[str] = None
    ) -> NegotiationSession:
        """
        Start a fresh negotiation for a product, tearing down any previous one.

        Args:
            product_id: Product under negotiation
            original_price: List price at negotiation start
            buyer_id: Overrides the orchestrator-level buyer id

        Returns:
            The new, uninitiated session snapshot
        """
        price = self._validate_amount(original_price)

        await self._teardown()
        generation = self._generation

        self._session = NegotiationSession(
            product_id=product_id,
            original_price=price,
            buyer_id=buyer_id or self._buyer_id,
        )
        channel = self._channel_factory()
        channel.on_event(lambda event: self._receive(event, generation))
        self._channel = channel
        logger.info(f"Negotiation opened for product {product_id} (list price {price:g})")
        self._notify()

        await self._connect_channel(channel, generation)
        return self._session

    async def propose_price(
        self, amount: Any, message: Optional[str] = None
    ) -> Optional[NegotiationSession]:
        """
        Submit a price for the active negotiation.

        The first offer creates the negotiation through the initiator; later
        offers are appended to history immediately and sent over the channel.

        Args:
            amount: Proposed price, a positive finite number
            message: Optional text (defaults to settings.OFFER_MESSAGE_TEMPLATE)

        Returns:
            Session snapshot after the submission, or None if the negotiation
            was closed or replaced while the call was in flight

        Raises:
            InvalidOfferError: amount is not a positive finite number
            NegotiationNotActiveError: nothing open, concluded, or a follow-up is pending
            AuthenticationError: the initiator or the channel refused the credential
            ChannelConnectionError: a follow-up could not reach the channel (nothing recorded)
            OrchestratorError: negotiation creation failed for any other reason
        """
        price = self._validate_amount(amount)
        if message is None:
            message = settings.OFFER_MESSAGE_TEMPLATE.format(amount=price)

        async with self._propose_lock:
            session = self._require_session()
            if session.is_terminal:
                raise NegotiationNotActiveError(session.status, "negotiation already concluded")

            if session.session_id is None:
                return await self._create_session(session, price, message)

            if not session.can_submit:
                raise NegotiationNotActiveError(
                    session.status, "waiting for the counterparty's response"
                )
            return await self._send_follow_up(session.session_id, price, message)

    def on_channel_event(self, event: ChannelEvent) -> None:
        """Apply an inbound event to the active session."""
        self._receive(event, self._generation)

    async def reconnect(self) -> bool:
        """
        Retry the offer channel for the active negotiation.

        Connects if needed and joins the negotiation once it has a session id.

        Returns:
            True when listening, False if the negotiation was replaced meanwhile

        Raises:
            NegotiationNotActiveError: nothing open
            AuthenticationError: the channel refused the credential
            ChannelConnectionError: the channel is still unreachable
        """
        async with self._propose_lock:
            session = self._require_session()
            return await self._join(self._channel, session.session_id, self._generation)

    async def add_to_cart(self) -> Dict[str, Any]:
        """
        Hand an accepted negotiation over to the cart.

        Raises:
            NegotiationNotActiveError: The active session is not accepted
        """
        session = self._require_session()
        if session.status != "accepted":
            raise NegotiationNotActiveError(
                session.status, "only accepted negotiations can be added to the cart"
            )
        return await self._initiator.add_to_cart(session.session_id, auth_token=self._auth_token)

    async def close(self) -> None:
        """Disconnect the channel, discard the session and return to Closed."""
        was_open = self._session is not None
        await self._teardown()
        if was_open:
            logger.info("Negotiation closed")
            self._notify()

    async def __aenter__(self) -> "NegotiationOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _create_session(
        self, session: NegotiationSession, price: float, message: str
    ) -> Optional[NegotiationSession]:
        generation = self._generation
        self._creating = True
        self._pending_events = []

        try:
            result = await self._initiator.create(
                session.product_id, price, auth_token=self._auth_token
            )
        except AuthenticationError:
            logger.warning(f"Negotiation creation for product {session.product_id} refused: not authenticated")
            self._reset_creation(generation)
            raise
        except NegotiationError as e:
            logger.error(f"Negotiation creation for product {session.product_id} failed: {e.message}")
            self._reset_creation(generation)
            raise OrchestratorError(
                f"Could not start negotiation: {e.message}", cause=e
            ) from e

        if generation != self._generation:
            logger.warning(
                f"Discarding creation result {result.session_id}: negotiation was closed or replaced"
            )
            return None

        pending = self._pending_events
        self._reset_creation(generation)

        # Apply against the latest session, not the one captured before the await
        updated = self._session.with_session_id(result.session_id)
        updated = updated.apply(BuyerSubmission(amount=price, message=message))
        if result.immediate_response is not None:
            updated = updated.apply(result.immediate_response)
        for event in pending:
            if self._belongs_to(event, updated):
                updated = updated.apply(event)

        logger.info(
            f"Negotiation {result.session_id} started at {price:g} (status: {updated.status})"
        )
        self._set_session(updated)

        # Without an immediate outcome the reply can only arrive over the joined channel
        if result.immediate_response is None and not updated.is_terminal:
            try:
                if not await self._join(self._channel, result.session_id, generation):
                    return None
            except (AuthenticationError, ChannelConnectionError) as e:
                logger.warning(
                    f"Negotiation {result.session_id} created but the offer channel is down, "
                    f"reconnect() to receive the reply: {e.message}"
                )
        return self._session

    async def _send_follow_up(
        self, session_id: str, price: float, message: str
    ) -> Optional[NegotiationSession]:
        generation = self._generation
        channel = self._channel

        if not await self._join(channel, session_id, generation):
            return None

        # Optimistic: record the buyer's offer before the network round trip
        updated = self._session.apply(BuyerSubmission(amount=price, message=message))
        if updated is self._session:
            raise NegotiationNotActiveError(
                self._session.status, "negotiation changed before the offer was sent"
            )
        self._set_session(updated)

        await channel.send_offer(session_id, price, message)
        logger.info(f"Follow-up offer {price:g} sent for negotiation {session_id}")
        return self._session if generation == self._generation else None

    def _receive(self, event: ChannelEvent, generation: int) -> None:
        if generation != self._generation or self._session is None:
            logger.debug(f"Dropping {event.kind} event for a discarded negotiation")
            return

        session = self._session
        if session.session_id is None:
            if self._creating:
                self._pending_events.append(event)
                logger.debug(f"Buffered {event.kind} event until the negotiation is created")
            else:
                logger.warning(f"Dropping {event.kind} event: no negotiation created yet")
            return

        if not self._belongs_to(event, session):
            logger.warning(
                f"Dropping {event.kind} event for negotiation {event.negotiation_id} "
                f"(active: {session.session_id})"
            )
            return

        updated = session.apply(event)
        if updated is session:
            logger.debug(f"{event.kind} event absorbed (status: {session.status})")
            return

        if updated.is_terminal:
            logger.info(
                f"Negotiation {session.session_id} {updated.status}"
                + (f" at {updated.final_price:g}" if updated.final_price is not None else "")
            )
        else:
            logger.debug(f"Negotiation {session.session_id}: {session.status} -> {updated.status}")
        self._set_session(updated)

    async def _connect_channel(self, channel: OfferChannel, generation: int) -> bool:
        """Open the channel; failures are logged and retried on the next follow-up."""
        try:
            await channel.open(self._auth_token)
        except (AuthenticationError, ChannelConnectionError) as e:
            logger.warning(f"Offer channel unavailable, will retry later: {e.message}")
            return False

        if generation != self._generation:
            await channel.close()
            return False
        return True

    async def _join(
        self, channel: OfferChannel, session_id: Optional[str], generation: int
    ) -> bool:
        """Connect and join session_id; connection errors propagate."""
        if not channel.connected:
            try:
                await channel.open(self._auth_token)
            except (AuthenticationError, ChannelConnectionError):
                if generation != self._generation:
                    return False
                raise
            if generation != self._generation:
                await channel.close()
                return False

        if session_id is not None and self._joined_session_id != session_id:
            await channel.join_session(session_id)
            if generation != self._generation:
                return False
            self._joined_session_id = session_id
            logger.debug(f"Listening on negotiation {session_id}")
        return True

    async def _teardown(self) -> None:
        self._generation += 1
        channel = self._channel
        self._channel = None
        self._session = None
        self._joined_session_id = None
        self._creating = False
        self._pending_events = []
        if channel is not None:
            await channel.close()

    def _reset_creation(self, generation: int) -> None:
        if generation == self._generation:
            self._creating = False
            self._pending_events = []

    def _require_session(self) -> NegotiationSession:
        if self._session is None:
            raise NegotiationNotActiveError("closed", "no negotiation is open")
        return self._session

    def _set_session(self, session: NegotiationSession) -> None:
        self._session = session
        self._notify()

    def _notify(self) -> None:
        snapshot = self._session
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"State listener failed: {e}")

    @staticmethod
    def _belongs_to(event: ChannelEvent, session: NegotiationSession) -> bool:
        return event.negotiation_id is None or event.negotiation_id == session.session_id

    @staticmethod
    def _validate_amount(amount: Any) -> float:
        if isinstance(amount, bool) or not isinstance(amount, numbers.Real):
            raise InvalidOfferError(amount, "amount must be a number")
        value = float(amount)
        if not math.isfinite(value):
            raise InvalidOfferError(amount, "amount must be finite")
        if value <= 0:
            raise InvalidOfferError(amount, "amount must be greater than zero")
        return value
