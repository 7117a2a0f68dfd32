"""
Socket.IO offer channel.

WHAT: OfferChannel implementation over a python-socketio AsyncClient
WHY: The marketplace server streams negotiation turns over Socket.IO
HOW: Auth token in the handshake, outbox for offers sent while disconnected,
     automatic re-join after reconnect, synchronous dispatch to handlers
"""

from collections import deque
from typing import Any, Deque, Dict, List, Optional

import socketio
from socketio import exceptions as socketio_exceptions

from .events import EMIT_JOIN, EMIT_OFFER, INBOUND_EVENTS, parse_wire_event
from .protocol import EventHandler
from ..core.config import settings
from ..utils.exceptions import AuthenticationError, ChannelConnectionError
from ..utils.logger import get_logger

logger = get_logger(__name__)

# connect_error codes the server uses for handshake authentication failures
AUTH_ERROR_CODES = ("AUTH_REQUIRED", "INVALID_TOKEN", "USER_NOT_FOUND", "ACCOUNT_INACTIVE", "AUTH_ERROR")


class SocketIOOfferChannel:
    """Negotiation channel backed by Socket.IO."""
    
    def __init__(
        self,
        url: Optional[str] = None,
        *,
        path: Optional[str] = None,
        reconnection_attempts: Optional[int] = None,
        reconnection_delay: Optional[float] = None,
        client: Optional[socketio.AsyncClient] = None,
    ):
        """
        Initialize the channel (does not connect).
        
        Args:
            url: Socket server URL (defaults to settings.SOCKET_URL)
            path: Socket.IO endpoint path (defaults to settings.SOCKET_PATH)
            reconnection_attempts: 0 retries forever
            reconnection_delay: Seconds before the first reconnection attempt
            client: Pre-built AsyncClient (mainly for tests)
        """
        self.url = url or settings.SOCKET_URL
        self.path = path or settings.SOCKET_PATH
        
        if client is None:
            client = socketio.AsyncClient(
                reconnection=True,
                reconnection_attempts=(
                    settings.SOCKET_RECONNECTION_ATTEMPTS
                    if reconnection_attempts is None else reconnection_attempts
                ),
                reconnection_delay=(
                    settings.SOCKET_RECONNECTION_DELAY
                    if reconnection_delay is None else reconnection_delay
                ),
            )
        self._client = client
        self._handlers: List[EventHandler] = []
        self._outbox: Deque[Dict[str, Any]] = deque()
        self._joined_session: Optional[str] = None
        self._closed = False
        
        self._client.on("connect", self._on_connect)
        self._client.on("disconnect", self._on_disconnect)
        for event_name in INBOUND_EVENTS:
            self._client.on(event_name, self._make_dispatcher(event_name))
    
    @property
    def connected(self) -> bool:
        return bool(self._client.connected)
    
    @property
    def pending_offers(self) -> int:
        """Number of offers waiting for the connection to come back."""
        return len(self._outbox)
    
    async def open(self, auth_token: str) -> "SocketIOOfferChannel":
        """
        Connect to the socket server.
        
        Raises:
            AuthenticationError: Token missing or refused during the handshake
            ChannelConnectionError: Any other connection failure
        """
        if not auth_token:
            raise AuthenticationError("A bearer token is required to open the negotiation channel")
        
        self._closed = False
        if self.connected:
            return self
        
        try:
            await self._client.connect(
                self.url,
                auth={"token": auth_token},
                socketio_path=self.path,
            )
        except socketio_exceptions.ConnectionError as e:
            reason = str(e)
            if any(code in reason for code in AUTH_ERROR_CODES):
                logger.warning(f"Negotiation channel refused credentials ({reason})")
                raise AuthenticationError(f"Channel authentication failed: {reason}") from e
            logger.warning(f"Negotiation channel connection failed: {reason}")
            raise ChannelConnectionError(self.url, reason) from e
        
        if self._closed:
            # close() ran while the handshake was in flight
            await self._client.shutdown()
            raise ChannelConnectionError(self.url, "channel closed during connect")
        
        logger.info(f"Negotiation channel connected ({self.url})")
        return self
    
    async def join_session(self, session_id: str) -> None:
        """Join a negotiation room; re-joined automatically after reconnects."""
        if not session_id:
            return
        self._joined_session = session_id
        if self.connected:
            await self._emit(EMIT_JOIN, session_id)
            logger.debug(f"Joined negotiation {session_id}")
    
    async def send_offer(self, session_id: str, amount: float, message: str) -> None:
        """Emit an offer, or queue it until the connection is back."""
        payload = {
            "negotiationId": session_id,
            "message": message,
            "proposedPrice": amount,
        }
        if not self.connected or not await self._emit(EMIT_OFFER, payload):
            self._outbox.append(payload)
            logger.warning(
                f"Channel offline, queued offer for negotiation {session_id} "
                f"({len(self._outbox)} pending)"
            )
            return
        logger.debug(f"Sent offer {amount} for negotiation {session_id}")
    
    def on_event(self, handler: EventHandler) -> None:
        self._handlers.append(handler)
    
    async def close(self) -> None:
        """Drop handlers and pending offers, then disconnect and stop reconnecting."""
        if self._closed:
            return
        self._closed = True
        self._handlers.clear()
        self._outbox.clear()
        self._joined_session = None
        # shutdown() also cancels a reconnect loop running while disconnected
        await self._client.shutdown()
        logger.info("Negotiation channel closed")
    
    async def _emit(self, event: str, data: Any) -> bool:
        try:
            await self._client.emit(event, data)
            return True
        except socketio_exceptions.SocketIOError as e:
            logger.warning(f"Emit of {event} failed: {e}")
            return False
    
    async def _on_connect(self):
        if self._closed:
            return
        if self._joined_session:
            await self._emit(EMIT_JOIN, self._joined_session)
        while self._outbox and self.connected:
            payload = self._outbox[0]
            if not await self._emit(EMIT_OFFER, payload):
                break
            self._outbox.popleft()
            logger.info(f"Flushed queued offer for negotiation {payload['negotiationId']}")
    
    async def _on_disconnect(self, *args):
        if not self._closed:
            logger.warning("Negotiation channel disconnected, waiting for reconnect")
    
    def _make_dispatcher(self, event_name: str):
        def dispatch(data=None):
            if self._closed:
                return
            event = parse_wire_event(event_name, data)
            if event is None:
                return
            for handler in list(self._handlers):
                handler(event)
        return dispatch
