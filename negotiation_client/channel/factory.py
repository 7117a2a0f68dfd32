"""
Offer channel factory.

WHAT: Build the configured offer channel
WHY: Every negotiation widget needs its own channel instance
HOW: Read socket settings from config, return a fresh SocketIOOfferChannel
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .protocol import OfferChannel


def create_channel() -> "OfferChannel":
    """
    Create a new, unconnected offer channel.
    
    Returns:
        OfferChannel instance configured from settings
    """
    # Import here to avoid circular dependencies
    from ..core.config import settings
    from ..utils.logger import get_logger
    from .socketio_channel import SocketIOOfferChannel
    
    logger = get_logger(__name__)
    channel = SocketIOOfferChannel(
        settings.SOCKET_URL,
        path=settings.SOCKET_PATH,
        reconnection_attempts=settings.SOCKET_RECONNECTION_ATTEMPTS,
        reconnection_delay=settings.SOCKET_RECONNECTION_DELAY,
    )
    logger.debug(f"Offer channel created for {settings.SOCKET_URL}")
    return channel
