"""
Tests for client configuration and the channel factory.

WHAT: Test settings validation and channel construction from settings
WHY: Misconfigured URLs or retry counts break every negotiation
HOW: Build Settings directly and patch the singleton for the factory
"""

import pytest
from unittest.mock import patch
from pydantic import ValidationError as PydanticValidationError

from negotiation_client.core.config import Settings
from negotiation_client.channel.factory import create_channel
from negotiation_client.channel.socketio_channel import SocketIOOfferChannel


@pytest.mark.unit
class TestSettings:
    """Test Settings validators."""
    
    def test_trailing_slashes_stripped(self):
        config = Settings(API_BASE_URL="http://api.local/api/", SOCKET_URL="http://api.local/")
        
        assert config.API_BASE_URL == "http://api.local/api"
        assert config.SOCKET_URL == "http://api.local"
    
    def test_at_least_one_attempt(self):
        with pytest.raises(PydanticValidationError):
            Settings(INITIATOR_MAX_ATTEMPTS=0)
    
    def test_offer_message_template(self):
        config = Settings()
        
        assert config.OFFER_MESSAGE_TEMPLATE.format(amount=40000.0) == "Je propose 40000 FCFA"


@pytest.mark.unit
class TestChannelFactory:
    """Test channel construction."""
    
    def test_factory_uses_settings(self):
        with patch("negotiation_client.core.config.settings") as mock_settings:
            mock_settings.SOCKET_URL = "http://socket.test"
            mock_settings.SOCKET_PATH = "ws"
            mock_settings.SOCKET_RECONNECTION_ATTEMPTS = 3
            mock_settings.SOCKET_RECONNECTION_DELAY = 0.5
            
            channel = create_channel()
        
        assert isinstance(channel, SocketIOOfferChannel)
        assert channel.url == "http://socket.test"
        assert channel.path == "ws"
        assert channel.connected is False
    
    def test_factory_returns_fresh_channels(self):
        assert create_channel() is not create_channel()
