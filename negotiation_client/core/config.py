"""
Client configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated config with sensible defaults
HOW: Pydantic BaseSettings reads from .env and environment
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from pathlib import Path


class Settings(BaseSettings):
    """Client settings loaded from environment."""
    
    # App metadata
    APP_NAME: str = "Negotiation Client"
    APP_VERSION: str = "0.1.0"
    
    # REST API (negotiation creation, lookup, cart hand-off)
    API_BASE_URL: str = "http://localhost:5000/api"
    HTTP_TIMEOUT: float = 10.0  # seconds
    
    # Initiator retry policy (first call + retries on transient failures)
    INITIATOR_MAX_ATTEMPTS: int = 2
    INITIATOR_RETRY_DELAY: float = 1.0  # seconds, base for exponential backoff
    
    # Streaming channel
    SOCKET_URL: str = "http://localhost:5000"
    SOCKET_PATH: str = "socket.io"
    SOCKET_RECONNECTION_ATTEMPTS: int = 0  # 0 = retry forever
    SOCKET_RECONNECTION_DELAY: float = 1.0  # seconds
    
    # Text sent alongside an offer when the buyer gives none
    OFFER_MESSAGE_TEMPLATE: str = "Je propose {amount:g} FCFA"
    
    @field_validator("API_BASE_URL", "SOCKET_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs so paths can be appended with a single slash."""
        return v.rstrip("/")
    
    @field_validator("INITIATOR_MAX_ATTEMPTS")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        """At least one attempt is always made."""
        if v < 1:
            raise ValueError("INITIATOR_MAX_ATTEMPTS must be >= 1")
        return v
    
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # empty = console only
    
    class Config:
        env_file = [
            str(Path(__file__).parent.parent.parent / ".env"),
            ".env",
        ]
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Singleton instance
settings = Settings()
