"""
Negotiation error taxonomy.

WHAT: Domain-specific exceptions raised by the negotiation client
WHY: Callers can tell bad input, auth problems and transient failures apart
HOW: Exception classes with error codes, messages and structured details
"""

from typing import Optional, Any


class NegotiationError(Exception):
    """Base class for negotiation client exceptions."""
    
    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class InvalidOfferError(NegotiationError):
    """Raised when a proposed amount is not a positive finite number."""
    
    def __init__(self, amount: Any, reason: str = "amount must be a positive number"):
        super().__init__(
            message=f"Invalid offer {amount!r}: {reason}",
            code="INVALID_OFFER",
            details={"amount": repr(amount), "reason": reason}
        )


class AuthenticationError(NegotiationError):
    """Raised when the caller is not (or no longer) authenticated."""
    
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message, code="AUTHENTICATION_REQUIRED")


class ValidationError(NegotiationError):
    """Raised when the server rejects the shape of a request."""
    
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"status_code": status_code} if status_code else None
        )


class ServiceUnavailableError(NegotiationError):
    """Raised for transient failures (timeouts, connection refused, 5xx)."""
    
    def __init__(self, message: str = "Negotiation service unavailable"):
        super().__init__(message=message, code="SERVICE_UNAVAILABLE")


class OrchestratorError(NegotiationError):
    """Raised when creating the server-side negotiation fails."""
    
    def __init__(self, message: str, cause: Optional[NegotiationError] = None):
        super().__init__(
            message=message,
            code="ORCHESTRATOR_ERROR",
            details={"cause": cause.code} if cause else None
        )
        self.cause = cause


class NegotiationNotActiveError(NegotiationError):
    """Raised when an operation does not fit the current negotiation status."""
    
    def __init__(self, current_status: str, reason: str = ""):
        message = f"Negotiation not active (status: {current_status})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            code="NEGOTIATION_NOT_ACTIVE",
            details={"current_status": current_status}
        )


class ChannelConnectionError(NegotiationError):
    """Raised when the streaming channel cannot connect."""
    
    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Could not connect to {url}: {reason}",
            code="CHANNEL_CONNECTION_FAILED",
            details={"url": url}
        )
