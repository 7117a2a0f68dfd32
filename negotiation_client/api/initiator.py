"""
Negotiation session initiator.

WHAT: REST client that creates negotiations and hands accepted deals to the cart
WHY: The first offer must atomically create the server-side negotiation record
HOW: httpx AsyncClient with bearer auth, status-code error mapping, retry with backoff
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Protocol

import httpx

from ..channel.events import coerce_price, parse_bot_response
from ..core.config import settings
from ..models.negotiation import InitiatorResult
from ..utils.exceptions import (
    AuthenticationError,
    ServiceUnavailableError,
    ValidationError,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


class SessionInitiator(Protocol):
    """What the orchestrator needs from the REST side."""
    
    async def create(
        self, product_id: str, proposed_price: float, *, auth_token: str
    ) -> InitiatorResult:
        ...
    
    async def add_to_cart(self, negotiation_id: str, *, auth_token: str) -> Dict[str, Any]:
        ...


class NegotiationInitiator:
    """Client for the /negotiations REST resource."""
    
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the initiator.
        
        Args:
            base_url: API root (defaults to settings.API_BASE_URL)
            timeout: Request timeout in seconds
            max_attempts: Total attempts for transient failures
            retry_delay: Base delay for exponential backoff
            client: Pre-built httpx client (shared connection pool)
        """
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self.max_attempts = max(1, max_attempts if max_attempts is not None else settings.INITIATOR_MAX_ATTEMPTS)
        self.retry_delay = retry_delay if retry_delay is not None else settings.INITIATOR_RETRY_DELAY
        
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers={"Accept": "application/json"},
        )
        logger.info(f"Negotiation initiator ready ({self.base_url}, attempts: {self.max_attempts})")
    
    async def create(
        self, product_id: str, proposed_price: float, *, auth_token: str
    ) -> InitiatorResult:
        """
        Create a negotiation with the buyer's first price.
        
        Args:
            product_id: Product under negotiation
            proposed_price: Buyer's opening offer
            auth_token: Bearer credential
        
        Returns:
            InitiatorResult with the session id and optional immediate bot reply
        
        Raises:
            AuthenticationError: Missing token or HTTP 401/403
            ValidationError: Malformed price or HTTP 4xx
            ServiceUnavailableError: Timeouts, connection errors, 5xx after retries
        """
        if coerce_price(proposed_price) is None:
            raise ValidationError(f"Malformed price: {proposed_price!r}")
        
        payload = await self._request(
            "POST",
            "/negotiations",
            auth_token,
            json={"productId": product_id, "proposedPrice": proposed_price},
        )
        result = self._parse_creation(payload)
        logger.info(
            f"Negotiation {result.session_id} created for product {product_id} "
            f"(immediate response: {result.immediate_response.kind if result.immediate_response else 'none'})"
        )
        return result
    
    async def get(self, negotiation_id: str, *, auth_token: str) -> Dict[str, Any]:
        """Fetch one negotiation as stored by the server."""
        payload = await self._request("GET", f"/negotiations/{negotiation_id}", auth_token)
        data = self._unwrap(payload)
        return data.get("negotiation", data)
    
    async def list(self, *, auth_token: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """List the caller's negotiations, optionally filtered by server status."""
        params = {"status": status} if status else None
        payload = await self._request("GET", "/negotiations", auth_token, params=params)
        data = self._unwrap(payload)
        negotiations = data.get("negotiations", []) if isinstance(data, dict) else data
        return list(negotiations)
    
    async def add_to_cart(self, negotiation_id: str, *, auth_token: str) -> Dict[str, Any]:
        """Put an accepted negotiation's product in the cart at the negotiated price."""
        payload = await self._request(
            "POST", f"/negotiations/{negotiation_id}/add-to-cart", auth_token
        )
        logger.info(f"Negotiation {negotiation_id} added to cart")
        return self._unwrap(payload)
    
    async def close(self):
        """Close the HTTP client if this initiator created it."""
        if self._owns_client:
            await self.client.aclose()
    
    async def _request(
        self, method: str, path: str, auth_token: str, **kwargs
    ) -> Dict[str, Any]:
        if not auth_token:
            raise AuthenticationError("A bearer token is required for negotiation requests")
        
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {auth_token}"}
        
        # Retry logic with exponential backoff
        for attempt in range(self.max_attempts):
            try:
                response = await self.client.request(method, url, headers=headers, **kwargs)
                response.raise_for_status()
                return response.json()
            
            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                message = self._server_message(e.response)
                
                if status_code in (401, 403):
                    logger.warning(f"{method} {path} refused: HTTP {status_code}")
                    raise AuthenticationError(message or "Authentication required") from e
                
                if status_code < 500:
                    raise ValidationError(message or f"HTTP {status_code}", status_code=status_code) from e
                
                logger.error(f"{method} {path} server error {status_code} (attempt {attempt + 1}/{self.max_attempts})")
                if attempt == self.max_attempts - 1:
                    raise ServiceUnavailableError(f"Server error: {status_code}") from e
            
            except httpx.TimeoutException as e:
                logger.warning(f"{method} {path} timeout (attempt {attempt + 1}/{self.max_attempts})")
                if attempt == self.max_attempts - 1:
                    raise ServiceUnavailableError(f"Request timed out after {self.max_attempts} attempts") from e
            
            except httpx.TransportError as e:
                logger.error(f"{method} {path} transport error (attempt {attempt + 1}/{self.max_attempts}): {e}")
                if attempt == self.max_attempts - 1:
                    raise ServiceUnavailableError("Negotiation service is not reachable") from e
            
            except json.JSONDecodeError as e:
                logger.error(f"Invalid JSON from {method} {path}: {e}")
                raise ServiceUnavailableError(f"Invalid response format: {e}") from e
            
            await asyncio.sleep(self.retry_delay * (2 ** attempt))
        
        raise ServiceUnavailableError("Negotiation service unavailable")
    
    @staticmethod
    def _server_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError):
            return response.text
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or "")
        return ""
    
    @staticmethod
    def _unwrap(payload: Any) -> Any:
        """Strip the {success, message, data} envelope when present."""
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload
    
    def _parse_creation(self, payload: Any) -> InitiatorResult:
        if not isinstance(payload, dict):
            raise ServiceUnavailableError("Invalid response format: expected an object")
        
        data = self._unwrap(payload)
        if not isinstance(data, dict):
            raise ServiceUnavailableError("Invalid response format: expected an object")
        
        negotiation = data.get("negotiation", data)
        if not isinstance(negotiation, dict):
            raise ServiceUnavailableError("Invalid response format: negotiation missing")

        session_id = negotiation.get("id") or negotiation.get("_id")
        if not session_id:
            raise ServiceUnavailableError("Invalid response format: negotiation id missing")
        
        raw_bot = data.get("botResponse") or payload.get("botResponse")
        immediate = parse_bot_response(raw_bot) if raw_bot else None
        
        return InitiatorResult(
            session_id=str(session_id),
            server_status=str(negotiation["status"]) if negotiation.get("status") else None,
            immediate_response=immediate,
        )
