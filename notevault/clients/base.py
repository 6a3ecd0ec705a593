"""
Backend HTTP Client.

Shared async HTTP plumbing for the backend-as-a-service: auth, rows and
storage are three REST services behind one project URL and one API key.
"""

from collections.abc import Callable
from typing import Any

import aiobreaker
import httpx

from notevault.core.exceptions import ApplicationError, ExternalServiceError
from notevault.core.logging import get_logger, log_with_source
from notevault.core.resilience import create_circuit_breaker, create_retrying

logger = get_logger(__name__)

TokenProvider = Callable[[], str | None]


class SupabaseHTTPClient:
    """
    HTTP client for one backend service.

    Features:
    - apikey and bearer headers on every request
    - User access token from a token provider, anon key otherwise
    - Retry of transport errors (tenacity) inside a circuit breaker (aiobreaker)
    - Structured logging of requests/responses

    Subclasses set `dependency` (log/breaker name) and `error_class`
    (raised when the service cannot be reached).

    Usage:
        client = RowStoreClient(base_url, api_key)
        response = await client.get("/notes", params={"select": "*"})
    """

    dependency: str = "backend"
    error_class: type[ApplicationError] = ExternalServiceError

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        token_provider: TokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_attempts: int = 3,
        retry_wait_min: float = 0.5,
        retry_wait_max: float = 5.0,
        breaker: aiobreaker.CircuitBreaker | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Service base URL, e.g. https://x.supabase.co/rest/v1
            api_key: Project anon key
            timeout: Request timeout in seconds
            token_provider: Returns the signed-in user's access token, if any
            transport: Custom httpx transport (tests use httpx.MockTransport)
            retry_attempts: Attempts per request for transport errors
            retry_wait_min: Minimum retry backoff in seconds
            retry_wait_max: Maximum retry backoff in seconds
            breaker: Circuit breaker; one is created per client if omitted
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._token_provider = token_provider
        self._transport = transport
        self._retry_attempts = retry_attempts
        self._retry_wait_min = retry_wait_min
        self._retry_wait_max = retry_wait_max
        self._breaker = breaker or create_circuit_breaker(self.dependency)
        self._client: httpx.AsyncClient | None = None

    def set_token_provider(self, token_provider: TokenProvider | None) -> None:
        self._token_provider = token_provider

    def _auth_headers(self) -> dict[str, str]:
        token = self._token_provider() if self._token_provider else None
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        headers = {**self._auth_headers(), **kwargs.pop("headers", {})}

        retrying = create_retrying(
            attempts=self._retry_attempts,
            wait_min=self._retry_wait_min,
            wait_max=self._retry_wait_max,
        )
        return await retrying(client.request, method, path, headers=headers, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make an HTTP request to the service.

        Error responses are returned as-is; callers map them to domain errors.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: Path relative to the service base URL
            **kwargs: Additional arguments for httpx

        Returns:
            httpx.Response

        Raises:
            error_class: When the service is unreachable or the breaker is open
        """
        log_with_source(
            logger,
            "backend",
            "debug",
            "Backend request",
            dependency=self.dependency,
            method=method,
            path=path,
        )

        try:
            response = await self._breaker.call_async(self._send, method, path, **kwargs)
        except aiobreaker.CircuitBreakerError as e:
            log_with_source(
                logger,
                "backend",
                "error",
                "Backend circuit open",
                dependency=self.dependency,
                method=method,
                path=path,
            )
            raise self.error_class(f"{self.dependency} unavailable: {e}") from e
        except httpx.HTTPError as e:
            log_with_source(
                logger,
                "backend",
                "error",
                "Backend request failed",
                dependency=self.dependency,
                method=method,
                path=path,
                error=str(e),
            )
            raise self.error_class(f"{self.dependency} request failed: {e}") from e

        log_with_source(
            logger,
            "backend",
            "debug",
            "Backend response",
            dependency=self.dependency,
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return response

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a POST request."""
        return await self.request("POST", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a PATCH request."""
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a DELETE request."""
        return await self.request("DELETE", path, **kwargs)


def error_message(response: httpx.Response) -> str:
    """Extract the most specific error message from a backend error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code}"
