"""
HTTP Backend implementation using httpx.

Provides async HTTP fetching with:
- A shared connection pool per ingestion cycle
- Per-request timeouts
- Optional retry with exponential backoff (single attempt by default)
"""

from __future__ import annotations

import time

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .base import (
    Backend,
    FetchError,
    FetchResult,
    FetchTimeout,
    RequestSpec,
)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class HttpBackend(Backend):
    """HTTP backend using httpx for async requests.
    
    Non-2xx responses come back as a FetchResult with ``ok == False``;
    only transport failures and timeouts raise.
    """
    
    def __init__(
        self,
        timeout: float = 10.0,
        max_attempts: int = 1,
        user_agent: str | None = None,
        default_headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HTTP backend.
        
        Args:
            timeout: Default request timeout in seconds
            max_attempts: Attempts per request on transport errors
            user_agent: Custom user agent
            default_headers: Default headers for all requests
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.transport = transport
        
        self.default_headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/atom+xml,application/xml;q=0.9,text/xml;q=0.8,*/*;q=0.5",
            "Accept-Language": "es-ES,es;q=0.9",
            **(default_headers or {}),
        }
        
        self._client: httpx.AsyncClient | None = None
    
    @property
    def name(self) -> str:
        return "http"
    
    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers=self.default_headers,
                transport=self.transport,
            )
        return self._client
    
    async def fetch(self, request: RequestSpec) -> FetchResult:
        """Fetch a URL.
        
        Args:
            request: Request specification
            
        Returns:
            FetchResult with response data
            
        Raises:
            FetchTimeout: If every attempt timed out
            FetchError: On any other transport failure
        """
        client = await self._ensure_client()
        headers = {**self.default_headers, **request.headers}
        timeout = request.timeout if request.timeout is not None else self.timeout
        retry_count = 0
        
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    retry_count = attempt.retry_state.attempt_number - 1
                    started = time.perf_counter()
                    
                    response = await client.get(
                        request.url,
                        headers=headers,
                        params=request.params or None,
                        timeout=timeout,
                        follow_redirects=request.follow_redirects,
                    )
                    
                    return FetchResult(
                        url=request.url,
                        final_url=str(response.url),
                        status_code=response.status_code,
                        text=response.text,
                        headers=dict(response.headers),
                        elapsed_ms=(time.perf_counter() - started) * 1000,
                        retry_count=retry_count,
                    )
        except httpx.TimeoutException as e:
            raise FetchTimeout(
                f"Timed out after {timeout:.0f}s",
                url=request.url,
                cause=e,
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(
                f"Transport error after {retry_count + 1} attempt(s): {e}",
                url=request.url,
                cause=e,
            ) from e
        
        # AsyncRetrying with reraise=True either returns or raises above
        raise FetchError("No fetch attempt was made", url=request.url)
    
    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
