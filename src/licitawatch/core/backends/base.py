"""
Backend base classes and data structures.

Defines the interface contract for document-fetching backends.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class RequestSpec:
    """Specification for an HTTP request."""
    
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    timeout: float | None = None  # Backend default when None
    follow_redirects: bool = True
    
    # Metadata for logging/debugging
    feed_name: str | None = None
    relay_name: str | None = None


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    
    url: str
    final_url: str  # After redirects
    status_code: int
    text: str
    headers: dict[str, str]
    
    # Timing
    elapsed_ms: float
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    
    retry_count: int = 0
    
    @property
    def ok(self) -> bool:
        """Check if request was successful (2xx status)."""
        return 200 <= self.status_code < 300
    
    @property
    def content_length(self) -> int:
        """Get content length in bytes."""
        return len(self.text.encode("utf-8"))


class Backend(ABC):
    """Abstract base class for fetch backends."""
    
    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier."""
        pass
    
    @abstractmethod
    async def fetch(self, request: RequestSpec) -> FetchResult:
        """Fetch a URL and return the response.
        
        Non-2xx responses are returned, not raised; check ``FetchResult.ok``.
        
        Args:
            request: Request specification
            
        Returns:
            FetchResult with response data
            
        Raises:
            BackendError: On network failure or timeout
        """
        pass
    
    async def close(self) -> None:
        """Clean up backend resources."""
        pass
    
    async def __aenter__(self) -> "Backend":
        """Async context manager entry."""
        return self
    
    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()


class BackendError(Exception):
    """Base exception for backend errors."""
    
    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class FetchError(BackendError):
    """Error during fetch operation."""
    pass


class FetchTimeout(FetchError):
    """The request did not complete within its timeout."""
    pass
