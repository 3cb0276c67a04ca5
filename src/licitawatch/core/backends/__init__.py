"""Backend implementations for fetching remote documents."""

from .base import (
    Backend,
    BackendError,
    FetchError,
    FetchResult,
    FetchTimeout,
    RequestSpec,
)
from .http_backend import HttpBackend

__all__ = [
    # Base classes
    "Backend",
    "RequestSpec",
    "FetchResult",
    # Errors
    "BackendError",
    "FetchError",
    "FetchTimeout",
    # HTTP backend
    "HttpBackend",
]
