"""
Relay-based document fetching.

The public feeds are reached through third-party relays that wrap the
target URL as a query parameter. Relays are tried one after another and
the first healthy response wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence, TypeVar
from urllib.parse import quote

from licitawatch.core.backends.base import Backend, BackendError, RequestSpec
from licitawatch.core.config.models import FetchConfig, RelayStrategy, default_relays
from licitawatch.core.logging import ContextualLogger


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Strategy:
    """A named zero-argument coroutine factory.

    ``attempt`` returns a value on success, ``None`` for an unhealthy
    response, and may raise on transport failure.
    """

    name: str
    attempt: Callable[[], Awaitable[T | None]]


async def first_successful(
    strategies: Sequence[Strategy],
    *,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> T | None:
    """Run strategies in order and return the first non-None result.

    Each strategy runs at most once and never concurrently with another.
    Failures are logged as warnings and the next strategy is tried.

    Args:
        strategies: Ordered strategies
        log: Logger for failure warnings

    Returns:
        The first successful value, or None if every strategy failed
    """
    log = log or logger
    
    for strategy in strategies:
        try:
            result = await strategy.attempt()
        except BackendError as e:
            log.warning(f"Strategy {strategy.name} failed: {e}")
            continue
        
        if result is not None:
            return result
    
    return None


def wrap_url(relay: RelayStrategy, target_url: str) -> str:
    """Build the relay URL for a target, percent-encoding the target."""
    return relay.url_template.replace("{url}", quote(target_url, safe=""))


class TransportResolver:
    """Fetch documents through an ordered chain of relays.
    
    Usage:
        async with HttpBackend(timeout=10) as backend:
            resolver = TransportResolver(backend)
            text = await resolver.fetch_document(feed_url)
    """
    
    def __init__(
        self,
        backend: Backend,
        relays: list[RelayStrategy] | None = None,
        fetch_config: FetchConfig | None = None,
    ) -> None:
        """Initialize the resolver.
        
        Args:
            backend: Backend that performs the HTTP requests
            relays: Relays in the order they are tried (default chain if None)
            fetch_config: Timeout and direct-fetch settings
        """
        self.backend = backend
        self.relays = relays if relays is not None else default_relays()
        self.fetch_config = fetch_config or FetchConfig()
    
    def _strategy(
        self,
        name: str,
        url: str,
        target_url: str,
        log: ContextualLogger,
    ) -> Strategy:
        """Build a strategy that fetches one URL and checks its status."""
        
        async def attempt() -> str | None:
            result = await self.backend.fetch(
                RequestSpec(
                    url=url,
                    timeout=self.fetch_config.timeout_seconds,
                    feed_name=log.feed,
                    relay_name=name,
                )
            )
            if not result.ok:
                log.with_context(relay=name).warning(
                    f"Relay answered HTTP {result.status_code} for {target_url}",
                    extra={"url": target_url},
                )
                return None
            log.with_context(relay=name).debug(
                f"Fetched {result.content_length} bytes in {result.elapsed_ms:.0f}ms",
                extra={"url": target_url},
            )
            return result.text
        
        return Strategy(name=name, attempt=attempt)
    
    def strategies_for(self, target_url: str, feed_name: str | None = None) -> list[Strategy]:
        """List the strategies tried for a target, in order."""
        log = ContextualLogger(logger, feed=feed_name)
        strategies: list[Strategy] = []
        
        if self.fetch_config.try_direct_first:
            strategies.append(self._strategy("direct", target_url, target_url, log))
        
        for relay in self.relays:
            strategies.append(
                self._strategy(relay.name, wrap_url(relay, target_url), target_url, log)
            )
        
        return strategies
    
    async def fetch_document(self, url: str, feed_name: str | None = None) -> str | None:
        """Fetch a document through the relay chain.
        
        Args:
            url: Target document URL
            feed_name: Feed label for log context
            
        Returns:
            Document text, or None if every strategy failed
        """
        log = ContextualLogger(logger, feed=feed_name)
        text = await first_successful(self.strategies_for(url, feed_name), log=log)
        
        if text is None:
            log.error(f"All fetch strategies failed for {url}")
        
        return text
