"""End-to-end ingestion cycles over mocked relays."""

import asyncio
from collections import Counter

import httpx
import pytest

from licitawatch.core.backends import Backend, FetchResult, HttpBackend, RequestSpec
from licitawatch.core.config import AppConfig, FeedSource, SourceType
from licitawatch.core.orchestrator import FeedAggregator
from tests.feeds import atom_document, numbered_entries


FEED_A = "https://feeds.example.org/a.atom"
FEED_B = "https://feeds.example.org/b.atom"
FEED_C = "https://feeds.example.org/c.atom"


@pytest.fixture
def config():
    return AppConfig(
        feeds=[
            FeedSource(source_type=SourceType.PERFILES_CONTRATANTE, url=FEED_A),
            FeedSource(source_type=SourceType.PLATAFORMAS_AGREGADAS, url=FEED_B),
            FeedSource(source_type=SourceType.CONTRATOS_MENORES, url=FEED_C),
        ],
        keywords=[{"name": "Suministros", "keywords": ["lote 3"]}],
    )


class RelayNetwork:
    """Mock transport handler routing relay requests by target feed."""
    
    def __init__(self):
        self.calls = Counter()
    
    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        host = request.url.host
        self.calls[(url.split("feeds.example.org%2F", 1)[-1], host)] += 1
        
        if "a.atom" in url:
            if host == "corsproxy.io":
                raise httpx.ConnectTimeout("relay timed out", request=request)
            if host == "api.allorigins.win":
                return httpx.Response(500, text="Internal Server Error")
            return httpx.Response(404, text="Not Found")
        
        if "b.atom" in url:
            return httpx.Response(200, text=atom_document(*numbered_entries("B", 5, day=2)))
        
        if "c.atom" in url:
            if host == "corsproxy.io":
                return httpx.Response(503, text="Service Unavailable")
            return httpx.Response(200, text=atom_document(*numbered_entries("C", 3, day=3)))
        
        return httpx.Response(404)


async def _cycle(config, handler, **kwargs):
    async with HttpBackend(transport=httpx.MockTransport(handler)) as backend:
        aggregator = FeedAggregator(config, backend=backend)
        records = await aggregator.ingest_all(**kwargs)
        return records, aggregator.last_stats


@pytest.mark.integration
def test_cycle_merges_healthy_feeds_newest_first(config, caplog):
    network = RelayNetwork()
    
    with caplog.at_level("INFO", logger="licitawatch"):
        records, stats = asyncio.run(_cycle(config, network))
    
    assert [record.id for record in records] == [
        "C-2", "C-1", "C-0", "B-4", "B-3", "B-2", "B-1", "B-0",
    ]
    assert {record.source_type for record in records} == {
        SourceType.PLATAFORMAS_AGREGADAS,
        SourceType.CONTRATOS_MENORES,
    }
    assert stats.failed_feeds == [SourceType.PERFILES_CONTRATANTE]
    assert stats.total_records == 8
    assert stats.finished_at is not None
    assert sorted(r.records for r in caplog.records if hasattr(r, "records")) == [3, 5]


@pytest.mark.integration
def test_cycle_stops_at_first_healthy_relay(config):
    network = RelayNetwork()
    
    asyncio.run(_cycle(config, network))
    
    assert network.calls[("b.atom", "corsproxy.io")] == 1
    assert network.calls[("b.atom", "api.allorigins.win")] == 0
    assert network.calls[("c.atom", "api.allorigins.win")] == 1
    assert network.calls[("c.atom", "api.codetabs.com")] == 0
    assert sum(n for (feed, _), n in network.calls.items() if feed == "a.atom") == 3


@pytest.mark.integration
def test_cycle_extracts_fields(config):
    records, _ = asyncio.run(_cycle(config, RelayNetwork()))
    by_id = {record.id: record for record in records}
    
    assert by_id["B-3"].organism == "Ayuntamiento B"
    assert by_id["B-3"].amount == "3.000,00 €"
    assert by_id["B-3"].contract_type.value == "Suministros"
    assert by_id["B-3"].keywords_found == ("lote 3",)
    assert not by_id["C-1"].is_relevant


@pytest.mark.integration
def test_keyword_override(config):
    records, _ = asyncio.run(_cycle(config, RelayNetwork(), keywords=["suministros"]))
    
    assert all(record.keywords_found == ("suministros",) for record in records)


@pytest.mark.integration
def test_all_feeds_failing_gives_empty_result(config):
    records, stats = asyncio.run(_cycle(config, lambda request: httpx.Response(502)))
    
    assert records == []
    assert len(stats.failed_feeds) == 3


class CrashingBackend(Backend):
    """Raises an unexpected error for one feed and serves the others."""
    
    def __init__(self, crash_on: str, document: str):
        self.crash_on = crash_on
        self.document = document
    
    @property
    def name(self) -> str:
        return "crashing"
    
    async def fetch(self, request: RequestSpec) -> FetchResult:
        if request.feed_name == self.crash_on:
            raise RuntimeError("parser exploded")
        return FetchResult(
            url=request.url,
            final_url=request.url,
            status_code=200,
            text=self.document,
            headers={},
            elapsed_ms=0.0,
        )


@pytest.mark.integration
def test_unexpected_feed_error_is_isolated(config, caplog):
    backend = CrashingBackend(
        crash_on=SourceType.PLATAFORMAS_AGREGADAS.value,
        document=atom_document(*numbered_entries("X", 2)),
    )
    aggregator = FeedAggregator(config, backend=backend)
    
    with caplog.at_level("ERROR"):
        records = asyncio.run(aggregator.ingest_all())
    
    assert len(records) == 4
    assert SourceType.PLATAFORMAS_AGREGADAS not in {record.source_type for record in records}
    
    failed = [feed for feed in aggregator.last_stats.feeds if feed.error]
    assert [feed.source_type for feed in failed] == [SourceType.PLATAFORMAS_AGREGADAS]
    assert failed[0].error == "parser exploded"
    assert "parser exploded" in caplog.text


class RendezvousBackend(Backend):
    """Each feed waits until every feed has started fetching."""
    
    def __init__(self, expected: int):
        self.expected = expected
        self.started = 0
        self.all_started = asyncio.Event()
    
    @property
    def name(self) -> str:
        return "rendezvous"
    
    async def fetch(self, request: RequestSpec) -> FetchResult:
        self.started += 1
        if self.started == self.expected:
            self.all_started.set()
        await asyncio.wait_for(self.all_started.wait(), timeout=2)
        return FetchResult(
            url=request.url,
            final_url=request.url,
            status_code=200,
            text=atom_document(*numbered_entries(request.feed_name[:1], 1)),
            headers={},
            elapsed_ms=0.0,
        )


@pytest.mark.integration
def test_feeds_are_fetched_concurrently(config):
    async def scenario():
        backend = RendezvousBackend(expected=3)
        return await FeedAggregator(config, backend=backend).ingest_all()
    
    records = asyncio.run(scenario())
    
    assert len(records) == 3
