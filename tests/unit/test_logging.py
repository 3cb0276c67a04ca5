"""Unit tests for log formatting and context propagation."""

import logging

import orjson
import pytest

from licitawatch.core.logging import ContextualLogger, JSONFormatter


@pytest.mark.unit
def test_json_formatter_includes_context_fields():
    record = logging.makeLogRecord({
        "name": "licitawatch.test",
        "levelname": "INFO",
        "msg": "Parsed 5 entries",
        "feed": "Contratos Menores",
        "records": 5,
    })
    
    data = orjson.loads(JSONFormatter().format(record))
    
    assert data["message"] == "Parsed 5 entries"
    assert data["feed"] == "Contratos Menores"
    assert data["records"] == 5
    assert "relay" not in data
    assert "url" not in data


@pytest.mark.unit
def test_contextual_logger_merges_context_with_extra(caplog):
    log = ContextualLogger(logging.getLogger("licitawatch.test"), feed="Perfiles Contratante")
    
    with caplog.at_level("WARNING", logger="licitawatch.test"):
        log.with_context(relay="allorigins").warning(
            "Relay answered HTTP 500",
            extra={"url": "https://example.org/feed.atom"},
        )
    
    [record] = caplog.records
    assert record.feed == "Perfiles Contratante"
    assert record.relay == "allorigins"
    assert record.url == "https://example.org/feed.atom"
