"""Unit tests for Atom feed parsing."""

from datetime import datetime, timedelta, timezone

import pytest

from licitawatch.core.config.models import ContractType, SourceType
from licitawatch.core.feeds import iter_entries, looks_like_markup, parse_feed

from tests.feeds import atom_document, entry_xml


KEYWORDS = ["formación", "ciberseguridad", "limpieza"]


@pytest.mark.unit
def test_parse_sample_feed(sample_feed, madrid_summary):
    records = parse_feed(sample_feed, SourceType.PERFILES_CONTRATANTE, KEYWORDS)
    
    assert len(records) == 3
    first, second, third = records
    
    assert first.id == "https://contrataciondelestado.es/sindicacion/licitacion/1"
    assert first.title == "Servicios de limpieza de colegios"
    assert first.summary == madrid_summary
    assert first.link.endswith("detalle_licitacion&idEvl=1")
    assert first.updated == "2024-05-02T10:00:00.000+02:00"
    assert first.amount == "40.631,78 €"
    assert first.organism == "Ayuntamiento de Madrid"
    assert first.contract_type == ContractType.SERVICIOS
    assert first.keywords_found == ("limpieza",)
    assert first.source_type == SourceType.PERFILES_CONTRATANTE
    assert first.is_read is False
    
    assert second.amount == "1.250.000,00 €"
    assert second.organism == "Diputación de Sevilla"
    assert second.contract_type == ContractType.OBRAS
    assert second.keywords_found == ()
    
    assert third.amount is None
    assert third.organism is None
    assert third.contract_type == ContractType.OTROS
    assert third.keywords_found == ("formación", "ciberseguridad")


@pytest.mark.unit
def test_content_preferred_over_summary():
    document = atom_document(
        entry_xml(
            summary="Importe: 2.000,00",
            content="<p>Órgano de Contratación: Cabildo de Tenerife; Importe: 1.000,00</p>",
        )
    )
    [record] = parse_feed(document, SourceType.CONTRATOS_MENORES)
    
    assert record.amount == "1.000,00 €"
    assert record.summary == "Órgano de Contratación: Cabildo de Tenerife; Importe: 1.000,00"
    assert record.organism == "Cabildo de Tenerife"


@pytest.mark.unit
def test_empty_content_falls_back_to_summary():
    document = atom_document(entry_xml(summary="Importe: 2.000,00", content=""))
    [record] = parse_feed(document, SourceType.CONTRATOS_MENORES)
    assert record.amount == "2.000,00 €"


@pytest.mark.unit
def test_long_summary_is_truncated():
    document = atom_document(entry_xml(content="<div>" + "x" * 500 + "</div>"))
    [record] = parse_feed(document, SourceType.PERFILES_CONTRATANTE)
    
    assert len(record.summary) == 303
    assert record.summary.endswith("...")
    assert "<" not in record.summary


@pytest.mark.unit
def test_rules_see_text_beyond_the_truncation_point():
    content = (
        "<p>" + "Expediente sin más detalle. " * 15
        + "Suministros de equipos de ciberseguridad</p>"
    )
    document = atom_document(entry_xml(title="Lote único", content=content))
    [record] = parse_feed(document, SourceType.PERFILES_CONTRATANTE, ["ciberseguridad"])

    assert len(record.summary) == 303
    assert "ciberseguridad" not in record.summary
    assert record.contract_type == ContractType.SUMINISTROS
    assert record.keywords_found == ("ciberseguridad",)


@pytest.mark.unit
def test_missing_elements_use_defaults():
    document = atom_document(
        entry_xml(id=None, title=None, link=None, updated=None, summary="texto libre")
    )
    before = datetime.now(timezone.utc) - timedelta(seconds=5)
    [record] = parse_feed(document, SourceType.PLATAFORMAS_AGREGADAS)
    
    assert record.title == "Sin título"
    assert record.link == ""
    assert record.id.startswith("gen-")
    assert record.summary == "texto libre"
    assert record.updated_at is not None
    assert record.updated_at >= before
    assert record.contract_type == ContractType.OTROS


@pytest.mark.unit
def test_entry_without_description():
    document = atom_document(entry_xml())
    [record] = parse_feed(document, SourceType.PERFILES_CONTRATANTE)
    assert record.summary == ""
    assert record.amount is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "document",
    [
        "",
        "   ",
        "Service Unavailable",
        '{"error": "rate limited"}',
        None,
    ],
)
def test_non_markup_documents_yield_nothing(document):
    assert parse_feed(document, SourceType.PERFILES_CONTRATANTE) == []


@pytest.mark.unit
def test_html_error_page_yields_nothing():
    page = "<!DOCTYPE html><html><body><h1>502 Bad Gateway</h1></body></html>"
    assert looks_like_markup(page)
    assert parse_feed(page, SourceType.PERFILES_CONTRATANTE) == []


@pytest.mark.unit
def test_leading_whitespace_and_bom_are_accepted(sample_feed):
    assert len(parse_feed("\n\ufeff  " + sample_feed, SourceType.PERFILES_CONTRATANTE)) == 3


@pytest.mark.unit
def test_truncated_document_is_recovered():
    document = (
        '<feed xmlns="http://www.w3.org/2005/Atom">'
        "<entry><id>a-1</id><title>Obras de acceso</title>"
        "<updated>2024-05-01T00:00:00Z</updated></entry>"
        "<entry><id>a-2</id><title>Servicios postales"
    )
    records = parse_feed(document, SourceType.PERFILES_CONTRATANTE)
    
    assert [r.id for r in records][:1] == ["a-1"]
    assert records[0].contract_type == ContractType.OBRAS


@pytest.mark.unit
def test_feed_without_namespace():
    document = (
        "<feed><entry><id>x</id><title>Suministros de oficina</title>"
        '<link href="https://example.org/x"/></entry></feed>'
    )
    [record] = parse_feed(document, SourceType.CONTRATOS_MENORES)
    assert record.link == "https://example.org/x"
    assert record.contract_type == ContractType.SUMINISTROS


@pytest.mark.unit
def test_parsing_is_idempotent(sample_feed):
    first = parse_feed(sample_feed, SourceType.PERFILES_CONTRATANTE, KEYWORDS)
    second = parse_feed(sample_feed, SourceType.PERFILES_CONTRATANTE, KEYWORDS)
    assert first == second


@pytest.mark.unit
def test_generated_id_is_stable_when_timestamp_present():
    document = atom_document(entry_xml(id=None))
    first = parse_feed(document, SourceType.PERFILES_CONTRATANTE)
    second = parse_feed(document, SourceType.PERFILES_CONTRATANTE)
    assert first[0].id == second[0].id
    
    other_source = parse_feed(document, SourceType.CONTRATOS_MENORES)
    assert other_source[0].id != first[0].id


@pytest.mark.unit
def test_iter_entries_reads_raw_fields(sample_feed):
    entries = iter_entries(sample_feed)
    assert [entry.id for entry in entries][-1] == "https://contrataciondelestado.es/sindicacion/licitacion/3"
    assert entries[1].title == "Obras de reforma del polideportivo municipal"


@pytest.mark.unit
def test_to_dict_uses_dashboard_field_names(sample_feed):
    first, _, third = parse_feed(sample_feed, SourceType.PERFILES_CONTRATANTE, KEYWORDS)
    
    data = first.to_dict()
    assert data["contractType"] == "Servicios"
    assert data["sourceType"] == "Perfiles Contratante"
    assert data["keywordsFound"] == ["limpieza"]
    assert data["isRead"] is False
    assert data["amount"] == "40.631,78 €"
    
    assert "amount" not in third.to_dict()
    assert "organism" not in third.to_dict()
