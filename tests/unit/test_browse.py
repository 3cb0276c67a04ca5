"""Unit tests for filtering, ordering and pagination."""

from datetime import datetime, timezone

import pytest

from licitawatch.core.browse import (
    SortOrder,
    filter_tenders,
    is_new,
    newest_timestamp,
    paginate,
    sort_tenders,
)
from licitawatch.core.config.models import ContractType, SourceType
from licitawatch.core.normalize.canonical import TenderRecord


def _record(id, updated, *, title="Suministro de material", amount=None,
            source_type=SourceType.PERFILES_CONTRATANTE, keywords=()):
    return TenderRecord(
        id=id,
        title=title,
        summary="Órgano de Contratación: Ayuntamiento de Zaragoza",
        link=f"https://example.org/{id}",
        updated=updated,
        source_type=source_type,
        contract_type=ContractType.SUMINISTROS,
        amount=amount,
        keywords_found=tuple(keywords),
    )


@pytest.fixture
def records():
    return [
        _record("a", "2024-05-01T10:00:00Z", amount="3.000,00 €"),
        _record("b", "2024-05-03T10:00:00Z", title="Curso de formación",
                keywords=["formación", "curso"], source_type=SourceType.CONTRATOS_MENORES),
        _record("c", "2024-05-02T10:00:00+02:00", amount="125.000,50 €"),
        _record("d", "???"),
    ]


def _ids(items):
    return [record.id for record in items]


# =============================================================================
# Filtering
# =============================================================================


@pytest.mark.unit
def test_filter_relevant_only(records):
    assert _ids(filter_tenders(records, only_relevant=True)) == ["b"]


@pytest.mark.unit
def test_filter_by_source(records):
    assert _ids(filter_tenders(records, source_type=SourceType.CONTRATOS_MENORES)) == ["b"]


@pytest.mark.unit
def test_search_is_case_insensitive_and_covers_summary_and_keywords(records):
    assert _ids(filter_tenders(records, search="CURSO")) == ["b"]
    assert _ids(filter_tenders(records, search="zaragoza")) == ["a", "b", "c", "d"]


@pytest.mark.unit
def test_filter_without_criteria_keeps_order(records):
    assert filter_tenders(records) == records


# =============================================================================
# Sorting
# =============================================================================


@pytest.mark.unit
def test_sort_newest_first_puts_unreadable_dates_last(records):
    assert _ids(sort_tenders(records)) == ["b", "c", "a", "d"]


@pytest.mark.unit
def test_sort_oldest_first(records):
    assert _ids(sort_tenders(records, SortOrder.OLDEST)) == ["d", "a", "c", "b"]


@pytest.mark.unit
def test_sort_by_budget(records):
    assert _ids(sort_tenders(records, SortOrder.HIGHEST_BUDGET))[:2] == ["c", "a"]
    assert _ids(sort_tenders(records, SortOrder.LOWEST_BUDGET))[-2:] == ["a", "c"]


@pytest.mark.unit
def test_sort_does_not_mutate_input(records):
    before = list(records)
    sort_tenders(records, SortOrder.HIGHEST_BUDGET)
    assert records == before


# =============================================================================
# Pagination
# =============================================================================


@pytest.mark.unit
def test_paginate_slices_pages():
    items = [_record(str(i), "2024-05-01T00:00:00Z") for i in range(45)]
    
    first = paginate(items, page=1, per_page=20)
    last = paginate(items, page=3, per_page=20)
    
    assert len(first.items) == 20
    assert first.total_pages == 3
    assert first.has_next
    assert len(last.items) == 5
    assert not last.has_next


@pytest.mark.unit
def test_paginate_clamps_out_of_range_pages(records):
    assert paginate(records, page=99, per_page=3).page == 2
    assert paginate(records, page=0, per_page=3).page == 1


@pytest.mark.unit
def test_paginate_empty_list_has_one_page():
    page = paginate([], page=1, per_page=10)
    assert page.items == []
    assert page.total_pages == 1


@pytest.mark.unit
def test_paginate_rejects_zero_page_size(records):
    with pytest.raises(ValueError):
        paginate(records, per_page=0)


# =============================================================================
# Watermarks
# =============================================================================


@pytest.mark.unit
def test_is_new_compares_against_watermark(records):
    watermark = "2024-05-02T00:00:00Z"
    
    assert [r.id for r in records if is_new(r, watermark)] == ["b", "c"]


@pytest.mark.unit
def test_is_new_accepts_naive_datetime_as_utc(records):
    assert is_new(records[1], datetime(2024, 5, 3, 9, 0))
    assert not is_new(records[1], datetime(2024, 5, 3, 10, 0, tzinfo=timezone.utc))


@pytest.mark.unit
def test_is_new_without_usable_watermark(records):
    assert is_new(records[0], None)
    assert is_new(records[0], "???")


@pytest.mark.unit
def test_newest_timestamp(records):
    assert newest_timestamp(sort_tenders(records)) == "2024-05-03T10:00:00Z"
    assert newest_timestamp([]) is None
