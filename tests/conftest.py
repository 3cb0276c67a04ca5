"""Shared fixtures."""

import logging

import pytest

from tests.feeds import atom_document, entry_xml


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo handlers and levels installed by CLI runs."""
    logger = logging.getLogger("licitawatch")
    level, handlers = logger.level, list(logger.handlers)
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def madrid_summary() -> str:
    return (
        "Id licitación: 2024/0153; Órgano de Contratación: Ayuntamiento de Madrid; "
        "Importe: 40631.78 EUR; Estado: PUB"
    )


@pytest.fixture
def sample_feed(madrid_summary: str) -> str:
    return atom_document(
        entry_xml(summary=madrid_summary),
        entry_xml(
            id="https://contrataciondelestado.es/sindicacion/licitacion/2",
            title="Obras de reforma del polideportivo municipal",
            summary="Expediente: OB-12/2024; Órgano de Contratación: Diputación de Sevilla. "
            "Presupuesto base de licitación sin impuestos: 1.250.000,00 euros",
            updated="2024-05-03T09:30:00.000+02:00",
        ),
        entry_xml(
            id="https://contrataciondelestado.es/sindicacion/licitacion/3",
            title="Curso de formación en ciberseguridad",
            summary="Plazo de presentación: 15 días",
            updated="2024-05-01T08:00:00.000+02:00",
        ),
    )
