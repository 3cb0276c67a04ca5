"""
Pydantic configuration models for LicitaWatch.

These models provide type-safe configuration with validation for:
- Feed sources and their labels
- Relay (proxy) strategies used to reach the feeds
- Fetch timeouts
- Keyword categories
- Logging
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Enums
# =============================================================================


class SourceType(str, Enum):
    """Which syndication feed produced a record."""

    PERFILES_CONTRATANTE = "Perfiles Contratante"
    PLATAFORMAS_AGREGADAS = "Plataformas Agregadas"
    CONTRATOS_MENORES = "Contratos Menores"


class ContractType(str, Enum):
    """Coarse procurement category."""

    SERVICIOS = "Servicios"
    SUMINISTROS = "Suministros"
    OBRAS = "Obras"
    OTROS = "Otros"


# =============================================================================
# Feed Configuration
# =============================================================================


SYNDICATION_BASE = "https://contrataciondelsectorpublico.gob.es/sindicacion"


class FeedSource(BaseModel):
    """One upstream Atom feed."""

    source_type: SourceType = Field(
        ...,
        description="Label attached to every record from this feed",
    )
    url: str = Field(
        ...,
        description="Atom document URL",
    )
    enabled: bool = Field(
        default=True,
        description="Include this feed in ingestion cycles",
    )

    @field_validator("url")
    @classmethod
    def url_is_http(cls, v: str) -> str:
        """Require an absolute http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v


def default_feeds() -> list[FeedSource]:
    """The three public feeds of the Plataforma de Contratación."""
    return [
        FeedSource(
            source_type=SourceType.PERFILES_CONTRATANTE,
            url=f"{SYNDICATION_BASE}/sindicacion_643/licitacionesPerfilesContratanteCompleto3.atom",
        ),
        FeedSource(
            source_type=SourceType.PLATAFORMAS_AGREGADAS,
            url=f"{SYNDICATION_BASE}/sindicacion_1044/PlataformasAgregadasSinMenores.atom",
        ),
        FeedSource(
            source_type=SourceType.CONTRATOS_MENORES,
            url=f"{SYNDICATION_BASE}/sindicacion_1143/contratosMenoresPerfilesContratantes.atom",
        ),
    ]


# =============================================================================
# Relay Configuration
# =============================================================================


class RelayStrategy(BaseModel):
    """A third-party relay that wraps the target URL as a query parameter."""

    name: str = Field(..., description="Relay identifier used in logs")
    url_template: str = Field(
        ...,
        description="Relay URL with a {url} placeholder for the encoded target",
    )

    @field_validator("url_template")
    @classmethod
    def template_has_placeholder(cls, v: str) -> str:
        """Ensure the template can receive the target URL."""
        if "{url}" not in v:
            raise ValueError("url_template must contain a {url} placeholder")
        return v


def default_relays() -> list[RelayStrategy]:
    """Relays tried in order when fetching a feed."""
    return [
        RelayStrategy(name="corsproxy", url_template="https://corsproxy.io/?{url}"),
        RelayStrategy(name="allorigins", url_template="https://api.allorigins.win/raw?url={url}"),
        RelayStrategy(name="codetabs", url_template="https://api.codetabs.com/v1/proxy?quest={url}"),
    ]


class FetchConfig(BaseModel):
    """Per-attempt transport settings."""

    timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        description="Timeout for a single relay attempt",
    )
    max_attempts: int = Field(
        default=1,
        ge=1,
        le=5,
        description="Attempts per relay before moving to the next one",
    )
    try_direct_first: bool = Field(
        default=False,
        description="Request the feed URL itself before falling back to relays",
    )
    user_agent: str | None = Field(
        default=None,
        description="Override the default User-Agent header",
    )


# =============================================================================
# Keyword Configuration
# =============================================================================


class KeywordCategory(BaseModel):
    """A named group of keywords to tag records with."""

    name: str
    keywords: list[str] = Field(default_factory=list)

    @field_validator("keywords")
    @classmethod
    def strip_keywords(cls, v: list[str]) -> list[str]:
        """Drop blank entries and surrounding whitespace."""
        return [k.strip() for k in v if k and k.strip()]


def default_keyword_categories() -> list[KeywordCategory]:
    """Starter keyword set, meant to be replaced in app.yaml."""
    return [
        KeywordCategory(
            name="Formación",
            keywords=["formación", "curso", "capacitación", "docencia"],
        ),
        KeywordCategory(
            name="Tecnología",
            keywords=["software", "desarrollo", "plataforma digital", "ciberseguridad"],
        ),
        KeywordCategory(
            name="Comunicación",
            keywords=["comunicación", "divulgación", "campaña", "eventos"],
        ),
    ]


def flatten_keywords(categories: list[KeywordCategory]) -> list[str]:
    """Flatten categories into one list, dropping case-insensitive repeats.

    The first spelling of a keyword wins and order follows the categories.
    """
    seen: set[str] = set()
    flat: list[str] = []
    for category in categories:
        for keyword in category.keywords:
            key = keyword.lower()
            if key in seen:
                continue
            seen.add(key)
            flat.append(keyword)
    return flat


# =============================================================================
# Application Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Log level",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich formatting for console output",
    )

    @field_validator("level")
    @classmethod
    def valid_level(cls, v: str) -> str:
        """Validate log level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid}")
        return v.upper()


class AppConfig(BaseModel):
    """Root application configuration."""

    feeds: list[FeedSource] = Field(default_factory=default_feeds)
    relays: list[RelayStrategy] = Field(default_factory=default_relays)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    keywords: list[KeywordCategory] = Field(default_factory=default_keyword_categories)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def enabled_feeds(self) -> list[FeedSource]:
        """Feeds that take part in ingestion."""
        return [feed for feed in self.feeds if feed.enabled]

    @property
    def flat_keywords(self) -> list[str]:
        """Flattened, deduplicated keyword list."""
        return flatten_keywords(self.keywords)
