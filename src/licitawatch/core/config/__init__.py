"""Configuration loading and validation."""

from .models import (
    # Enums
    ContractType,
    SourceType,
    # Config models
    AppConfig,
    FeedSource,
    FetchConfig,
    KeywordCategory,
    LoggingConfig,
    RelayStrategy,
    # Defaults and helpers
    default_feeds,
    default_keyword_categories,
    default_relays,
    flatten_keywords,
)
from .loader import ConfigError, load_app_config, validate_app_config_file

__all__ = [
    # Enums
    "ContractType",
    "SourceType",
    # Config models
    "AppConfig",
    "FeedSource",
    "FetchConfig",
    "KeywordCategory",
    "LoggingConfig",
    "RelayStrategy",
    # Defaults and helpers
    "default_feeds",
    "default_keyword_categories",
    "default_relays",
    "flatten_keywords",
    # Loaders
    "ConfigError",
    "load_app_config",
    "validate_app_config_file",
]
