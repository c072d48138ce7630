"""Configuration management."""

from .loader import Config, load_config, load_sources, save_config, save_sources
from .models import (
    BriefConfig,
    ConfigModel,
    IngestionConfig,
    LLMConfig,
    RegionConfig,
    ScheduleConfig,
    ScraperConfig,
    SourceConfig,
    StorageConfig,
    WatchlistConfig,
)

__all__ = [
    "BriefConfig",
    "Config",
    "ConfigModel",
    "IngestionConfig",
    "LLMConfig",
    "RegionConfig",
    "ScheduleConfig",
    "ScraperConfig",
    "SourceConfig",
    "StorageConfig",
    "WatchlistConfig",
    "load_config",
    "load_sources",
    "save_config",
    "save_sources",
]
