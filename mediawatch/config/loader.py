"""Configuration loader.

``config.yaml`` holds every setting; ``sources.yaml`` beside it lists the
news sources. Secrets never live in either file: a ``*_env`` key names the
environment variable to read instead.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from .models import ConfigModel, SourceConfig

logger = logging.getLogger(__name__)

CONFIG_ENV = "MEDIAWATCH_CONFIG"


def default_config_path() -> Path:
    """Config path from MEDIAWATCH_CONFIG, else ~/.config/mediawatch/config.yaml."""
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".config" / "mediawatch" / "config.yaml"


def _from_env(section: Dict[str, Any], env_key: str, target: str) -> Dict[str, Any]:
    """Copy the variable named by ``section[env_key]`` into ``section[target]`` when set."""
    name = section.get(env_key)
    value = os.environ.get(name) if name else None
    if value:
        section[target] = value
    return section


class Config:
    """Lazily loaded configuration with secrets resolved from the environment."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path or default_config_path()
        self._config: Optional[ConfigModel] = None

    @property
    def config(self) -> ConfigModel:
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    @property
    def sources_path(self) -> Path:
        """sources.yaml lives beside config.yaml."""
        return self.config_path.parent / "sources.yaml"

    def get_db_config(self) -> Dict[str, Any]:
        return _from_env(self.config.postgres.model_dump(), "password_env", "password")

    def get_llm_config(self) -> Dict[str, Any]:
        return _from_env(self.config.llm.model_dump(), "api_key_env", "api_key")

    def get_storage_config(self) -> Dict[str, Any]:
        """Storage settings plus ``access_key``/``secret_key`` ("" when unset)."""
        storage = self.config.storage.model_dump()
        storage["access_key"] = os.environ.get(storage["access_key_env"], "")
        storage["secret_key"] = os.environ.get(storage["secret_key_env"], "")
        return storage


def _read_yaml(path: Path, what: str) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"{what} file not found: {path}")
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {what.lower()} file: {e}")
    return data or {}


def _write_yaml(data: Dict[str, Any], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def load_config(config_path: Path) -> ConfigModel:
    """
    Load and validate config.yaml.

    Raises:
        FileNotFoundError: the file does not exist
        ValueError: the YAML is malformed or fails validation
    """
    data = _read_yaml(config_path, "Config")
    try:
        return ConfigModel(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def load_sources(sources_path: Path) -> List[SourceConfig]:
    """Load sources.yaml, skipping entries that fail validation."""
    entries = _read_yaml(sources_path, "Sources").get("sources") or []

    sources = []
    for entry in entries:
        try:
            sources.append(SourceConfig(**entry))
        except ValidationError as e:
            logger.error("Skipping invalid source %s: %s", entry.get("name", "unknown"), e)
    return sources


def save_config(config: ConfigModel, config_path: Path) -> None:
    _write_yaml(config.model_dump(mode="json"), config_path)


def save_sources(sources: List[SourceConfig], sources_path: Path) -> None:
    _write_yaml(
        {"sources": [s.model_dump(mode="json", exclude_none=True) for s in sources]},
        sources_path,
    )
