"""YAML configuration loading and the typed settings view used by the service."""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

from journalmate.utils.logger import LoggerManager


CONFIG_PATH_ENV = "JOURNALMATE_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "enrichment.yaml"


class ConfigLoader:
    """
    Loads and provides access to a YAML configuration file.
    Supports nested keys via dot notation.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.config = self._load()

    def _get_logger(self):
        return LoggerManager.get_logger(name="config", use_json=True)

    def _load(self):
        log = self._get_logger()
        path = self.path
        if not path.exists():
            log.error("config.missing", extra={"extra_data": {"path": str(path)}})
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            log.error(
                "config.load.fail",
                extra={"extra_data": {"path": str(path), "error": str(e)}},
                exc_info=True,
            )
            raise

        if not isinstance(data, dict):
            log.error("config.invalid_type", extra={"extra_data": {"path": str(path)}})
            raise ValueError(f"Invalid config (expected mapping) at {path}")
        log.info("config.loaded", extra={"extra_data": {"path": str(path)}})
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Supports dot notation for nested access."""
        parts = key.split(".")
        val = self.config
        for part in parts:
            if isinstance(val, dict) and part in val:
                val = val[part]
            else:
                return default
        return val

    def as_dict(self) -> dict:
        return self.config


class EnrichmentSettings(BaseModel):
    """Typed settings for the enrichment service.

    Values come from the YAML config; API keys come from the environment.
    """

    # Cache / batch
    cache_ttl_hours: float = Field(default=5.0, gt=0)
    batch_concurrency: int = Field(default=3, ge=1)
    batch_delay_seconds: float = Field(default=0.5, ge=0)

    # Providers
    provider_timeout_seconds: float = Field(default=10.0, gt=0)
    tmdb_image_base_url: str = "https://image.tmdb.org/t/p"
    tmdb_poster_size: str = "w500"
    tmdb_backdrop_size: str = "w780"
    web_search_depth: str = "basic"
    web_search_max_results: int = Field(default=5, ge=1)

    # LLM structured extraction
    llm_model: str = "anthropic/claude-3-haiku-20240307"
    llm_max_tokens: int = 800
    llm_content_chars: int = 2500

    # Logging
    log_level: str = "INFO"

    # Credentials (environment only)
    tavily_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    tmdb_api_key: Optional[str] = None
    google_books_api_key: Optional[str] = None
    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None


# settings field -> dotted YAML key
_CONFIG_KEYS = {
    "cache_ttl_hours": "cache.ttl_hours",
    "batch_concurrency": "batch.concurrency",
    "batch_delay_seconds": "batch.delay_seconds",
    "provider_timeout_seconds": "providers.timeout_seconds",
    "tmdb_image_base_url": "providers.tmdb.image_base_url",
    "tmdb_poster_size": "providers.tmdb.poster_size",
    "tmdb_backdrop_size": "providers.tmdb.backdrop_size",
    "web_search_depth": "providers.web_search.search_depth",
    "web_search_max_results": "providers.web_search.max_results",
    "llm_model": "llm.model",
    "llm_max_tokens": "llm.max_tokens",
    "llm_content_chars": "llm.content_chars",
    "log_level": "logging.level",
}

_ENV_KEYS = {
    "tavily_api_key": "TAVILY_API_KEY",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "tmdb_api_key": "TMDB_API_KEY",
    "google_books_api_key": "GOOGLE_BOOKS_API_KEY",
    "spotify_client_id": "SPOTIFY_CLIENT_ID",
    "spotify_client_secret": "SPOTIFY_CLIENT_SECRET",
}


def load_settings(path: Optional[str | Path] = None) -> EnrichmentSettings:
    """Build settings from YAML (if present) and environment variables.

    Args:
        path: Config file path. Defaults to $JOURNALMATE_CONFIG, then
            config/enrichment.yaml. A missing default file yields defaults;
            a missing explicit file raises FileNotFoundError.

    Returns:
        EnrichmentSettings
    """
    values: dict[str, Any] = {}

    explicit = path or os.getenv(CONFIG_PATH_ENV)
    config_path = Path(explicit) if explicit else DEFAULT_CONFIG_PATH
    if explicit or config_path.exists():
        loader = ConfigLoader(config_path)
        for field, key in _CONFIG_KEYS.items():
            value = loader.get(key)
            if value is not None:
                values[field] = value

    for field, env_var in _ENV_KEYS.items():
        value = os.getenv(env_var)
        if value:
            values[field] = value

    return EnrichmentSettings(**values)
