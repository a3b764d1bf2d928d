"""
Application Configuration for Portfolio Search

Settings are resolved in three layers, later layers winning:
- Built-in defaults (see AppConfig)
- Optional YAML file (config.yaml next to the project, or PORTFOLIO_CONFIG)
- Environment variables (a .env file is loaded first via python-dotenv)

The presence of an OpenAI API key is the single switch for semantic search.
It is read once here and exposed as ``AppConfig.search_enabled`` so business
logic never inspects the environment itself.

Usage:
    from core.config import load_config

    config = load_config()
    if config.search_enabled:
        ...
"""

import os
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent

# Environment variable -> config field
ENV_MAPPING = {
    'PORTFOLIO_DB_PATH': 'db_path',
    'OPENAI_API_KEY': 'openai_api_key',
    'OPENAI_BASE_URL': 'openai_base_url',
    'EMBEDDING_MODEL': 'embedding_model',
    'COMPLETION_MODEL': 'completion_model',
    'SIMILARITY_THRESHOLD': 'similarity_threshold',
    'SEARCH_TOP_K': 'top_k',
    'REINDEX_DELAY': 'reindex_delay',
    'PROVIDER_TIMEOUT': 'request_timeout',
    'LOG_LEVEL': 'log_level',
    'JSON_LOGS': 'json_logs',
}


@dataclass(frozen=True)
class AppConfig:
    """
    Resolved application settings.

    Attributes:
        db_path: SQLite database file
        openai_api_key: Key for both the embedding and completion provider
        openai_base_url: Optional compatible endpoint (Azure, proxies)
        embedding_model: Embedding model identifier
        completion_model: Chat model used for search analysis
        similarity_threshold: Minimum (exclusive) cosine score to surface a project
        top_k: Maximum number of ranked results per search
        reindex_delay: Seconds to wait between provider calls in batch reindex
        request_timeout: Seconds before a provider call is treated as failed
    """
    db_path: str = str(PROJECT_ROOT / 'data' / 'portfolio.db')
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    embedding_model: str = 'text-embedding-3-small'
    completion_model: str = 'gpt-4o-mini'
    similarity_threshold: float = 0.3
    top_k: int = 20
    reindex_delay: float = 0.2
    request_timeout: float = 30.0
    completion_temperature: float = 0.7
    completion_max_tokens: int = 1500
    log_level: str = 'INFO'
    json_logs: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def search_enabled(self) -> bool:
        """True when a provider key is configured."""
        return bool(self.openai_api_key)

    def provider_config(self) -> Dict[str, Any]:
        """Settings handed to OpenAIProvider."""
        return {
            'api_key': self.openai_api_key,
            'base_url': self.openai_base_url,
            'embedding_model': self.embedding_model,
            'completion_model': self.completion_model,
            'timeout': self.request_timeout,
        }

    def with_overrides(self, **overrides) -> 'AppConfig':
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)


def _coerce(name: str, value: Any) -> Any:
    """Convert raw file/env values to the type of the target field."""
    default = getattr(AppConfig, name, None)

    if value is None or isinstance(default, str) or default is None:
        return value
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return value


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    """Load a YAML settings file, returning {} when it does not exist."""
    if not config_path.exists():
        return {}

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    return data


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
    **overrides
) -> AppConfig:
    """
    Build an AppConfig from defaults, YAML file and environment.

    Args:
        config_path: YAML file (defaults to PORTFOLIO_CONFIG or ./config.yaml)
        env_file: .env file to load (defaults to the project root .env)
        **overrides: Explicit values that win over everything else

    Returns:
        Resolved, immutable configuration
    """
    load_dotenv(env_file or PROJECT_ROOT / '.env')

    if config_path is None:
        config_path = os.getenv('PORTFOLIO_CONFIG', PROJECT_ROOT / 'config.yaml')

    known = {f.name for f in fields(AppConfig)}
    values: Dict[str, Any] = {}
    extra: Dict[str, Any] = {}

    for key, value in _read_yaml(Path(config_path)).items():
        if key in known:
            values[key] = _coerce(key, value)
        else:
            extra[key] = value

    for env_name, field_name in ENV_MAPPING.items():
        env_value = os.getenv(env_name)
        if env_value not in (None, ''):
            values[field_name] = _coerce(field_name, env_value)

    for key, value in overrides.items():
        if key not in known:
            raise ValueError(f"Unknown config option: {key}")
        values[key] = value

    config = AppConfig(extra=extra, **values)

    if not config.search_enabled:
        logger.warning("OPENAI_API_KEY is not set. Semantic search and indexing are disabled.")

    return config
