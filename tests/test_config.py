"""
Tests for layered configuration loading.
"""

import os

import pytest
from unittest.mock import patch
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import AppConfig, ENV_MAPPING, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of these tests."""
    for name in list(ENV_MAPPING) + ['PORTFOLIO_CONFIG']:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def no_env_file(tmp_path):
    return tmp_path / "missing.env"


class TestDefaults:

    def test_defaults(self, tmp_path, no_env_file):
        config = load_config(config_path=tmp_path / "none.yaml", env_file=no_env_file)

        assert config.similarity_threshold == 0.3
        assert config.top_k == 20
        assert config.reindex_delay == 0.2
        assert config.embedding_model == "text-embedding-3-small"
        assert config.completion_model == "gpt-4o-mini"
        assert config.completion_temperature == 0.7
        assert config.completion_max_tokens == 1500
        assert config.search_enabled is False

    def test_search_enabled_by_key(self):
        assert AppConfig(openai_api_key="sk-test").search_enabled is True
        assert AppConfig(openai_api_key="").search_enabled is False

    def test_provider_config(self):
        config = AppConfig(openai_api_key="sk-test", request_timeout=12.0)

        assert config.provider_config() == {
            "api_key": "sk-test",
            "base_url": None,
            "embedding_model": "text-embedding-3-small",
            "completion_model": "gpt-4o-mini",
            "timeout": 12.0,
        }

    def test_with_overrides_returns_copy(self):
        config = AppConfig()
        changed = config.with_overrides(top_k=5)

        assert changed.top_k == 5
        assert config.top_k == 20

    def test_frozen(self):
        with pytest.raises(Exception):
            AppConfig().top_k = 3


class TestLayering:

    def test_yaml_file(self, tmp_path, no_env_file):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("top_k: 10\nsimilarity_threshold: 0.5\nteam: design\n")

        config = load_config(config_path=config_file, env_file=no_env_file)

        assert config.top_k == 10
        assert config.similarity_threshold == 0.5
        assert config.extra == {"team": "design"}

    def test_env_overrides_yaml(self, tmp_path, no_env_file, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("top_k: 10\n")
        monkeypatch.setenv("SEARCH_TOP_K", "7")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("JSON_LOGS", "true")

        config = load_config(config_path=config_file, env_file=no_env_file)

        assert config.top_k == 7
        assert config.openai_api_key == "sk-env"
        assert config.json_logs is True
        assert config.search_enabled is True

    def test_blank_env_ignored(self, tmp_path, no_env_file, monkeypatch):
        monkeypatch.setenv("SIMILARITY_THRESHOLD", "")

        config = load_config(config_path=tmp_path / "none.yaml", env_file=no_env_file)

        assert config.similarity_threshold == 0.3

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("REINDEX_DELAY=1.5\n")

        with patch.dict(os.environ):
            config = load_config(config_path=tmp_path / "none.yaml", env_file=env_file)

        assert config.reindex_delay == 1.5

    def test_overrides_win(self, tmp_path, no_env_file, monkeypatch):
        monkeypatch.setenv("SEARCH_TOP_K", "7")

        config = load_config(config_path=tmp_path / "none.yaml", env_file=no_env_file, top_k=3)

        assert config.top_k == 3

    def test_unknown_override(self, tmp_path, no_env_file):
        with pytest.raises(ValueError):
            load_config(config_path=tmp_path / "none.yaml", env_file=no_env_file, colour="blue")

    def test_yaml_must_be_mapping(self, tmp_path, no_env_file):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ValueError):
            load_config(config_path=config_file, env_file=no_env_file)
