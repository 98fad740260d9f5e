"""Tests for configuration loading."""

import pytest

from site_backlog.core.config import ConfigError, load_config, load_yaml, merge_configs
from site_backlog.core.settings import get_settings
from site_backlog.core.types import BacklogConfig


def test_merge_configs():
    """Test configuration merging."""
    base = {
        "pipeline": {"crawl_timeout_s": 120, "stage_timeout_s": 180},
    }

    override = {
        "pipeline": {"crawl_timeout_s": 30},
        "history": {"enabled": False},
    }

    merged = merge_configs(base, override)

    assert merged["pipeline"]["crawl_timeout_s"] == 30  # Overridden
    assert merged["pipeline"]["stage_timeout_s"] == 180  # Preserved
    assert merged["history"]["enabled"] is False  # Added
    assert base["pipeline"]["crawl_timeout_s"] == 120


def test_default_config_file(configs_dir):
    """Test the shipped default config loads and matches model defaults."""
    config = load_config(configs_dir / "default.yaml")

    assert config == BacklogConfig()


def test_load_config_with_overrides(tmp_path, sample_config_dict):
    """Test file, override file and runtime overrides are layered."""
    import yaml

    base = tmp_path / "base.yaml"
    base.write_text(yaml.safe_dump(sample_config_dict))
    site = tmp_path / "site.yaml"
    site.write_text("pipeline:\n  max_competitors: 1\n")

    config = load_config(base, override_path=site, overrides={"pipeline": {"stage_timeout_s": 2}})

    assert config.pipeline.crawl_timeout_s == 30
    assert config.pipeline.max_competitors == 1
    assert config.pipeline.stage_timeout_s == 2
    assert config.history.enabled is False


def test_missing_config_uses_defaults(tmp_path):
    config = load_config(tmp_path / "absent.yaml")

    assert config.pipeline.stage_timeout_s == 180


def test_invalid_values_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("pipeline:\n  crawl_timeout_s: -1\n")

    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_config(path)


def test_invalid_yaml_rejected(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("pipeline: [unclosed\n")

    with pytest.raises(ConfigError):
        load_yaml(path)


def test_non_mapping_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")

    with pytest.raises(ConfigError):
        load_yaml(path)


def test_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert load_yaml(path) == {}


def test_load_yaml_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_yaml(tmp_path / "nope.yaml")


class TestSettings:
    """Test suite for environment settings."""

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("BACKLOG_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        monkeypatch.setenv("BACKLOG_LOG_LEVEL", "DEBUG")
        get_settings.cache_clear()

        settings = get_settings()

        assert settings.database_url == "sqlite+aiosqlite:///:memory:"
        assert settings.log_level == "DEBUG"
        assert settings.config_path is None

    def test_cached(self):
        assert get_settings() is get_settings()
