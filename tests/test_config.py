"""Unit tests for configuration management module."""

from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from issuegraph.config import (
    GraphConfig,
    IssueGraphConfig,
    StorageConfig,
    TrackerConfig,
    load_config,
)

ENV_VARS = (
    "ISSUEGRAPH_TRACKER_TOKEN",
    "ISSUEGRAPH_TRACKER_REPOSITORY",
    "ISSUEGRAPH_STORAGE_MODE",
    "ISSUEGRAPH_STORAGE_CACHE_DIR",
    "ISSUEGRAPH_STORAGE_LABEL_PREFIX",
    "ISSUEGRAPH_STORAGE_BLOCKED_BY_PREFIX",
    "ISSUEGRAPH_GRAPH_MAX_DEPTH",
    "ISSUEGRAPH_GRAPH_CACHE_TTL",
    "ISSUEGRAPH_LOGGING_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove ISSUEGRAPH_* overrides around each test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def valid_config_dict() -> dict[str, Any]:
    """Fixture providing valid configuration dictionary."""
    return {
        "tracker": {
            "token": "ghp_test_token_123",
            "repository": "test-org/test-repo",
        },
        "storage": {
            "mode": "native",
            "cache_dir": ".deps",
        },
        "graph": {
            "max_depth": 8,
            "cache_ttl_seconds": 60,
        },
        "logging_level": "DEBUG",
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, valid_config_dict: dict[str, Any]) -> Path:
    """Fixture providing temporary YAML config file."""
    config_path = tmp_path / "issuegraph.yaml"
    with config_path.open("w") as f:
        yaml.dump(valid_config_dict, f)
    return config_path


class TestTrackerConfig:
    """Test TrackerConfig model."""

    def test_valid_tracker_config(self):
        """Test creating valid tracker configuration."""
        config = TrackerConfig(token="ghp_abc", repository="org/repo")

        assert config.api_url == "https://api.github.com"

    def test_invalid_repository_format(self):
        """Test that repository must be owner/repo."""
        with pytest.raises(ValidationError):
            TrackerConfig(token="ghp_abc", repository="just-a-name")

    def test_placeholder_token_rejected(self):
        """Test that template placeholder tokens are rejected."""
        with pytest.raises(ValidationError, match="placeholder"):
            TrackerConfig(token="your_token_here", repository="org/repo")


class TestStorageAndGraphConfig:
    """Test StorageConfig and GraphConfig defaults and bounds."""

    def test_defaults(self):
        """Test default values."""
        storage = StorageConfig()
        graph = GraphConfig()

        assert storage.mode == "label"
        assert storage.label_prefix == "depends-on:"
        assert storage.cache_dir == Path(".issuegraph")
        assert graph.max_depth == 10
        assert graph.cache_ttl_seconds == 300
        assert graph.title_max_length == 40

    def test_unknown_mode_rejected(self):
        """Test that only label, native and local modes exist."""
        with pytest.raises(ValidationError):
            StorageConfig(mode="database")

    def test_max_depth_bounds(self):
        """Test max_depth validation bounds."""
        with pytest.raises(ValidationError):
            GraphConfig(max_depth=0)
        with pytest.raises(ValidationError):
            GraphConfig(max_depth=101)

    def test_negative_ttl_rejected(self):
        """Test that the cache TTL cannot be negative."""
        with pytest.raises(ValidationError):
            GraphConfig(cache_ttl_seconds=-1)


class TestIssueGraphConfig:
    """Test the top-level configuration model."""

    def test_valid_config(self, valid_config_dict):
        """Test creating the full configuration."""
        config = IssueGraphConfig(**valid_config_dict)

        assert config.storage.mode == "native"
        assert config.graph.max_depth == 8
        assert config.logging_level == "DEBUG"

    def test_remote_mode_requires_tracker(self):
        """Test that label mode without a tracker section is invalid."""
        with pytest.raises(ValidationError, match="requires a 'tracker' section"):
            IssueGraphConfig(storage={"mode": "label"})

    def test_local_mode_needs_no_tracker(self):
        """Test that local mode works without credentials."""
        config = IssueGraphConfig(storage={"mode": "local"})

        assert config.tracker is None

    def test_logging_level_validation(self):
        """Test that unknown logging levels are rejected."""
        with pytest.raises(ValidationError):
            IssueGraphConfig(storage={"mode": "local"}, logging_level="VERBOSE")

    def test_validate_config_warnings(self):
        """Test advisory warnings."""
        config = IssueGraphConfig(
            tracker={"token": "ghp_example_token", "repository": "org/repo"},
            graph={"cache_ttl_seconds": 0, "max_depth": 60},
        )

        warnings = config.validate_config()

        assert len(warnings) == 4
        assert any("placeholder" in warning for warning in warnings)
        assert any("concurrent writers" in warning for warning in warnings)

    def test_local_config_has_no_warnings(self):
        """Test that a plain local configuration is clean."""
        assert IssueGraphConfig(storage={"mode": "local"}).validate_config() == []


class TestLoadConfig:
    """Test loading configuration from files and the environment."""

    def test_load_yaml_config(self, temp_config_file):
        """Test loading configuration from YAML file."""
        config = load_config(temp_config_file)

        assert config.tracker.repository == "test-org/test-repo"
        assert config.storage.cache_dir == Path(".deps")

    def test_load_config_not_found(self, tmp_path):
        """Test that a missing explicit file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            load_config(tmp_path / "missing.yaml")

    def test_load_config_invalid_yaml(self, tmp_path):
        """Test that malformed YAML is a ValueError."""
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("tracker: [unclosed")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(config_path)

    def test_load_config_empty_file(self, tmp_path):
        """Test that an empty file is rejected."""
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("")

        with pytest.raises(ValueError, match="empty"):
            load_config(config_path)

    def test_load_config_default_location(self, temp_config_file, monkeypatch):
        """Test that issuegraph.yaml in the working directory is found."""
        monkeypatch.chdir(temp_config_file.parent)

        config = load_config()

        assert config.storage.mode == "native"

    def test_load_config_falls_back_to_environment(self, tmp_path, monkeypatch):
        """Test that without a file the environment alone is used."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ISSUEGRAPH_STORAGE_MODE", "local")
        monkeypatch.setenv("ISSUEGRAPH_GRAPH_MAX_DEPTH", "4")

        config = load_config()

        assert config.storage.mode == "local"
        assert config.graph.max_depth == 4


class TestEnvironmentVariableOverrides:
    """Test ISSUEGRAPH_* overrides on top of a file."""

    def test_token_override(self, temp_config_file, monkeypatch):
        """Test overriding the tracker token."""
        monkeypatch.setenv("ISSUEGRAPH_TRACKER_TOKEN", "ghp_from_env")

        config = load_config(temp_config_file)

        assert config.tracker.token == "ghp_from_env"

    def test_numeric_overrides(self, temp_config_file, monkeypatch):
        """Test that depth and TTL overrides are converted."""
        monkeypatch.setenv("ISSUEGRAPH_GRAPH_MAX_DEPTH", "3")
        monkeypatch.setenv("ISSUEGRAPH_GRAPH_CACHE_TTL", "12.5")

        config = load_config(temp_config_file)

        assert config.graph.max_depth == 3
        assert config.graph.cache_ttl_seconds == 12.5

    def test_override_into_missing_section(self, tmp_path, monkeypatch):
        """Test that overrides create sections absent from the file."""
        config_path = tmp_path / "minimal.yaml"
        config_path.write_text("logging_level: WARNING\n")
        monkeypatch.setenv("ISSUEGRAPH_STORAGE_MODE", "local")

        config = load_config(config_path)

        assert config.storage.mode == "local"
        assert config.logging_level == "WARNING"

    def test_label_prefix_overrides(self, temp_config_file, monkeypatch):
        """Test overriding both label prefixes."""
        monkeypatch.setenv("ISSUEGRAPH_STORAGE_LABEL_PREFIX", "needs:")
        monkeypatch.setenv("ISSUEGRAPH_STORAGE_BLOCKED_BY_PREFIX", "waits-on:")

        config = load_config(temp_config_file)

        assert config.storage.label_prefix == "needs:"
        assert config.storage.blocked_by_prefix == "waits-on:"


class TestExplicitOverrides:
    """Test overrides passed by the caller, such as command-line flags."""

    def test_override_beats_file_and_environment(self, temp_config_file, monkeypatch):
        """Test that explicit values take precedence over both other sources."""
        monkeypatch.setenv("ISSUEGRAPH_STORAGE_MODE", "label")

        config = load_config(temp_config_file, {"storage": {"mode": "local"}})

        assert config.storage.mode == "local"
        assert config.storage.cache_dir == Path(".deps")

    def test_none_values_are_ignored(self, temp_config_file):
        """Test that unset flags leave the loaded value alone."""
        config = load_config(temp_config_file, {"storage": {"mode": None}})

        assert config.storage.mode == "native"

    def test_override_without_file(self, tmp_path, monkeypatch):
        """Test overrides on the environment-only path."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ISSUEGRAPH_STORAGE_MODE", "label")

        config = load_config(overrides={"storage": {"mode": "local"}, "logging_level": "ERROR"})

        assert config.storage.mode == "local"
        assert config.logging_level == "ERROR"
