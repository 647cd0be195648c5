"""Configuration Management with Pydantic.

This module implements configuration models using Pydantic for parsing and
validation of YAML/JSON configuration files with environment variable overrides.
"""

import os
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

logger = structlog.get_logger(__name__)

# Constants
REPO_PARTS_COUNT = 2
DEEP_TRAVERSAL_THRESHOLD = 50


class TrackerConfig(BaseModel):
    """Item tracker (GitHub) configuration settings.

    Attributes:
        token: GitHub personal access token or OAuth token
        repository: Repository name in format 'owner/repo'
        api_url: Base URL of the GitHub REST API
    """

    token: str = Field(
        description="GitHub personal access token",
        min_length=1,
    )
    repository: str = Field(
        description="Repository in format 'owner/repo'",
        pattern=r"^[\w.-]+/[\w.-]+$",
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Validate that the token is not a placeholder.

        Raises:
            ValueError: If token is a placeholder
        """
        if "your_" in v or v == "":
            msg = "GitHub token must be set (not a placeholder)"
            raise ValueError(msg)
        return v

    @field_validator("repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        """Validate repository format.

        Raises:
            ValueError: If repository format is invalid
        """
        parts = v.split("/")
        if len(parts) != REPO_PARTS_COUNT or not all(parts):
            msg = "Repository must be in format 'owner/repo'"
            raise ValueError(msg)
        return v

    model_config = {"str_strip_whitespace": True}


class StorageConfig(BaseModel):
    """Dependency persistence settings.

    Attributes:
        mode: Backend used to store edges ('label', 'native' or 'local')
        cache_dir: Directory holding the local adjacency map and item records
        label_prefix: Prefix of the synthetic label encoding a dependency
        blocked_by_prefix: Prefix of the label encoding the secondary blocked-by relation
    """

    mode: Literal["label", "native", "local"] = Field(
        default="label",
        description="Dependency storage backend",
    )
    cache_dir: Path = Field(
        default=Path(".issuegraph"),
        description="Local cache directory",
    )
    label_prefix: str = Field(
        default="depends-on:",
        min_length=1,
        description="Prefix for dependency labels",
    )
    blocked_by_prefix: str = Field(
        default="blocked-by:",
        min_length=1,
        description="Prefix for blocked-by labels",
    )


class GraphConfig(BaseModel):
    """Traversal and rendering settings.

    Attributes:
        max_depth: Maximum traversal depth for cycle detection, validation and graph building
        cache_ttl_seconds: Lifetime of cached validation results
        title_max_length: Maximum title length in diagram output
    """

    max_depth: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum traversal depth",
    )
    cache_ttl_seconds: float = Field(
        default=300,
        ge=0,
        description="Validation cache TTL in seconds",
    )
    title_max_length: int = Field(
        default=40,
        ge=4,
        description="Maximum title length in diagrams",
    )


class IssueGraphConfig(BaseModel):
    """Main configuration combining all settings.

    Attributes:
        tracker: GitHub tracker configuration (optional in local mode)
        storage: Dependency persistence configuration
        graph: Traversal and rendering configuration
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    tracker: TrackerConfig | None = None
    storage: StorageConfig = Field(default_factory=StorageConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    logging_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )

    @model_validator(mode="after")
    def require_tracker_for_remote_modes(self) -> "IssueGraphConfig":
        """Remote storage modes need tracker credentials."""
        if self.storage.mode != "local" and self.tracker is None:
            msg = f"Storage mode '{self.storage.mode}' requires a 'tracker' section"
            raise ValueError(msg)
        return self

    @classmethod
    def from_yaml(
        cls,
        path: str | Path,
        overrides: dict[str, Any] | None = None,
    ) -> "IssueGraphConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file
            overrides: Nested values applied on top of the file and environment

        Returns:
            Parsed and validated IssueGraphConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If configuration is invalid
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open() as f:
                config_data = yaml.safe_load(f)

            if not config_data:
                msg = "Configuration file is empty"
                raise ValueError(msg)

            config_data = cls._apply_env_overrides(config_data)
            config = cls(**_merge(config_data, overrides or {}))
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e
        else:
            logger.info(
                "configuration_loaded",
                storage_mode=config.storage.mode,
                max_depth=config.graph.max_depth,
                logging_level=config.logging_level,
            )

            return config

    @classmethod
    def from_env(cls, overrides: dict[str, Any] | None = None) -> "IssueGraphConfig":
        """Build configuration from ISSUEGRAPH_* environment variables only."""
        return cls(**_merge(cls._apply_env_overrides({}), overrides or {}))

    @classmethod
    def _apply_env_overrides(cls, config_data: dict) -> dict:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: ISSUEGRAPH_<SECTION>_<KEY>
        Example: ISSUEGRAPH_TRACKER_TOKEN, ISSUEGRAPH_GRAPH_MAX_DEPTH

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            # Tracker configuration
            ("tracker", "token"): "ISSUEGRAPH_TRACKER_TOKEN",
            ("tracker", "repository"): "ISSUEGRAPH_TRACKER_REPOSITORY",
            ("tracker", "api_url"): "ISSUEGRAPH_TRACKER_API_URL",
            # Storage configuration
            ("storage", "mode"): "ISSUEGRAPH_STORAGE_MODE",
            ("storage", "cache_dir"): "ISSUEGRAPH_STORAGE_CACHE_DIR",
            ("storage", "label_prefix"): "ISSUEGRAPH_STORAGE_LABEL_PREFIX",
            ("storage", "blocked_by_prefix"): "ISSUEGRAPH_STORAGE_BLOCKED_BY_PREFIX",
            # Graph configuration
            ("graph", "max_depth"): "ISSUEGRAPH_GRAPH_MAX_DEPTH",
            ("graph", "cache_ttl_seconds"): "ISSUEGRAPH_GRAPH_CACHE_TTL",
            ("graph", "title_max_length"): "ISSUEGRAPH_GRAPH_TITLE_MAX_LENGTH",
            # Logging
            ("logging_level",): "ISSUEGRAPH_LOGGING_LEVEL",
        }

        for path, env_var in env_overrides.items():
            value = os.environ.get(env_var)
            if value is not None:
                current = config_data
                for key in path[:-1]:
                    if current.get(key) is None:
                        current[key] = {}
                    current = current[key]

                final_key = path[-1]
                if env_var.endswith(("_DEPTH", "_LENGTH")):
                    value = int(value)
                elif env_var.endswith("_TTL"):
                    value = float(value)

                current[final_key] = value
                logger.debug(
                    "env_override_applied",
                    env_var=env_var,
                    config_path=".".join(path),
                )

        return config_data

    def validate_config(self) -> list[str]:
        """Validate configuration and return list of warnings.

        Returns:
            List of validation warning messages (empty if no warnings)
        """
        warnings = []

        if self.tracker is not None and self.tracker.token.startswith("ghp_example"):
            warnings.append("GitHub token appears to be an example/placeholder")

        if self.storage.mode == "label":
            warnings.append(
                "Label storage rewrites the full label set on every change - "
                "concurrent writers to the same item can overwrite each other",
            )

        if self.graph.cache_ttl_seconds == 0:
            warnings.append("Validation cache TTL is 0 - every validation hits the tracker")

        if self.graph.max_depth > DEEP_TRAVERSAL_THRESHOLD:
            warnings.append(
                f"Max depth is high ({self.graph.max_depth}) - "
                "traversals may issue many tracker requests",
            )

        return warnings


def load_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> IssueGraphConfig:
    """Load configuration from file.

    Args:
        config_path: Path to configuration file. If None, looks for
            issuegraph.yaml or issuegraph.yml in the current directory and
            falls back to environment variables.
        overrides: Nested values that take precedence over both the file and
            the environment, e.g. ``{"storage": {"mode": "local"}}``

    Returns:
        Loaded IssueGraphConfig instance

    Raises:
        FileNotFoundError: If an explicit config file is not found
        ValueError: If config is invalid
    """
    if config_path is None:
        for default_name in ["issuegraph.yaml", "issuegraph.yml"]:
            default_path = Path(default_name)
            if default_path.exists():
                config_path = default_path
                break
        else:
            logger.debug("no_config_file_found", fallback="environment")
            return IssueGraphConfig.from_env(overrides)

    return IssueGraphConfig.from_yaml(config_path, overrides)


def _merge(base: dict, overrides: dict) -> dict:
    """Recursively merge ``overrides`` into ``base``; None values are skipped."""
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        elif isinstance(value, dict):
            base[key] = _merge({}, value)
        elif value is not None:
            base[key] = value
    return base


__all__ = [
    "GraphConfig",
    "IssueGraphConfig",
    "StorageConfig",
    "TrackerConfig",
    "load_config",
]
