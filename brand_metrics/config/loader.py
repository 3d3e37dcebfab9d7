"""
Configuration loader for Brand Metrics.

This module loads YAML configuration files and validates them with the
Pydantic models in config.schema to produce an immutable MetricsConfig.

Functions:
    load_config: Main entrypoint to load and validate metrics.config.yaml
    load_config_or_default: Load a config when a path is given, defaults otherwise
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from brand_metrics.exceptions import ConfigFileNotFoundError, ConfigValidationError

from .schema import MetricsConfig

logger = logging.getLogger(__name__)


def load_config(config_path: str | Path) -> MetricsConfig:
    """
    Load metrics.config.yaml and validate it.

    Args:
        config_path: Path to the YAML config file (relative or absolute)

    Returns:
        Validated, frozen MetricsConfig

    Raises:
        ConfigFileNotFoundError: If config file doesn't exist at the specified path
        ConfigValidationError: If YAML is invalid or config validation fails

    Example:
        >>> config = load_config("examples/metrics.config.yaml")
        >>> config.detection.fuzzy_threshold
        0.7

    Security:
        - Uses yaml.safe_load() to prevent code injection
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigValidationError(
            f"Failed to read configuration file {config_path}: {e}"
        ) from e

    # An empty file means "all defaults"
    if raw_config is None:
        raw_config = {}

    if not isinstance(raw_config, dict):
        raise ConfigValidationError(
            f"Configuration root must be a mapping in {config_path}, "
            f"got: {type(raw_config).__name__}"
        )

    try:
        config = MetricsConfig.model_validate(raw_config)
    except ValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            msg = error["msg"]
            error_messages.append(f"  - {loc}: {msg}")

        raise ConfigValidationError(
            f"Configuration validation failed in {config_path}:\n"
            + "\n".join(error_messages)
        ) from e

    logger.info(
        f"Loaded configuration from {config_path}",
        extra={
            "context": {
                "brand_domain_tables": len(config.citations.brand_domains),
                "competitor_domain_tables": len(config.citations.competitor_domains),
            }
        },
    )
    return config


def load_config_or_default(config_path: str | Path | None) -> MetricsConfig:
    """
    Load config from config_path, or return production defaults when None.

    Raises:
        ConfigFileNotFoundError: If a path is given but doesn't exist
        ConfigValidationError: If the file fails validation
    """
    if config_path is None:
        return MetricsConfig()
    return load_config(config_path)
