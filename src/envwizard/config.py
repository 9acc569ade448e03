"""Wizard configuration.

Settings are read from ``envwizard.yaml`` in the project directory (or an
explicit ``--config`` path). CLI flags override file values.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

CONFIG_FILE_NAME = "envwizard.yaml"

# Default values
DEFAULT_PROBE_TIMEOUT = 10.0
DEFAULT_DISCOVERY_TIMEOUT = 30.0
DEFAULT_VALIDATION_TIMEOUT = 10.0
DEFAULT_DISCOVERY_RETRIES = 0
DEFAULT_REGISTRY_FILE = ".mcp.json"
DEFAULT_ENV_FILE = ".env"

_FLOAT_KEYS = ("probe_timeout", "discovery_timeout", "validation_timeout")
_INT_KEYS = ("discovery_retries",)
_STR_KEYS = ("registry_file", "env_file", "template_path")


@dataclass
class WizardConfig:
    """Wizard configuration."""

    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    discovery_timeout: float = DEFAULT_DISCOVERY_TIMEOUT
    validation_timeout: float = DEFAULT_VALIDATION_TIMEOUT
    discovery_retries: int = DEFAULT_DISCOVERY_RETRIES
    registry_file: str = DEFAULT_REGISTRY_FILE
    env_file: str = DEFAULT_ENV_FILE
    template_path: str | None = None
    default_servers: list[str] | None = None

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")


def get_config_path(project_dir: Path) -> Path:
    """Get the project config file path."""
    return project_dir / CONFIG_FILE_NAME


def _read_file(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("config_file_unreadable", path=str(path), error=str(e))
        return {}
    if not isinstance(data, dict):
        logger.warning("config_file_not_a_mapping", path=str(path))
        return {}
    return data


def load_config(
    project_dir: Path,
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> WizardConfig:
    """Load wizard configuration.

    Precedence (highest to lowest):
    1. CLI overrides (values that are not None)
    2. Config file (envwizard.yaml or --config)
    3. Defaults

    Args:
        project_dir: Project directory searched for envwizard.yaml
        config_path: Explicit config file path
        overrides: Values from CLI flags

    Returns:
        WizardConfig with values and sources
    """
    config = WizardConfig()
    sources: dict[str, str] = {}

    path = config_path or get_config_path(project_dir)
    file_config = _read_file(path) if path.exists() else {}

    for key in _FLOAT_KEYS:
        if key in file_config:
            try:
                setattr(config, key, float(file_config[key]))
                sources[key] = "config file"
            except (TypeError, ValueError):
                logger.warning("config_value_invalid", key=key)
    for key in _INT_KEYS:
        if key in file_config:
            try:
                setattr(config, key, max(0, int(file_config[key])))
                sources[key] = "config file"
            except (TypeError, ValueError):
                logger.warning("config_value_invalid", key=key)
    for key in _STR_KEYS:
        if file_config.get(key):
            setattr(config, key, str(file_config[key]))
            sources[key] = "config file"
    servers = file_config.get("default_servers")
    if isinstance(servers, list):
        config.default_servers = [str(s) for s in servers]
        sources["default_servers"] = "config file"

    for key, value in (overrides or {}).items():
        if value is not None and hasattr(config, key):
            setattr(config, key, value)
            sources[key] = "command line"

    config._sources = sources
    return config
