"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.notion_gateway/config.yaml), and assembles the
typed GatewaySettings the composition root needs.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

import yaml
from dotenv import load_dotenv

from notion_gateway.domain.models.common import DEFAULT_MAX_PAGES, MAX_PAGE_SIZE
from notion_gateway.infrastructure.http.executor import (
    DEFAULT_BASE_URL,
    DEFAULT_NOTION_VERSION,
    DEFAULT_TIMEOUT_SECONDS,
)
from notion_gateway.infrastructure.resilience.backoff import DEFAULT_JITTER_FRACTION, DEFAULT_MAX_ATTEMPTS

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".notion_gateway"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Optional[Path] = None, env_file: Optional[Path] = None, reload: bool = False) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values

    Args:
        config_file: Path to the YAML configuration file (defaults to DEFAULT_CONFIG_FILE).
        env_file: Path to the .env file (searches upwards from cwd if None).
        reload: Re-read sources even if already loaded.
    """
    global _config, _loaded
    if _loaded and not reload:
        logger.debug("Configuration already loaded.")
        return

    _config = {}
    config_file = config_file or DEFAULT_CONFIG_FILE

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a mapping.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False so real environment variables win
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    _loaded = True
    logger.debug("Configuration loading process completed.")


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def _coerce(value: str) -> Any:
    """Converts common string forms from the environment to bool/int/float."""
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        return value


def _lookup_yaml(key: str) -> Any:
    """Resolves a dotted key ('retry.max_attempts') against the nested YAML mapping."""
    if key in _config:
        return _config[key]
    node: Any = _config
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (key upper-cased, dots as underscores)
    3. YAML config (dotted path)
    4. Default value

    Args:
        key: The configuration key, e.g. 'notion.max_attempts'
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace(".", "_")
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    value = _lookup_yaml(key)
    if value is not None:
        return value

    return default


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values override every other source.
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration keys: {sorted(config_dict)}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")


# --- Typed settings ---

@dataclass(frozen=True)
class GatewaySettings:
    """Everything the composition root needs to wire the pipeline."""
    api_token: Optional[str] = field(default=None, repr=False)
    base_url: str = DEFAULT_BASE_URL
    notion_version: str = DEFAULT_NOTION_VERSION
    request_timeout_s: float = DEFAULT_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    jitter_fraction: float = DEFAULT_JITTER_FRACTION
    page_size: int = MAX_PAGE_SIZE
    max_pages: int = DEFAULT_MAX_PAGES
    rate_limit_per_second: Optional[int] = None
    enabled_tools: FrozenSet[str] = frozenset()


def _parse_tool_list(value: Any) -> FrozenSet[str]:
    if not value:
        return frozenset()
    if isinstance(value, (list, tuple, set)):
        items = value
    else:
        items = str(value).split(",")
    return frozenset(item.strip() for item in items if str(item).strip())


def load_settings() -> GatewaySettings:
    """Builds GatewaySettings from the loaded configuration sources."""
    load_configuration()
    token = get_config("notion_api_token") or get_config("notion.api_token")
    rate_limit = get_config("notion_rate_limit_per_second")
    settings = GatewaySettings(
        api_token=str(token) if token else None,
        base_url=str(get_config("notion_base_url", DEFAULT_BASE_URL)),
        notion_version=str(get_config("notion_version", DEFAULT_NOTION_VERSION)),
        request_timeout_s=float(get_config("notion_request_timeout", DEFAULT_TIMEOUT_SECONDS)),
        max_attempts=int(get_config("notion_max_attempts", DEFAULT_MAX_ATTEMPTS)),
        jitter_fraction=float(get_config("notion_jitter_fraction", DEFAULT_JITTER_FRACTION)),
        page_size=int(get_config("notion_page_size", MAX_PAGE_SIZE)),
        max_pages=int(get_config("notion_max_pages", DEFAULT_MAX_PAGES)),
        rate_limit_per_second=int(rate_limit) if rate_limit else None,
        enabled_tools=_parse_tool_list(get_config("notion_enabled_tools")),
    )
    logger.debug(
        f"Settings: base_url={settings.base_url}, version={settings.notion_version}, "
        f"max_attempts={settings.max_attempts}, token_configured={settings.api_token is not None}"
    )
    return settings
