"""
Configuration loader: defaults, config file, environment, explicit overrides.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..config import ClientConfig
from ..error_handler import field_errors
from ..exceptions import ConfigurationError
from .file_loader import ConfigFileLoader
from .validator import MoneyManagerSettings

logger = logging.getLogger(__name__)


def load_settings(
    config_file: Union[str, Path, None] = None,
    env_file: Optional[str] = ".env",
    **overrides: Any
) -> MoneyManagerSettings:
    """
    Load MoneyManagerSettings.

    Priority (highest to lowest):
    1. **overrides (None values are ignored)
    2. Environment variables (MONEY_MANAGER_*) and the .env file
    3. Config file (config_file, or .money-manager-mcp.json/.yaml in cwd)
    4. Defaults

    Raises:
        ConfigurationError: Unreadable file, unknown override, invalid value
    """
    unknown = set(overrides) - set(MoneyManagerSettings.model_fields)
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration option(s): {', '.join(sorted(unknown))}",
            {"options": sorted(unknown)},
        )

    file_values: Dict[str, Any] = {}
    path = Path(config_file) if config_file is not None else ConfigFileLoader.discover()
    if path is not None:
        file_values = ConfigFileLoader.from_file(path)
        logger.debug(f"Loaded config file {path} ({len(file_values)} value(s))")

    try:
        env_settings = MoneyManagerSettings(_env_file=env_file)
        from_env = {name: getattr(env_settings, name) for name in env_settings.model_fields_set}

        merged = dict(file_values)
        merged.update(from_env)
        merged.update({key: value for key, value in overrides.items() if value is not None})

        return MoneyManagerSettings(_env_file=None, **merged)
    except PydanticValidationError as e:
        errors = field_errors(e)
        first = errors[0] if errors else {"field": "config", "message": str(e)}
        raise ConfigurationError(
            f"Invalid configuration: {first['field']}: {first['message']}",
            {"errors": errors, "file": str(path) if path else None},
        ) from e


def load_config(
    config_file: Union[str, Path, None] = None,
    env_file: Optional[str] = ".env",
    **overrides: Any
) -> ClientConfig:
    """
    Load ClientConfig (see load_settings for priorities).

    Example:
        >>> config = load_config()
        >>> config = load_config("config.yaml", base_url="http://10.0.0.2:8888")
    """
    settings = load_settings(config_file, env_file, **overrides)
    try:
        return settings.to_client_config()
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def config_summary(config: ClientConfig) -> Dict[str, Any]:
    """
    Сводка конфигурации для лога при старте.
    """
    summary: Dict[str, Any] = {
        "base_url": config.server.base_url,
        "timeout_ms": int(config.server.timeout * 1000),
        "max_retries": config.retry.max_retries,
        "retry_delay_ms": int(config.retry.base_delay * 1000),
        "session_persist": config.session.persist,
        "cookie_file": config.session.cookie_file if config.session.persist else None,
        "default_mbid": config.default_mbid,
        "backup_tools": config.enable_backup_tools,
    }
    if config.logging:
        summary["log_level"] = config.logging.level.value
        summary["log_format"] = config.logging.format.value
    return summary
