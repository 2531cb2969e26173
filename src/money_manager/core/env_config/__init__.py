"""
Configuration from a config file, environment variables and .env.

Example:
    >>> from money_manager.core.env_config import load_config
    >>>
    >>> config = load_config()
    >>> config = load_config(".money-manager-mcp.yaml", base_url="http://10.0.0.2:8888")
"""

from .file_loader import ConfigFileLoader, DEFAULT_CONFIG_FILES
from .loader import load_config, load_settings, config_summary
from .validator import MoneyManagerSettings

__all__ = [
    "load_config",
    "load_settings",
    "config_summary",
    "MoneyManagerSettings",
    "ConfigFileLoader",
    "DEFAULT_CONFIG_FILES",
]
