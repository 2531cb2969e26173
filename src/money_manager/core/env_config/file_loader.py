"""
Config file loader (.money-manager-mcp.json / .yaml).

File layout:

    {
      "server": {"baseUrl": "http://192.168.0.10:8888", "timeout": 30000,
                 "retryCount": 3, "retryDelay": 1000},
      "session": {"persist": true, "cookieFile": ".session-cookies.json"},
      "logging": {"level": "info", "format": "text"},
      "defaults": {"mbid": "book-1"},
      "tools": {"enableBackupTools": false}
    }

The loader only flattens the file into MoneyManagerSettings field names;
range validation belongs to the settings model.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = (
    ".money-manager-mcp.json",
    ".money-manager-mcp.yaml",
    ".money-manager-mcp.yml",
)

# section -> {file key: settings field}
FIELD_MAP = {
    "server": {
        "baseUrl": "base_url",
        "timeout": "timeout",
        "retryCount": "retry_count",
        "retryDelay": "retry_delay",
        "retryPost": "retry_post",
    },
    "session": {
        "persist": "session_persist",
        "cookieFile": "cookie_file",
    },
    "logging": {
        "level": "log_level",
        "format": "log_format",
        "file": "log_file",
    },
    "defaults": {
        "mbid": "default_mbid",
    },
    "tools": {
        "enableBackupTools": "enable_backup_tools",
    },
}


class ConfigFileLoader:
    """
    Загрузчик конфигурации из файлов.

    Examples:
        >>> values = ConfigFileLoader.from_file(".money-manager-mcp.json")
        >>> values = ConfigFileLoader.discover()  # поиск в текущей директории
    """

    @staticmethod
    def from_yaml(path: Union[str, Path]) -> Dict[str, Any]:
        """
        Загрузить конфиг из YAML файла.

        Returns:
            Плоский словарь полей MoneyManagerSettings

        Raises:
            ConfigurationError: Файл не найден или невалидный
        """
        path = Path(path)
        text = ConfigFileLoader._read(path)
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {path}: {e}", {"file": str(path)}) from e
        return ConfigFileLoader._flatten(data, str(path))

    @staticmethod
    def from_json(path: Union[str, Path]) -> Dict[str, Any]:
        """
        Загрузить конфиг из JSON файла.

        Returns:
            Плоский словарь полей MoneyManagerSettings

        Raises:
            ConfigurationError: Файл не найден или невалидный
        """
        path = Path(path)
        text = ConfigFileLoader._read(path)
        try:
            data = json.loads(text) if text.strip() else None
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON syntax in {path}: {e}", {"file": str(path)}) from e
        return ConfigFileLoader._flatten(data, str(path))

    @staticmethod
    def from_file(path: Union[str, Path]) -> Dict[str, Any]:
        """
        Автоопределение формата по расширению (.yaml, .yml, .json).

        Raises:
            ConfigurationError: Формат не поддерживается или файл невалидный
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            return ConfigFileLoader.from_yaml(path)
        if suffix == ".json":
            return ConfigFileLoader.from_json(path)
        raise ConfigurationError(
            f"Unsupported config file format: {suffix or path.name}. "
            f"Supported formats: .json, .yaml, .yml",
            {"file": str(path)},
        )

    @staticmethod
    def discover(directory: Union[str, Path, None] = None) -> Optional[Path]:
        """
        Найти файл конфигурации по стандартным именам.

        Args:
            directory: Где искать (по умолчанию cwd)

        Returns:
            Путь к первому найденному файлу или None
        """
        base = Path(directory) if directory is not None else Path.cwd()
        for name in DEFAULT_CONFIG_FILES:
            candidate = base / name
            if candidate.is_file():
                return candidate
        return None

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigurationError(f"Config file not found: {path}", {"file": str(path)}) from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}", {"file": str(path)}) from e

    @staticmethod
    def _flatten(data: Any, source: str) -> Dict[str, Any]:
        """
        Вложенные секции -> плоские имена полей настроек.

        Неизвестные секции и ключи пропускаются с предупреждением.
        """
        if data is None:
            logger.warning(f"Config file {source} is empty, using defaults")
            return {}

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config must be an object, got {type(data).__name__} in {source}",
                {"file": source},
            )

        values: Dict[str, Any] = {}
        for section, section_data in data.items():
            mapping = FIELD_MAP.get(section)
            if mapping is None:
                logger.warning(f"Unknown config section '{section}' in {source}")
                continue
            if not isinstance(section_data, dict):
                raise ConfigurationError(
                    f"'{section}' must be an object in {source}",
                    {"file": source, "section": section},
                )
            for key, value in section_data.items():
                field_name = mapping.get(key)
                if field_name is None:
                    logger.warning(f"Unknown config key '{section}.{key}' in {source}")
                    continue
                values[field_name] = value

        return values
