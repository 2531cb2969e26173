# src/money_manager/tools/registry.py
"""
Tool registry and dispatch.

execute_tool() is the error boundary: whatever happens inside, the caller
gets a dict back, either the handler result or
{"success": False, "error": {...}}.
"""
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from ..core.exceptions import InternalError, MoneyManagerError, ValidationError
from ..core.http_client import MoneyManagerClient
from ..core.logging import request_id_context
from ..schemas import TOOL_SCHEMAS, ToolInput, input_json_schema, validate_tool_input
from . import handlers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDefinition:
    """
    Описание инструмента.

    Args:
        name: Имя инструмента
        description: Описание для клиента MCP
        schema: Модель входных данных
        handler: handler(client, params) -> dict
        dangerous: Необратимо меняет данные на сервере (скрыт по умолчанию)
    """
    name: str
    description: str
    schema: Type[ToolInput]
    handler: Callable[[MoneyManagerClient, Any], Dict[str, Any]]
    dangerous: bool = False

    def input_schema(self) -> Dict[str, Any]:
        """JSON Schema аргументов."""
        return input_json_schema(self.name)


_DESCRIPTIONS = {
    "init_get_data": (
        "Retrieves initial application data: income and expense categories, "
        "payment types, money books, asset groups and asset names. Call this first "
        "to learn the IDs other tools need."
    ),
    "transaction_list": (
        "Lists transactions within a date range (YYYY-MM-DD). The server may hang on "
        "ranges with no transactions; prefer ranges known to contain data."
    ),
    "transaction_create": "Creates a new income (inOutCode '0') or expense (inOutCode '1') transaction.",
    "transaction_update": "Updates an existing transaction.",
    "transaction_delete": "Deletes one or more transactions by ID.",
    "summary_get_period": "Retrieves income and expense totals by category for a date range.",
    "summary_export_excel": (
        "Exports transactions for a date range to an Excel file. The server produces "
        "HTML-based .xls; a .xlsx path is saved as .xls."
    ),
    "asset_list": "Retrieves all assets grouped by asset group, with the total balance.",
    "asset_create": "Creates a new asset/account.",
    "asset_update": "Modifies an existing asset.",
    "asset_delete": "Removes an asset.",
    "card_list": "Retrieves all credit cards with the total unpaid balance.",
    "card_create": "Creates a new credit card linked to a payment account.",
    "card_update": "Modifies an existing credit card.",
    "transfer_create": "Transfers money between two assets.",
    "transfer_update": (
        "Modifies a transfer. The server creates a NEW transfer with a NEW ID; the "
        "provided ID becomes invalid. Use transaction_list to find the new ID."
    ),
    "dashboard_get_overview": "Retrieves the dashboard: asset summary, monthly trend, asset and debt ratios.",
    "dashboard_get_asset_chart": "Retrieves historical balance chart data for one asset.",
    "backup_download": "Downloads the full SQLite database backup to a local file.",
    "backup_restore": "Replaces the server database with a local SQLite backup. Irreversible.",
}

_DANGEROUS = {"backup_download", "backup_restore"}


def _build_registry() -> Dict[str, ToolDefinition]:
    registry = {}
    for name, schema in TOOL_SCHEMAS.items():
        registry[name] = ToolDefinition(
            name=name,
            description=_DESCRIPTIONS[name],
            schema=schema,
            handler=getattr(handlers, name),
            dangerous=name in _DANGEROUS,
        )
    return registry


TOOLS: Dict[str, ToolDefinition] = _build_registry()


def list_tool_definitions(include_dangerous: bool = False) -> List[ToolDefinition]:
    """
    Инструменты для публикации клиенту.

    Args:
        include_dangerous: Включить backup_download / backup_restore
    """
    return [tool for tool in TOOLS.values() if include_dangerous or not tool.dangerous]


def error_payload(error: MoneyManagerError) -> Dict[str, Any]:
    return {"success": False, "error": error.to_dict()}


def _with_defaults(
    definition: ToolDefinition,
    arguments: Optional[Mapping[str, Any]],
    default_mbid: Optional[str],
) -> Optional[Mapping[str, Any]]:
    """Подставить money book ID из конфигурации, если аргумент не передан."""
    if not default_mbid or "mbid" not in definition.schema.model_fields:
        return arguments
    if arguments is not None and not isinstance(arguments, Mapping):
        return arguments
    merged = dict(arguments or {})
    if not merged.get("mbid"):
        merged["mbid"] = default_mbid
    return merged


def execute_tool(
    client: MoneyManagerClient,
    name: str,
    arguments: Optional[Mapping[str, Any]] = None,
    allow_dangerous: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Проверить аргументы, выполнить инструмент, вернуть результат.

    Args:
        client: Клиент Money Manager
        name: Имя инструмента
        arguments: Аргументы (camelCase)
        allow_dangerous: Разрешить backup-инструменты
            (по умолчанию client.config.enable_backup_tools)

    Returns:
        Результат handler или {"success": False, "error": {...}}

    Example:
        >>> execute_tool(client, "transaction_delete", {"ids": ["a", "b"]})
        {'success': True, 'deletedCount': 2, 'message': None}
    """
    if allow_dangerous is None:
        allow_dangerous = client.config.enable_backup_tools

    start_time = time.time()
    with request_id_context(uuid.uuid4().hex[:12]):
        try:
            definition = TOOLS.get(name)
            if definition is None:
                raise ValidationError.unknown_tool(name)
            if definition.dangerous and not allow_dangerous:
                raise ValidationError(
                    f"Tool '{name}' is disabled. Start the server with "
                    f"--enable-backup-tools to use it.",
                    field="name",
                )

            params = validate_tool_input(
                name, _with_defaults(definition, arguments, client.config.default_mbid)
            )
            logger.debug(f"Tool {name} started")
            result = definition.handler(client, params)

        except MoneyManagerError as e:
            logger.warning(
                f"Tool {name} failed: [{e.code}] {e.message}",
                extra={"tool": name, "code": e.code, "retryable": e.retryable},
            )
            return error_payload(e)

        except Exception as e:
            logger.exception(f"Tool {name} raised an unexpected error", extra={"tool": name})
            return error_payload(InternalError.unexpected(e))

        logger.info(
            f"Tool {name} completed",
            extra={"tool": name, "duration_ms": round((time.time() - start_time) * 1000, 2)},
        )
        return result
