"""
Input schemas for Money Manager tools.

One pydantic model per tool. Arguments arrive in camelCase (the upstream
form field names); models expose snake_case attributes. Unknown keys are
ignored. Only shapes are checked here: whether an asset or category id
exists is the server's business.
"""

from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .core.error_handler import field_errors
from .core.exceptions import ValidationError

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

DateStr = Annotated[str, Field(pattern=DATE_PATTERN, description="Date (YYYY-MM-DD)")]
NonEmptyStr = Annotated[str, Field(min_length=1)]
DayOfMonth = Annotated[int, Field(ge=1, le=31)]


class ToolInput(BaseModel):
    """Base for tool inputs: camelCase aliases, extra keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# INITIALIZATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class InitGetDataInput(ToolInput):
    mbid: Optional[str] = Field(default=None, description="Money book ID")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRANSACTIONS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransactionListInput(ToolInput):
    start_date: DateStr
    end_date: DateStr
    mbid: NonEmptyStr = Field(description="Money book ID")
    asset_id: Optional[str] = Field(default=None, description="Filter by asset ID")


class _TransactionFields(ToolInput):
    mb_date: DateStr
    asset_id: NonEmptyStr = Field(description="Asset/account ID")
    pay_type: NonEmptyStr = Field(description="Payment type name")
    mcid: NonEmptyStr = Field(description="Category ID")
    mb_category: NonEmptyStr = Field(description="Category name")
    mb_cash: float = Field(gt=0, description="Amount")
    in_out_type: NonEmptyStr = Field(description="Transaction type name")
    mcscid: Optional[str] = Field(default=None, description="Subcategory ID")
    sub_category: Optional[str] = Field(default=None, description="Subcategory name")
    mb_content: Optional[str] = Field(default=None, description="Description")
    mb_detail_content: Optional[str] = Field(default=None, description="Detailed notes")


class TransactionCreateInput(_TransactionFields):
    in_out_code: Literal["0", "1"] = Field(description="0 = income, 1 = expense")


class TransactionUpdateInput(_TransactionFields):
    id: NonEmptyStr = Field(description="Transaction ID")
    in_out_code: str = Field(
        pattern=r"^[0-8]$",
        description="0 income, 1 expense, 3 transfer-out, 4 transfer-in, 7 card payment-out, 8 card payment-in",
    )


class TransactionDeleteInput(ToolInput):
    ids: List[NonEmptyStr] = Field(min_length=1, description="Transaction IDs to delete")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SUMMARY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class SummaryGetPeriodInput(ToolInput):
    start_date: DateStr
    end_date: DateStr


class SummaryExportExcelInput(ToolInput):
    start_date: DateStr
    end_date: DateStr
    mbid: NonEmptyStr = Field(description="Money book ID")
    asset_id: Optional[str] = Field(default=None, description="Filter by asset ID")
    in_out_type: Optional[str] = Field(default=None, description="Filter by transaction type")
    output_path: NonEmptyStr = Field(description="Where to save the file (.xls)")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ASSETS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class AssetListInput(ToolInput):
    pass


class AssetCreateInput(ToolInput):
    asset_group_id: NonEmptyStr = Field(description="Asset group ID")
    asset_group_name: NonEmptyStr = Field(description="Asset group name")
    asset_name: NonEmptyStr = Field(description="Asset name")
    asset_money: float = Field(description="Balance (may be negative)")
    link_asset_id: Optional[str] = Field(default=None, description="Linked asset ID")
    link_asset_name: Optional[str] = Field(default=None, description="Linked asset name")


class AssetUpdateInput(AssetCreateInput):
    asset_id: NonEmptyStr = Field(description="Asset ID")


class AssetDeleteInput(ToolInput):
    asset_id: NonEmptyStr = Field(description="Asset ID")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CREDIT CARDS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class CardListInput(ToolInput):
    pass


class _CardFields(ToolInput):
    card_name: NonEmptyStr = Field(description="Card name")
    link_asset_id: NonEmptyStr = Field(description="Payment account ID")
    link_asset_name: NonEmptyStr = Field(description="Payment account name")
    jungsan_day: Optional[DayOfMonth] = Field(default=None, description="Statement day (1-31)")
    payment_day: Optional[DayOfMonth] = Field(default=None, description="Payment day (1-31)")


class CardCreateInput(_CardFields):
    not_pay_money: float = Field(description="Unpaid balance")


class CardUpdateInput(_CardFields):
    asset_id: NonEmptyStr = Field(description="Card asset ID")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRANSFERS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransferCreateInput(ToolInput):
    move_date: DateStr
    from_asset_id: NonEmptyStr = Field(description="Source asset ID")
    from_asset_name: NonEmptyStr = Field(description="Source asset name")
    to_asset_id: NonEmptyStr = Field(description="Destination asset ID")
    to_asset_name: NonEmptyStr = Field(description="Destination asset name")
    move_money: float = Field(gt=0, description="Amount")
    money_content: Optional[str] = Field(default=None, description="Description")
    mb_detail_content: Optional[str] = Field(default=None, description="Detailed notes")


class TransferUpdateInput(TransferCreateInput):
    id: NonEmptyStr = Field(description="Transfer ID (invalid after the update)")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# DASHBOARD
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class DashboardGetOverviewInput(ToolInput):
    pass


class DashboardGetAssetChartInput(ToolInput):
    asset_id: NonEmptyStr = Field(description="Asset ID")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BACKUP
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class BackupDownloadInput(ToolInput):
    output_path: NonEmptyStr = Field(description="Where to save the SQLite backup")


class BackupRestoreInput(ToolInput):
    file_path: NonEmptyStr = Field(description="SQLite backup to upload")


TOOL_SCHEMAS: Dict[str, Type[ToolInput]] = {
    "init_get_data": InitGetDataInput,
    "transaction_list": TransactionListInput,
    "transaction_create": TransactionCreateInput,
    "transaction_update": TransactionUpdateInput,
    "transaction_delete": TransactionDeleteInput,
    "summary_get_period": SummaryGetPeriodInput,
    "summary_export_excel": SummaryExportExcelInput,
    "asset_list": AssetListInput,
    "asset_create": AssetCreateInput,
    "asset_update": AssetUpdateInput,
    "asset_delete": AssetDeleteInput,
    "card_list": CardListInput,
    "card_create": CardCreateInput,
    "card_update": CardUpdateInput,
    "transfer_create": TransferCreateInput,
    "transfer_update": TransferUpdateInput,
    "dashboard_get_overview": DashboardGetOverviewInput,
    "dashboard_get_asset_chart": DashboardGetAssetChartInput,
    "backup_download": BackupDownloadInput,
    "backup_restore": BackupRestoreInput,
}


def validate_tool_input(name: str, arguments: Optional[Mapping[str, Any]]) -> ToolInput:
    """
    Validate tool arguments.

    Args:
        name: Tool name
        arguments: Raw arguments (camelCase keys; None means no arguments)

    Returns:
        Validated model

    Raises:
        ValidationError: Unknown tool, or field errors in details["errors"]

    Example:
        >>> validate_tool_input("transaction_delete", {"ids": ["a", "b"]}).ids
        ['a', 'b']
    """
    schema = TOOL_SCHEMAS.get(name)
    if schema is None:
        raise ValidationError.unknown_tool(name)

    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise ValidationError(
            f"Arguments must be an object, got {type(arguments).__name__}",
            field="arguments",
        )

    try:
        return schema.model_validate(dict(arguments))
    except PydanticValidationError as e:
        raise ValidationError.from_field_errors(field_errors(e)) from e


def input_json_schema(name: str) -> Dict[str, Any]:
    """JSON Schema of a tool's arguments (camelCase property names)."""
    schema = TOOL_SCHEMAS[name].model_json_schema(by_alias=True)
    schema.pop("title", None)
    return schema
