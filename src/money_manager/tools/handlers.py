# src/money_manager/tools/handlers.py
"""
Tool handlers.

Each handler takes a MoneyManagerClient and a validated input model, makes
exactly one upstream request and reshapes the answer. Errors raised by the
client are already classified and pass through untouched.
"""
import logging
from typing import Any, Dict, List, Optional

from ..core.decoder import extract_dataset
from ..core.exceptions import FileError
from ..core.http_client import MoneyManagerClient
from ..schemas import (
    AssetCreateInput,
    AssetDeleteInput,
    AssetListInput,
    AssetUpdateInput,
    BackupDownloadInput,
    BackupRestoreInput,
    CardCreateInput,
    CardListInput,
    CardUpdateInput,
    DashboardGetAssetChartInput,
    DashboardGetOverviewInput,
    InitGetDataInput,
    SummaryExportExcelInput,
    SummaryGetPeriodInput,
    TransactionCreateInput,
    TransactionDeleteInput,
    TransactionListInput,
    TransactionUpdateInput,
    TransferCreateInput,
    TransferUpdateInput,
)

logger = logging.getLogger(__name__)

TRANSFER_UPDATE_WARNING = (
    "WARNING: The server creates a new transfer with a NEW ID. "
    "The provided ID is now invalid. Use transaction_list to get the new ID."
)

XLSX_CORRECTION_NOTE = (
    " (Note: Extension was changed from .xlsx to .xls because the server "
    "returns HTML-based Excel format which requires .xls extension)"
)

TRANSACTION_FIELDS = (
    "id", "mbDate", "assetId", "toAssetId", "targetAssetId", "payType",
    "mcid", "mbCategory", "mcscid", "subCategory", "mbContent", "mbCash",
    "inOutCode", "inOutType", "mbDetailContent",
)


# ==================== Helpers ====================

def is_success(response: Any) -> bool:
    """Операция успешна, если сервер явно не сказал обратное."""
    if not isinstance(response, dict):
        return True
    return response.get("success") is not False and response.get("result") != "fail"


def to_number(value: Any) -> float:
    """Число или числовая строка -> float, всё остальное -> 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


def _field(response: Any, *names: str) -> Any:
    """Первое непустое поле ответа."""
    if not isinstance(response, dict):
        return None
    for name in names:
        value = response.get(name)
        if value:
            return value
    return None


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _operation(response: Any, **fields: Any) -> Dict[str, Any]:
    result: Dict[str, Any] = {"success": is_success(response)}
    result.update(fields)
    result["message"] = _field(response, "message")
    return result


def _sum_children(groups: List[Any], key: str, absolute: bool = False) -> float:
    total = 0.0
    for group in groups:
        if not isinstance(group, dict):
            continue
        for child in _list(group.get("children")):
            if isinstance(child, dict):
                amount = to_number(child.get(key))
                total += abs(amount) if absolute else amount
    return total


def _transaction(row: Dict[str, Any]) -> Dict[str, Any]:
    result = {name: row.get(name) for name in TRANSACTION_FIELDS}
    result["mbCash"] = to_number(row.get("mbCash"))
    return result


def _transaction_form(params) -> Dict[str, Any]:
    return {
        "mbDate": params.mb_date,
        "assetId": params.asset_id,
        "payType": params.pay_type,
        "mcid": params.mcid,
        "mbCategory": params.mb_category,
        "mbCash": params.mb_cash,
        "inOutCode": params.in_out_code,
        "inOutType": params.in_out_type,
        "mcscid": params.mcscid or "",
        "subCategory": params.sub_category or "",
        "mbContent": params.mb_content or "",
        "mbDetailContent": params.mb_detail_content or "",
    }


def _asset_form(params) -> Dict[str, Any]:
    return {
        "assetGroupId": params.asset_group_id,
        "assetGroupName": params.asset_group_name,
        "assetName": params.asset_name,
        "assetMoney": params.asset_money,
        "linkAssetId": params.link_asset_id or "",
        "linkAssetName": params.link_asset_name or "",
    }


def _card_form(params) -> Dict[str, Any]:
    return {
        "cardName": params.card_name,
        "linkAssetId": params.link_asset_id,
        "linkAssetName": params.link_asset_name,
        "jungsanDay": params.jungsan_day,
        "paymentDay": params.payment_day,
    }


def _transfer_form(params) -> Dict[str, Any]:
    return {
        "moveDate": params.move_date,
        "fromAssetId": params.from_asset_id,
        "fromAssetName": params.from_asset_name,
        "toAssetId": params.to_asset_id,
        "toAssetName": params.to_asset_name,
        "moveMoney": params.move_money,
        "moneyContent": params.money_content or "",
        "mbDetailContent": params.mb_detail_content or "",
    }


def _download(client: MoneyManagerClient, method: str, endpoint: str,
              output_path: str, fields: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Скачать файл; ошибки ФС без классификации -> FILE write_failed."""
    try:
        if method == "GET":
            return client.download_file_get(endpoint, output_path, fields)
        return client.download_file(endpoint, output_path, fields)
    except OSError as e:
        raise FileError.write_failed(output_path, str(e)) from e


# ==================== Initialization ====================

def init_get_data(client: MoneyManagerClient, params: InitGetDataInput) -> Dict[str, Any]:
    """Справочники: категории, типы оплаты, книги, группы и имена активов."""
    query = {"mbid": params.mbid} if params.mbid else None
    raw = client.get("/getInitData", query)
    raw = raw if isinstance(raw, dict) else {}

    return {
        "initData": raw.get("initData"),
        "categories": {
            "income": _list(raw.get("category_0")),
            "expense": _list(raw.get("category_1")),
        },
        "paymentTypes": _list(raw.get("payType")),
        "multiBooks": _list(raw.get("multiBooks")),
        "assetGroups": _list(raw.get("assetGroups")),
        "assetNames": _list(raw.get("assetNames")),
    }


# ==================== Transactions ====================

def transaction_list(client: MoneyManagerClient, params: TransactionListInput) -> Dict[str, Any]:
    """
    Транзакции за период.

    Единственный XML endpoint. Пустой период отдаётся как пустой <dataset>,
    одна строка - как одиночный <row>; оба случая нормализует extract_dataset.
    """
    decoded = client.get_xml("/getDataByPeriod", {
        "startDate": params.start_date,
        "endDate": params.end_date,
        "mbid": params.mbid,
        "assetId": params.asset_id,
    })
    dataset = extract_dataset(decoded)

    logger.debug(f"transaction_list: {dataset.count} result(s), {len(dataset.rows)} row(s)")
    return {
        "count": dataset.count,
        "transactions": [_transaction(row) for row in dataset.rows],
    }


def transaction_create(client: MoneyManagerClient, params: TransactionCreateInput) -> Dict[str, Any]:
    response = client.post("/create", _transaction_form(params))
    return _operation(response, transactionId=_field(response, "id"))


def transaction_update(client: MoneyManagerClient, params: TransactionUpdateInput) -> Dict[str, Any]:
    form = {"id": params.id}
    form.update(_transaction_form(params))
    response = client.post("/update", form)
    return _operation(response, transactionId=params.id)


def transaction_delete(client: MoneyManagerClient, params: TransactionDeleteInput) -> Dict[str, Any]:
    """Сервер ждёт ids в формате ":id1:id2"."""
    response = client.post("/delete", {"ids": ":" + ":".join(params.ids)})
    return _operation(response, deletedCount=len(params.ids))


# ==================== Summary ====================

def summary_get_period(client: MoneyManagerClient, params: SummaryGetPeriodInput) -> Dict[str, Any]:
    raw = client.get("/getSummaryDataByPeriod", {
        "startDate": params.start_date,
        "endDate": params.end_date,
    })
    raw = raw if isinstance(raw, dict) else {}
    return {
        "summary": raw.get("summary"),
        "incomeByCategory": _list(raw.get("income")),
        "expenseByCategory": _list(raw.get("outcome")),
    }


def summary_export_excel(client: MoneyManagerClient, params: SummaryExportExcelInput) -> Dict[str, Any]:
    """
    Выгрузка в Excel.

    Сервер отдаёт HTML с Excel-метаданными, который открывается только
    как .xls, поэтому .xlsx переименовывается.
    """
    output_path = params.output_path
    corrected = output_path.lower().endswith(".xlsx")
    if corrected:
        output_path = output_path[:-5] + ".xls"

    result = _download(client, "POST", "/getExcelFile", output_path, {
        "startDate": params.start_date,
        "endDate": params.end_date,
        "mbid": params.mbid,
        "assetId": params.asset_id or "",
        "inOutType": params.in_out_type or "",
    })

    message = f"Excel file exported successfully to {result['filePath']}"
    if corrected:
        message += XLSX_CORRECTION_NOTE

    return {
        "success": True,
        "filePath": result["filePath"],
        "fileSize": result["fileSize"],
        "extensionCorrected": corrected,
        "message": message,
    }


# ==================== Assets ====================

def asset_list(client: MoneyManagerClient, params: AssetListInput) -> Dict[str, Any]:
    groups = _list(client.get("/getAssetData"))
    return {
        "assetGroups": groups,
        "totalBalance": _sum_children(groups, "assetMoney"),
    }


def asset_create(client: MoneyManagerClient, params: AssetCreateInput) -> Dict[str, Any]:
    response = client.post("/assetAdd", _asset_form(params))
    return _operation(response, assetId=_field(response, "assetId"))


def asset_update(client: MoneyManagerClient, params: AssetUpdateInput) -> Dict[str, Any]:
    form = {"assetId": params.asset_id}
    form.update(_asset_form(params))
    response = client.post("/assetModify", form)
    return _operation(response, assetId=params.asset_id)


def asset_delete(client: MoneyManagerClient, params: AssetDeleteInput) -> Dict[str, Any]:
    response = client.post("/removeAsset", {"assetId": params.asset_id})
    return _operation(response, assetId=params.asset_id)


# ==================== Credit cards ====================

def card_list(client: MoneyManagerClient, params: CardListInput) -> Dict[str, Any]:
    """Неоплаченный остаток хранится со знаком минус; суммируем модули."""
    groups = _list(client.get("/getCardData"))
    return {
        "cardGroups": groups,
        "totalUnpaid": _sum_children(groups, "notPayMoney", absolute=True),
    }


def card_create(client: MoneyManagerClient, params: CardCreateInput) -> Dict[str, Any]:
    form = _card_form(params)
    form["notPayMoney"] = params.not_pay_money
    response = client.post("/addAssetCard", form)
    return _operation(response, cardId=_field(response, "cardId", "assetId"))


def card_update(client: MoneyManagerClient, params: CardUpdateInput) -> Dict[str, Any]:
    form = {"assetId": params.asset_id}
    form.update(_card_form(params))
    response = client.post("/modifyCard", form)
    return _operation(response, cardId=params.asset_id)


# ==================== Transfers ====================

def transfer_create(client: MoneyManagerClient, params: TransferCreateInput) -> Dict[str, Any]:
    response = client.post("/moveAsset", _transfer_form(params))
    return _operation(response, transferId=_field(response, "transferId", "id"))


def transfer_update(client: MoneyManagerClient, params: TransferUpdateInput) -> Dict[str, Any]:
    """
    Изменить перевод.

    Сервер не обновляет запись, а создаёт новую с новым id; старый id
    после вызова недействителен.
    """
    form = {"id": params.id}
    form.update(_transfer_form(params))
    response = client.post("/modifyMoveAsset", form)

    result = _operation(response, transferId=params.id)
    result["message"] = result["message"] or TRANSFER_UPDATE_WARNING
    result["warning"] = TRANSFER_UPDATE_WARNING
    return result


# ==================== Dashboard ====================

def dashboard_get_overview(client: MoneyManagerClient, params: DashboardGetOverviewInput) -> Dict[str, Any]:
    raw = client.get("/getDashBoardData")
    raw = raw if isinstance(raw, dict) else {}
    return {
        "assetSummary": raw.get("assetSummary"),
        "monthlyTrend": _list(raw.get("assetLine")),
        "assetRatio": _list(raw.get("assetRatio")),
        "debtRatio": _list(raw.get("debtRatio")),
    }


def dashboard_get_asset_chart(client: MoneyManagerClient, params: DashboardGetAssetChartInput) -> Dict[str, Any]:
    raw = client.post("/getEachAssetChartData", {"assetId": params.asset_id})
    raw = raw if isinstance(raw, dict) else {}
    return {
        "assetId": params.asset_id,
        "chartData": _list(raw.get("assetChartData")),
    }


# ==================== Backup ====================

def backup_download(client: MoneyManagerClient, params: BackupDownloadInput) -> Dict[str, Any]:
    result = _download(client, "GET", "/money.sqlite", params.output_path)
    return {
        "success": True,
        "filePath": result["filePath"],
        "fileSize": result["fileSize"],
        "message": f"Database backup downloaded successfully to {result['filePath']}",
    }


def backup_restore(client: MoneyManagerClient, params: BackupRestoreInput) -> Dict[str, Any]:
    """Заменяет базу на сервере целиком."""
    response = client.upload_file("/uploadSqlFile", params.file_path, "file")
    return {
        "success": is_success(response),
        "message": _field(response, "message") or "Database restored successfully",
    }
