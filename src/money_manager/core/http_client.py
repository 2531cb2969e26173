# src/money_manager/core/http_client.py
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException

from .config import ClientConfig
from .decoder import decode_quasi_json, decode_xml
from .error_handler import ErrorHandler
from .exceptions import FileError, MoneyManagerError, SessionError
from .executor import RequestExecutor
from .session_store import SessionStore

if TYPE_CHECKING:
    from .logging import MoneyManagerLogger

DEFAULT_ACCEPT = "application/json, text/xml, */*"
XML_ACCEPT = "text/xml"
CHUNK_SIZE = 8192


def _form_value(value: Any) -> str:
    """Значение формы/query так, как его ждёт сервер."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def encode_fields(fields: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """
    Подготовить поля формы или query.

    None выбрасывается, остальное приводится к строке.

    Example:
        >>> encode_fields({"mbCash": 1500.0, "mbid": None, "flag": True})
        {'mbCash': '1500', 'flag': 'true'}
    """
    if not fields:
        return {}
    return {key: _form_value(value) for key, value in fields.items() if value is not None}


class MoneyManagerClient:
    """
    Клиент HTTP API Money Manager.

    Features:
        - Один requests.Session, cookie jar общий с SessionStore
        - Retry с exponential backoff (RequestExecutor)
        - Сессия сохраняется на диск после каждого успешного ответа
        - Декодирование quasi-JSON и XML ответов
        - Потоковая загрузка файлов на диск, upload multipart
        - Контекстный менеджер

    Example:
        >>> with MoneyManagerClient(ClientConfig.create(base_url="http://10.0.0.2:8888")) as client:
        ...     assets = client.get("/getAssetData")
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        session_store: Optional[SessionStore] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            config: Конфигурация клиента (по умолчанию ClientConfig())
            session_store: Хранилище кук (по умолчанию из config.session)
            sleep: Функция ожидания между попытками (для тестов)
        """
        self._config = config or ClientConfig()

        if session_store is None:
            session_store = SessionStore(
                cookie_file=self._config.session.cookie_file,
                persist=self._config.session.persist,
            )
        self._session_store = session_store

        self._error_handler = ErrorHandler(
            base_url=self._config.server.base_url,
            timeout=self._config.server.timeout,
        )
        self._executor = RequestExecutor(
            self._config.retry,
            self._error_handler,
            timeout=self._config.server.timeout,
            sleep=sleep,
        )

        self._logger: Optional['MoneyManagerLogger'] = None
        if self._config.logging:
            from .logging import MoneyManagerLogger
            host = urlparse(self._config.server.base_url).netloc or "unknown"
            self._logger = MoneyManagerLogger(
                config=self._config.logging,
                name=f"money_manager.client.{host}",
            )

        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()

        # Ретраи только через RequestExecutor
        adapter = HTTPAdapter(max_retries=0)
        session.mount('http://', adapter)
        session.mount('https://', adapter)

        session.headers.update({"Accept": DEFAULT_ACCEPT})
        session.cookies = self._session_store.jar
        return session

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ==================== Запросы ====================

    def _build_url(self, endpoint: str) -> str:
        """{base_url}/moneyBook/{endpoint}"""
        return f"{self._config.server.api_url}/{endpoint.lstrip('/')}"

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        stream: bool = False,
        upload: Optional[tuple] = None,
        consume: Optional[Callable[[requests.Response], None]] = None,
    ) -> requests.Response:
        """
        Один логический запрос: retry, классификация ошибок, сохранение сессии.

        Args:
            method: GET / POST
            endpoint: Путь относительно /moneyBook
            params: Query параметры
            data: Поля формы (application/x-www-form-urlencoded или multipart)
            headers: Дополнительные заголовки
            stream: Не читать тело сразу (downloads)
            upload: (field_name, path) - файл открывается заново на каждую попытку
            consume: Чтение тела внутри попытки (downloads); ошибка чтения ретраится

        Returns:
            Успешный Response (2xx)

        Raises:
            MoneyManagerError: Классифицированная ошибка последней попытки
        """
        url = self._build_url(endpoint)
        timeout = self._config.server.timeout
        query = encode_fields(params)
        form = encode_fields(data)

        def attempt() -> requests.Response:
            if upload is not None:
                field_name, path = upload
                with open(path, "rb") as fh:
                    response = self._session.request(
                        method, url, params=query, data=form, headers=headers,
                        files={field_name: (path.name, fh)}, timeout=timeout,
                    )
            else:
                response = self._session.request(
                    method, url, params=query, data=form or None, headers=headers,
                    timeout=timeout, stream=stream,
                )
            try:
                response.raise_for_status()
            except requests.exceptions.HTTPError:
                response.close()
                raise
            if consume is not None:
                with response:
                    consume(response)
            return response

        if self._logger:
            self._logger.debug("Request started", method=method, url=url, stream=stream)

        start_time = time.time()
        try:
            response = self._executor.execute(attempt, method, url)
        except SessionError as e:
            if self._config.session.reset_on_auth_failure:
                self.clear_session()
            if self._logger:
                self._logger.error("Session rejected", method=method, url=url, code=e.code)
            raise
        except Exception as e:
            if self._logger:
                self._logger.error(
                    "Request failed", method=method, url=url, error=str(e),
                    code=getattr(e, "code", None),
                )
            raise

        self._session_store.save()

        if self._logger:
            self._logger.info(
                "Request completed",
                method=method,
                url=url,
                status_code=response.status_code,
                duration_ms=round((time.time() - start_time) * 1000, 2),
            )
        return response

    @staticmethod
    def _text(response: requests.Response) -> str:
        """Тело ответа; без charset в Content-Type считаем UTF-8."""
        content_type = response.headers.get("Content-Type", "")
        if "charset" not in content_type.lower():
            response.encoding = "utf-8"
        return response.text

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET, ответ в quasi-JSON.

        Example:
            >>> client.get("/getInitData", {"mbid": "book-1"})
        """
        response = self._request("GET", endpoint, params=params)
        return decode_quasi_json(self._text(response))

    def get_xml(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET, ответ в XML (Accept: text/xml).

        Example:
            >>> client.get_xml("/getDataByPeriod", {"startDate": "2026-01-01", "endDate": "2026-01-31"})
        """
        response = self._request("GET", endpoint, params=params, headers={"Accept": XML_ACCEPT})
        return decode_xml(self._text(response))

    def post(self, endpoint: str, data: Optional[Dict[str, Any]] = None) -> Any:
        """
        POST формы, ответ в quasi-JSON.

        Example:
            >>> client.post("/delete", {"ids": ":tx-1:tx-2"})
        """
        response = self._request("POST", endpoint, data=data)
        return decode_quasi_json(self._text(response))

    # ==================== Файлы ====================

    def download_file(
        self,
        endpoint: str,
        output_path: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        POST формы, бинарный ответ потоком на диск.

        Returns:
            {"filePath": ..., "fileSize": ...}
        """
        return self._download("POST", endpoint, output_path, data=data)

    def download_file_get(
        self,
        endpoint: str,
        output_path: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        GET, бинарный ответ потоком на диск.

        Returns:
            {"filePath": ..., "fileSize": ...}
        """
        return self._download("GET", endpoint, output_path, params=params)

    def _download(
        self,
        method: str,
        endpoint: str,
        output_path: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        path = Path(output_path).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileError.write_failed(str(path), str(e)) from e

        size = 0

        def write_body(response: requests.Response):
            nonlocal size
            size = 0
            # "wb" обрезает файл, оставшийся от прошлой попытки
            try:
                with open(path, "wb") as fh:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            fh.write(chunk)
                            size += len(chunk)
            except RequestException:
                # подкласс OSError, но это сетевая ошибка: retry
                raise
            except OSError as e:
                raise FileError.write_failed(str(path), str(e)) from e

        try:
            self._request(method, endpoint, params=params, data=data, stream=True, consume=write_body)
        except MoneyManagerError:
            self._remove_partial(path)
            raise

        if self._logger:
            self._logger.info("File downloaded", file_path=str(path), file_size=size)

        return {"filePath": str(path), "fileSize": size}

    @staticmethod
    def _remove_partial(path: Path):
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    def upload_file(self, endpoint: str, file_path: str, field_name: str = "file") -> Any:
        """
        Multipart upload файла.

        Raises:
            FileError: Файл не найден или не читается (до отправки запроса)
        """
        path = Path(file_path).expanduser()
        if not path.is_file():
            raise FileError.not_found(str(path))

        try:
            with open(path, "rb"):
                pass
        except OSError as e:
            raise self._error_handler.classify_os_error(e, str(path)) from e

        response = self._request("POST", endpoint, upload=(field_name, path))
        return decode_quasi_json(self._text(response))

    # ==================== Сессия и ресурсы ====================

    def clear_session(self):
        """Сбросить куки (в памяти и на диске). Следующий запрос начнёт новую сессию."""
        self._session_store.clear()

    def close(self):
        """Закрыть соединения и логгер клиента."""
        if self._logger is not None:
            self._logger.close()
        self._session.close()

    # ==================== Свойства ====================

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.server.base_url

    @property
    def api_url(self) -> str:
        return self._config.server.api_url

    @property
    def session_store(self) -> SessionStore:
        return self._session_store

    @property
    def session(self) -> requests.Session:
        return self._session
