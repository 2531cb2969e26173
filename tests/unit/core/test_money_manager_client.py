"""
Tests for MoneyManagerClient (HTTP mocked with responses).
"""

import json
from urllib.parse import parse_qs

import pytest
import requests
import responses as responses_lib
from responses import matchers

from money_manager.core.config import ClientConfig, RetryConfig, ServerConfig, SessionConfig
from money_manager.core.exceptions import (
    APIError,
    DecodeError,
    FileError,
    NetworkError,
    SessionError,
)
from money_manager.core.http_client import MoneyManagerClient, encode_fields
from money_manager.core.session_store import SessionStore


def form(call):
    """Поля формы запроса."""
    return {key: values[0] for key, values in parse_qs(call.request.body).items()}


class TestEncodeFields:
    """Tests for encode_fields."""

    def test_drops_none(self):
        assert encode_fields({"a": None, "b": "x"}) == {"b": "x"}

    def test_numbers_and_bools(self):
        assert encode_fields({"mbCash": 1500.0, "rate": 1.5, "day": 25, "flag": False}) == {
            "mbCash": "1500", "rate": "1.5", "day": "25", "flag": "false",
        }

    def test_empty(self):
        assert encode_fields(None) == {}


class TestRequests:
    """GET / POST / XML."""

    def test_urls(self, client, base_url, api_url):
        assert client.base_url == base_url
        assert client.api_url == api_url

    def test_get_quasi_json(self, client, api_url, mock_responses):
        """GET с JS-литералом в ответе."""
        mock_responses.add(
            responses_lib.GET, f"{api_url}/getAssetData",
            body="[{assetGroupId: 'g1', children: []}]",
        )

        assert client.get("/getAssetData") == [{"assetGroupId": "g1", "children": []}]

    def test_get_query_params(self, client, api_url, mock_responses):
        """None выбрасывается из query."""
        mock_responses.add(
            responses_lib.GET, f"{api_url}/getInitData",
            json={"initData": {}},
            match=[matchers.query_param_matcher({"mbid": "book-1"})],
        )

        client.get("/getInitData", {"mbid": "book-1", "assetId": None})

    def test_get_xml(self, client, api_url, mock_responses):
        """XML endpoint: Accept text/xml."""
        mock_responses.add(
            responses_lib.GET, f"{api_url}/getDataByPeriod",
            body="<dataset><results>0</results></dataset>",
            content_type="text/xml",
            match=[matchers.header_matcher({"Accept": "text/xml"})],
        )

        assert client.get_xml("/getDataByPeriod", {"startDate": "2026-01-01"}) == {
            "dataset": {"results": "0"}
        }

    def test_post_form(self, client, api_url, mock_responses):
        """POST формы, числа без .0."""
        mock_responses.add(responses_lib.POST, f"{api_url}/create", json={"success": True, "id": "tx-1"})

        result = client.post("/create", {"mbCash": 1500.0, "mbDate": "2026-01-15", "mcscid": None})

        assert result == {"success": True, "id": "tx-1"}
        assert form(mock_responses.calls[0]) == {"mbCash": "1500", "mbDate": "2026-01-15"}

    def test_empty_body(self, client, api_url, mock_responses):
        mock_responses.add(responses_lib.POST, f"{api_url}/removeAsset", body="")
        assert client.post("/removeAsset", {"assetId": "a1"}) == {}

    def test_utf8_without_charset(self, client, api_url, mock_responses):
        """Без charset в Content-Type тело читается как UTF-8."""
        mock_responses.add(
            responses_lib.GET, f"{api_url}/getInitData",
            body="{name: '현금'}".encode("utf-8"),
            content_type="text/html",
        )

        assert client.get("/getInitData") == {"name": "현금"}

    def test_decode_error(self, client, api_url, mock_responses):
        """HTML вместо данных -> DecodeError, без retry."""
        mock_responses.add(responses_lib.GET, f"{api_url}/getDashBoardData", body="<html>oops</html>")

        with pytest.raises(DecodeError):
            client.get("/getDashBoardData")

        assert len(mock_responses.calls) == 1


class TestRetry:
    """Retry через RequestExecutor."""

    def test_retry_on_500(self, client, api_url, mock_responses, sleeps):
        """Retry на 500 ошибку."""
        mock_responses.add(responses_lib.GET, f"{api_url}/getCardData", status=500)
        mock_responses.add(responses_lib.GET, f"{api_url}/getCardData", status=500)
        mock_responses.add(responses_lib.GET, f"{api_url}/getCardData", json=[])

        assert client.get("/getCardData") == []
        assert len(mock_responses.calls) == 3
        assert sleeps == [1.0, 2.0]

    def test_no_retry_on_404(self, client, api_url, mock_responses, sleeps):
        """НЕ retry на 404."""
        mock_responses.add(responses_lib.GET, f"{api_url}/missing", status=404)

        with pytest.raises(APIError) as exc_info:
            client.get("/missing")

        assert exc_info.value.status_code == 404
        assert len(mock_responses.calls) == 1
        assert sleeps == []

    def test_post_retried_by_default(self, client, api_url, mock_responses):
        mock_responses.add(responses_lib.POST, f"{api_url}/create", status=503)
        mock_responses.add(responses_lib.POST, f"{api_url}/create", json={"success": True})

        assert client.post("/create", {"mbCash": 1}) == {"success": True}
        assert len(mock_responses.calls) == 2

    def test_post_not_retried_when_disabled(self, base_url, api_url, mock_responses, cookie_file):
        config = ClientConfig(
            server=ServerConfig(base_url=base_url),
            retry=RetryConfig(retry_post=False),
            session=SessionConfig(cookie_file=cookie_file),
        )
        mock_responses.add(responses_lib.POST, f"{api_url}/create", status=503)

        with MoneyManagerClient(config, sleep=lambda _: None) as client:
            with pytest.raises(APIError):
                client.post("/create", {"mbCash": 1})

        assert len(mock_responses.calls) == 1

    def test_connection_refused_exhausts_budget(self, client, api_url, mock_responses, sleeps):
        """Отказ соединения: 4 попытки, затем NetworkError."""
        mock_responses.add(
            responses_lib.GET, f"{api_url}/getAssetData",
            body=requests.exceptions.ConnectionError("[Errno 111] Connection refused"),
        )

        with pytest.raises(NetworkError) as exc_info:
            client.get("/getAssetData")

        assert exc_info.value.details["errorType"] == "CONNECTION_REFUSED"
        assert len(mock_responses.calls) == 4
        assert sleeps == [1.0, 2.0, 4.0]

    def test_transaction_list_timeout_hint(self, client, api_url, mock_responses):
        mock_responses.add(
            responses_lib.GET, f"{api_url}/getDataByPeriod",
            body=requests.exceptions.ReadTimeout("read timed out"),
        )

        with pytest.raises(NetworkError) as exc_info:
            client.get_xml("/getDataByPeriod")

        assert "hint" in exc_info.value.details


class TestSession:
    """Cookies и сессия."""

    def test_cookies_saved_after_success(self, client, api_url, mock_responses, cookie_file):
        """Set-Cookie попадает в файл после успешного ответа."""
        mock_responses.add(
            responses_lib.GET, f"{api_url}/getInitData",
            json={},
            headers={"Set-Cookie": "JSESSIONID=abc123; Path=/"},
        )

        client.get("/getInitData")

        with open(cookie_file, encoding="utf-8") as fh:
            entries = json.load(fh)
        assert [entry["name"] for entry in entries] == ["JSESSIONID"]

    def test_cookies_sent_back(self, client, api_url, mock_responses):
        mock_responses.add(
            responses_lib.GET, f"{api_url}/getInitData",
            json={},
            headers={"Set-Cookie": "JSESSIONID=abc123; Path=/"},
        )
        mock_responses.add(responses_lib.GET, f"{api_url}/getAssetData", json=[])

        client.get("/getInitData")
        client.get("/getAssetData")

        assert "JSESSIONID=abc123" in mock_responses.calls[1].request.headers["Cookie"]

    def test_session_reset_on_auth_failure(self, client_config, api_url, mock_responses, cookie_file):
        """Неустранимая 401: куки очищены, файл удалён."""
        store = SessionStore(cookie_file)
        store.jar.set(name="JSESSIONID", value="stale", domain="mm.test", path="/")
        store.save()

        mock_responses.add(responses_lib.GET, f"{api_url}/getAssetData", status=401)

        with MoneyManagerClient(client_config, session_store=store, sleep=lambda _: None) as client:
            with pytest.raises(SessionError):
                client.get("/getAssetData")

        assert len(mock_responses.calls) == 4
        assert len(store) == 0
        assert not store.cookie_file.exists()

    def test_clear_session(self, client):
        client.session.cookies.set("JSESSIONID", "x")
        client.clear_session()
        assert len(client.session_store) == 0
        assert len(client.session.cookies) == 0


class TestFiles:
    """Download / upload."""

    def test_download_file(self, client, api_url, mock_responses, tmp_path):
        """POST, бинарный ответ потоком на диск."""
        payload = b"<html>excel</html>" * 1000
        mock_responses.add(responses_lib.POST, f"{api_url}/getExcelFile", body=payload)
        target = tmp_path / "out" / "report.xls"

        result = client.download_file("/getExcelFile", str(target), {"mbid": "book-1"})

        assert result == {"filePath": str(target), "fileSize": len(payload)}
        assert target.read_bytes() == payload
        assert form(mock_responses.calls[0]) == {"mbid": "book-1"}

    def test_download_file_get(self, client, api_url, mock_responses, tmp_path):
        mock_responses.add(responses_lib.GET, f"{api_url}/money.sqlite", body=b"SQLite format 3\x00")
        target = tmp_path / "backup.sqlite"

        result = client.download_file_get("/money.sqlite", str(target))

        assert result["fileSize"] == 16
        assert target.read_bytes().startswith(b"SQLite")

    def test_download_failure_leaves_no_file(self, client, api_url, mock_responses, tmp_path):
        mock_responses.add(responses_lib.GET, f"{api_url}/money.sqlite", status=404)
        target = tmp_path / "backup.sqlite"

        with pytest.raises(APIError):
            client.download_file_get("/money.sqlite", str(target))

        assert not target.exists()

    def test_download_unwritable_target(self, client, tmp_path):
        """Нельзя создать директорию -> FileError до запроса."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")

        with pytest.raises(FileError) as exc_info:
            client.download_file_get("/money.sqlite", str(blocker / "backup.sqlite"))

        assert exc_info.value.details["operation"] == "write"

    def test_download_body_failure_retried(
        self, client, api_url, mock_responses, tmp_path, monkeypatch, sleeps
    ):
        """Обрыв на середине тела: повтор запроса, файл переписан с нуля."""
        original = requests.Response.iter_content
        calls = []

        def flaky_iter_content(response, *args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                yield b"partial"
                raise requests.exceptions.ConnectionError("Read timed out.")
            yield from original(response, *args, **kwargs)

        monkeypatch.setattr(requests.Response, "iter_content", flaky_iter_content)
        mock_responses.add(responses_lib.GET, f"{api_url}/money.sqlite", body=b"SQLite format 3\x00")
        target = tmp_path / "backup.sqlite"

        result = client.download_file_get("/money.sqlite", str(target))

        assert result["fileSize"] == 16
        assert target.read_bytes() == b"SQLite format 3\x00"
        assert len(mock_responses.calls) == 2
        assert sleeps == [1.0]

    def test_download_body_failure_exhausts_budget(
        self, client, api_url, mock_responses, tmp_path, monkeypatch
    ):
        def broken_iter_content(response, *args, **kwargs):
            yield b"partial"
            raise requests.exceptions.ChunkedEncodingError("Connection broken")

        monkeypatch.setattr(requests.Response, "iter_content", broken_iter_content)
        mock_responses.add(responses_lib.GET, f"{api_url}/money.sqlite", body=b"data")
        target = tmp_path / "backup.sqlite"

        with pytest.raises(NetworkError) as exc_info:
            client.download_file_get("/money.sqlite", str(target))

        assert exc_info.value.retryable is True
        assert len(mock_responses.calls) == 4
        assert not target.exists()

    def test_upload_file(self, client, api_url, mock_responses, tmp_path):
        """Multipart upload поля file."""
        source = tmp_path / "money.sqlite"
        source.write_bytes(b"SQLite format 3\x00")
        mock_responses.add(responses_lib.POST, f"{api_url}/uploadSqlFile", json={"success": True})

        assert client.upload_file("/uploadSqlFile", str(source)) == {"success": True}

        request = mock_responses.calls[0].request
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert b'name="file"; filename="money.sqlite"' in request.body

    def test_upload_retry_resends_file(self, client, api_url, mock_responses, tmp_path):
        source = tmp_path / "money.sqlite"
        source.write_bytes(b"DATA")
        mock_responses.add(responses_lib.POST, f"{api_url}/uploadSqlFile", status=502)
        mock_responses.add(responses_lib.POST, f"{api_url}/uploadSqlFile", json={"success": True})

        client.upload_file("/uploadSqlFile", str(source))

        assert b"DATA" in mock_responses.calls[1].request.body

    def test_upload_missing_file(self, client, tmp_path, mock_responses):
        """Нет файла -> FileError, запрос не отправляется."""
        with pytest.raises(FileError) as exc_info:
            client.upload_file("/uploadSqlFile", str(tmp_path / "missing.sqlite"))

        assert "File not found" in exc_info.value.message
        assert len(mock_responses.calls) == 0


class TestLifecycle:

    def test_context_manager(self, client_config):
        with MoneyManagerClient(client_config) as client:
            assert client.config is client_config

    def test_with_logging(self, client_config, logging_config, api_url, mock_responses):
        """Клиент с LoggingConfig создаёт свой логгер и закрывает его."""
        config = ClientConfig(
            server=client_config.server,
            retry=client_config.retry,
            session=client_config.session,
            logging=logging_config,
        )
        mock_responses.add(responses_lib.GET, f"{api_url}/getCardData", json=[])

        client = MoneyManagerClient(config)
        assert client.get("/getCardData") == []
        client.close()
        client.close()
