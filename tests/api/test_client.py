from __future__ import annotations

from http import HTTPStatus
from types import SimpleNamespace

import pytest
import requests

from tookan_api import retry as retry_module
from tookan_api.client import Client, _preview_response_body
from tookan_api.config import SyncConfig
from tookan_api.exceptions import ConfigurationError, MalformedResponseError, TransientStatusError


def _make_client() -> Client:
    return Client(SyncConfig(api_key="key", base_url="https://tookan.test/v2"))


@pytest.fixture(autouse=True)
def _no_backoff(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(retry_module, "sleep", lambda _seconds: None)


def _json_response(payload: object) -> SimpleNamespace:
    return SimpleNamespace(status_code=HTTPStatus.OK, text=str(payload), json=lambda: payload)


def test_client_requires_api_key() -> None:
    with pytest.raises(ConfigurationError):
        Client(SyncConfig(api_key=""))


def test_request_retries_429_and_returns_success(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _make_client()
    attempts = {"count": 0}

    def fake_request(_self: requests.Session, method: str, url: str, *_args, **_kwargs):
        assert method == "POST"
        assert url.endswith("/get_all_tasks")
        attempts["count"] += 1
        status_code = HTTPStatus.OK if attempts["count"] >= 3 else HTTPStatus.TOO_MANY_REQUESTS
        return SimpleNamespace(status_code=status_code, text="")

    monkeypatch.setattr(requests.Session, "request", fake_request)

    response = client.request("POST", f"{client.base_url}/get_all_tasks")

    assert response.status_code == HTTPStatus.OK
    assert attempts["count"] == 3


def test_request_gives_up_after_max_attempts(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _make_client()
    attempts = {"count": 0}

    def fake_request(*_args, **_kwargs):
        attempts["count"] += 1
        return SimpleNamespace(status_code=HTTPStatus.SERVICE_UNAVAILABLE, text="down")

    monkeypatch.setattr(requests.Session, "request", fake_request)

    with pytest.raises(TransientStatusError, match="server error 503"):
        client.request("POST", f"{client.base_url}/get_all_tasks")

    assert attempts["count"] == client.config.fetch_retry.max_attempts


def test_request_does_not_retry_authorization_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _make_client()
    attempts = {"count": 0}

    def fake_request(*_args, **_kwargs):
        attempts["count"] += 1
        return SimpleNamespace(status_code=HTTPStatus.UNAUTHORIZED, text="bad key")

    monkeypatch.setattr(requests.Session, "request", fake_request)

    with pytest.raises(PermissionError):
        client.request("POST", f"{client.base_url}/get_all_tasks")

    assert attempts["count"] == 1


def test_request_raises_for_unexpected_status(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _make_client()
    monkeypatch.setattr(
        requests.Session,
        "request",
        lambda *_args, **_kwargs: SimpleNamespace(status_code=HTTPStatus.NOT_FOUND, text="boom"),
    )

    with pytest.raises(requests.RequestException, match="unexpected status code"):
        client.request("POST", f"{client.base_url}/get_all_tasks")


def test_fetch_tasks_page_posts_pagination_payload() -> None:
    client = _make_client()
    calls: list[dict] = []

    def fake_post(url: str, json: dict, timeout: float):
        calls.append({"url": url, "json": json, "timeout": timeout})
        return _json_response({"status": 200, "message": "Successful", "data": [{"job_id": 1}, "junk"]})

    client.post = fake_post  # type: ignore[method-assign]

    rows = client.fetch_tasks_page("2025-01-01", "2025-01-01", 1, 200, 200)

    assert rows == [{"job_id": 1}]
    assert calls[0]["url"] == "https://tookan.test/v2/get_all_tasks"
    body = calls[0]["json"]
    assert body["api_key"] == "key"
    assert body["job_type"] == 1
    assert body["job_status"] == "0,1,2,3,4,5,6,7,8,9"
    assert body["off_set"] == 200
    assert body["limit"] == 200
    assert body["is_pagination"] == 1
    assert body["custom_fields"] == 1
    assert calls[0]["timeout"] == client.config.request_timeout_seconds


def test_no_data_message_yields_empty_rows(caplog: pytest.LogCaptureFixture) -> None:
    client = _make_client()
    client.post = lambda *_args, **_kwargs: _json_response(  # type: ignore[method-assign]
        {"status": 100, "message": "No task found", "data": []}
    )

    with caplog.at_level("WARNING"):
        rows = client.fetch_tasks_page("2025-01-01", "2025-01-01", 0, 0, 200)

    assert rows == []
    assert caplog.records == []


def test_other_business_failure_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    client = _make_client()
    client.post = lambda *_args, **_kwargs: _json_response(  # type: ignore[method-assign]
        {"status": 101, "message": "Invalid date range"}
    )

    with caplog.at_level("WARNING"):
        rows = client.fetch_tasks_page("2025-01-01", "2025-01-01", 0, 0, 200)

    assert rows == []
    assert "Invalid date range" in caplog.text


def test_fetch_job_details_wraps_single_object() -> None:
    client = _make_client()
    calls: list[dict] = []

    def fake_post(url: str, json: dict, timeout: float):
        calls.append(json)
        return _json_response({"status": 1, "data": {"job_id": 7, "tags": "vip"}})

    client.post = fake_post  # type: ignore[method-assign]

    assert client.fetch_job_details([7]) == [{"job_id": 7, "tags": "vip"}]
    assert calls[0]["job_ids"] == [7]
    assert calls[0]["job_additional_info"] == 1
    assert client.fetch_job_details([]) == []
    assert len(calls) == 1


def test_post_api_rejects_unparseable_and_non_object_bodies() -> None:
    client = _make_client()

    def broken_json():
        raise ValueError("no json")

    client.post = lambda *_args, **_kwargs: SimpleNamespace(  # type: ignore[method-assign]
        status_code=HTTPStatus.OK, text="<html>", json=broken_json
    )
    with pytest.raises(MalformedResponseError, match="Failed to parse"):
        client.post_api("get_all_tasks", {}, timeout=1)

    client.post = lambda *_args, **_kwargs: _json_response([1, 2])  # type: ignore[method-assign]
    with pytest.raises(MalformedResponseError, match="Unexpected payload type"):
        client.post_api("get_all_tasks", {}, timeout=1)


def test_preview_response_body_truncates_long_text() -> None:
    assert _preview_response_body("short") == "short"
    preview = _preview_response_body("x" * 250)
    assert preview == "x" * 200 + "..."
