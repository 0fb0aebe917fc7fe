from __future__ import annotations

import pytest
import requests

from tookan_api import retry as retry_module
from tookan_api.exceptions import TransientStatusError
from tookan_api.retry import Backoff, RetryPolicy, call_with_retry, is_transient_fetch_error


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    recorded: list[float] = []
    monkeypatch.setattr(retry_module, "sleep", recorded.append)
    return recorded


def _flaky(failures: int, error: Exception):
    calls = {"count": 0}

    def operation() -> str:
        calls["count"] += 1
        if calls["count"] <= failures:
            raise error
        return "ok"

    return operation, calls


def test_success_after_max_minus_one_transient_failures(sleeps: list[float]) -> None:
    policy = RetryPolicy(max_attempts=5, backoff_seconds=1.0, is_transient=is_transient_fetch_error)
    operation, calls = _flaky(4, requests.ConnectionError("reset"))

    assert call_with_retry(policy, operation) == "ok"
    assert calls["count"] == 5
    assert sleeps == [1.0, 2.0, 4.0, 8.0]


def test_final_error_propagates_after_max_attempts(sleeps: list[float]) -> None:
    policy = RetryPolicy(max_attempts=5, backoff_seconds=1.0, is_transient=is_transient_fetch_error)
    operation, calls = _flaky(5, TransientStatusError("429"))

    with pytest.raises(TransientStatusError):
        call_with_retry(policy, operation)

    assert calls["count"] == 5
    assert len(sleeps) == 4


def test_non_transient_error_is_not_retried(sleeps: list[float]) -> None:
    policy = RetryPolicy(max_attempts=5, backoff_seconds=1.0, is_transient=is_transient_fetch_error)
    operation, calls = _flaky(1, PermissionError("401"))

    with pytest.raises(PermissionError):
        call_with_retry(policy, operation)

    assert calls["count"] == 1
    assert sleeps == []


def test_linear_backoff_grows_by_base_delay(sleeps: list[float]) -> None:
    policy = RetryPolicy(
        max_attempts=3,
        backoff_seconds=1.0,
        is_transient=lambda error: isinstance(error, TimeoutError),
        backoff=Backoff.LINEAR,
    )
    operation, calls = _flaky(2, TimeoutError("locked"))

    assert call_with_retry(policy, operation) == "ok"
    assert calls["count"] == 3
    assert sleeps == [1.0, 2.0]


def test_transient_fetch_classifier() -> None:
    assert is_transient_fetch_error(requests.Timeout())
    assert is_transient_fetch_error(requests.ConnectionError())
    assert is_transient_fetch_error(TransientStatusError("503"))
    assert not is_transient_fetch_error(requests.RequestException("404"))
    assert not is_transient_fetch_error(ValueError("bad json"))
