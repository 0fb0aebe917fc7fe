from __future__ import annotations

from datetime import datetime, timezone

import pytest
from django.db import DataError, OperationalError

from tookan_api import retry as retry_module
from tookan_api.config import SyncConfig
from tookan_api.enrichment import JobDetail
from tookan_api.transform import transform_task
from tookan_data import upsert as upsert_module
from tookan_data.models import Task
from tookan_data.upsert import BulkUpserter, is_transient_storage_error

SYNCED_AT = datetime(2025, 3, 10, 12, tzinfo=timezone.utc)
COMPLETED_AT = datetime(2025, 3, 1, 10, 15, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _no_delay(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(upsert_module, "sleep", lambda _seconds: None)
    monkeypatch.setattr(retry_module, "sleep", lambda _seconds: None)


def _record(job_id: int, **overrides: object) -> dict:
    raw: dict = {"job_id": job_id, "job_status": 2, "job_type": 1, "order_id": f"ORD-{job_id}"}
    raw.update(overrides)
    return transform_task(raw, synced_at=SYNCED_AT)


def _upserter(**overrides: object) -> BulkUpserter:
    return BulkUpserter(SyncConfig(api_key="key", **overrides))  # type: ignore[arg-type]


@pytest.mark.django_db
def test_upsert_is_idempotent() -> None:
    records = [_record(job_id) for job_id in range(1, 6)]
    upserter = _upserter(upsert_chunk_size=2)

    first = upserter.upsert(records)
    second = upserter.upsert(records)

    assert (first.inserted, first.errors) == (5, 0)
    assert (second.inserted, second.errors) == (5, 0)
    assert Task.objects.count() == 5
    assert Task.objects.get(job_id=3).order_id == "ORD-3"


@pytest.mark.django_db
def test_cached_timestamp_survives_payload_without_it() -> None:
    upserter = _upserter()
    upserter.upsert([_record(10, completed_datetime="2025-03-01 10:15:00")])

    result = upserter.upsert(
        [
            _record(10, completed_datetime="0000-00-00 00:00:00", order_id="ORD-NEW", job_status=3),
            _record(11),
        ]
    )

    assert result.errors == 0
    task = Task.objects.get(job_id=10)
    assert task.completed_datetime == COMPLETED_AT
    assert task.order_id == "ORD-NEW"
    assert task.status == 3
    assert Task.objects.get(job_id=11).completed_datetime is None


@pytest.mark.django_db
def test_upsert_updates_changed_fields_and_keeps_created_at() -> None:
    upserter = _upserter()
    upserter.upsert([_record(20)])
    created_at = Task.objects.get(job_id=20).created_at

    upserter.upsert([_record(20, order_id="ORD-CHANGED")])

    task = Task.objects.get(job_id=20)
    assert task.order_id == "ORD-CHANGED"
    assert task.created_at == created_at
    assert task.updated_at >= created_at


@pytest.mark.django_db
def test_transient_storage_error_is_retried(monkeypatch: pytest.MonkeyPatch) -> None:
    upserter = _upserter()
    original = BulkUpserter._write_chunk
    attempts = {"count": 0}

    def flaky_write(chunk: list) -> None:
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise OperationalError("database is locked")
        original(chunk)

    monkeypatch.setattr(upserter, "_write_chunk", flaky_write)

    result = upserter.upsert([_record(30)])

    assert attempts["count"] == 3
    assert (result.inserted, result.errors) == (1, 0)
    assert Task.objects.filter(job_id=30).exists()


@pytest.mark.django_db
def test_non_transient_error_fails_whole_chunk_and_continues(monkeypatch: pytest.MonkeyPatch) -> None:
    upserter = _upserter(upsert_chunk_size=2)
    original = BulkUpserter._write_chunk
    attempts: list[list[int]] = []

    def failing_first_chunk(chunk: list) -> None:
        attempts.append([record["job_id"] for record in chunk])
        if chunk[0]["job_id"] == 40:
            raise DataError("value too long")
        original(chunk)

    monkeypatch.setattr(upserter, "_write_chunk", failing_first_chunk)

    result = upserter.upsert([_record(40), _record(41), _record(42)])

    assert attempts == [[40, 41], [42]]
    assert (result.inserted, result.errors) == (1, 2)
    assert list(Task.objects.values_list("job_id", flat=True)) == [42]


def test_storage_error_classifier() -> None:
    assert is_transient_storage_error(OperationalError())
    assert not is_transient_storage_error(DataError())


@pytest.mark.django_db
def test_update_detail_columns_touches_only_tags_and_cod() -> None:
    upserter = _upserter()
    upserter.upsert([_record(50, tags="old", completed_datetime="2025-03-01 10:15:00", cod=7)])

    updated, errors = upserter.update_detail_columns(
        {
            50: JobDetail(tags="vip", cod_amount=None),
            999: JobDetail(tags="ghost", cod_amount=1.0),
        }
    )

    assert (updated, errors) == (1, 0)
    task = Task.objects.get(job_id=50)
    assert task.tags == "vip"
    assert task.cod_amount == 7.0
    assert task.completed_datetime == COMPLETED_AT
    assert not Task.objects.filter(job_id=999).exists()


@pytest.mark.django_db
def test_update_detail_columns_cod_only() -> None:
    upserter = _upserter()
    upserter.upsert([_record(60, tags="keep")])

    updated, _errors = upserter.update_detail_columns({60: JobDetail(tags=None, cod_amount=12.5)}, tags=False)

    task = Task.objects.get(job_id=60)
    assert updated == 1
    assert task.cod_amount == 12.5
    assert task.tags == "keep"
