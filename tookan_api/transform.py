"""Map raw Tookan task payloads onto the cached ``Task`` row shape.

Tookan names the same value differently depending on endpoint, template and
job type, so each canonical column resolves through ``FIELD_SOURCES``: the
first candidate holding a non-empty value wins.

Lifecycle timestamps are only emitted when they carry a real value. A missing
key, rather than ``None``, keeps a later upsert from clearing a timestamp that
a webhook or an earlier sync already recorded.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from tookan_api.constants import JobType
from tookan_api.enrichment import JobDetail, extract_tags, parse_amount
from tookan_api.type_defs import JsonValue, RawTask, TaskRecord
from tookan_api.utils import coerce_datetime, ensure_aware, is_placeholder_datetime

logger = logging.getLogger(__name__)

SOURCE_API_SYNC = "api_sync"

FIELD_SOURCES: dict[str, tuple[str, ...]] = {
    "order_id": ("order_id",),
    "status": ("job_status", "status"),
    "job_type": ("job_type",),
    "customer_name": ("customer_username", "job_delivery_name"),
    "customer_phone": ("customer_phone", "job_delivery_phone"),
    "customer_email": ("customer_email", "job_delivery_email"),
    "delivery_name": ("job_delivery_name", "customer_username"),
    "delivery_phone": ("job_delivery_phone", "customer_phone"),
    "delivery_address": ("job_address", "customer_address"),
    "pickup_name": ("job_pickup_name",),
    "pickup_phone": ("job_pickup_phone",),
    "pickup_address": ("job_pickup_address",),
    "total_amount": ("total_amount", "order_payment", "cod"),
    "cod_amount": ("cod_amount", "cod", "total_amount"),
    "cod_collected": ("cod_collected",),
    "order_fees": ("order_fees",),
    "fleet_id": ("fleet_id",),
    "fleet_name": ("fleet_name",),
    "vendor_id": ("customer_id", "vendor_id"),
    "template_fields": ("template_data", "custom_field"),
    "notes": ("job_description",),
    "tags": ("tags",),
    "creation_datetime": ("creation_datetime", "created_at", "job_time", "creation_date"),
    "started_datetime": ("started_datetime", "job_started_datetime", "arrival_datetime"),
    "acknowledged_datetime": ("acknowledged_datetime", "job_acknowledged_datetime"),
    "completed_datetime": (
        "completed_datetime",
        "job_completed_datetime",
        "completed_on",
        "completed_at",
        "job_completion_time",
    ),
}

TIMESTAMP_FIELDS = (
    "creation_datetime",
    "started_datetime",
    "acknowledged_datetime",
    "completed_datetime",
)

COLUMN_LIMITS: dict[str, int] = {
    "order_id": 100,
    "customer_name": 255,
    "customer_phone": 100,
    "customer_email": 255,
    "delivery_name": 255,
    "delivery_phone": 100,
    "pickup_name": 255,
    "pickup_phone": 100,
    "fleet_name": 255,
}


def _is_empty(value: object) -> bool:
    if isinstance(value, str):
        return not value.strip() or is_placeholder_datetime(value)
    return value is None or value == [] or value == {}


def resolve_field(raw: RawTask, field_name: str) -> JsonValue:
    for source_name in FIELD_SOURCES[field_name]:
        value = raw.get(source_name)
        if not _is_empty(value):
            return value
    return None


def truncate(value: object, max_length: int) -> str | None:
    if _is_empty(value):
        return None
    text = str(value)
    return text[:max_length] if len(text) > max_length else text


def to_text(value: object) -> str | None:
    return None if _is_empty(value) else str(value)


def to_int(value: object, default: int | None = 0) -> int | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if isinstance(value, float):
        # "1e999" and JSON Infinity/NaN parse but have no integer value.
        return int(value) if math.isfinite(value) else default
    return default


def to_float(value: object) -> float:
    parsed = parse_amount(value)
    return 0.0 if parsed is None else parsed


def to_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


def to_timestamp(value: object) -> datetime | None:
    parsed = coerce_datetime(value)
    return ensure_aware(parsed) if parsed is not None else None


def parse_job_id(value: object) -> int | None:
    job_id = to_int(value, default=None)
    if job_id is None or job_id <= 0:
        return None
    return job_id


def transform_task(
    raw: RawTask, *, detail: JobDetail | None = None, synced_at: datetime | None = None
) -> TaskRecord:
    job_id = parse_job_id(raw.get("job_id"))
    if job_id is None:
        raise ValueError(f"Task payload has no usable job_id: {raw.get('job_id')!r}")

    record: TaskRecord = {
        "job_id": job_id,
        "status": to_int(resolve_field(raw, "status")),
        "job_type": to_int(resolve_field(raw, "job_type"), default=int(JobType.DELIVERY)),
        "delivery_address": to_text(resolve_field(raw, "delivery_address")),
        "pickup_address": to_text(resolve_field(raw, "pickup_address")),
        "total_amount": to_float(resolve_field(raw, "total_amount")),
        "cod_amount": to_float(resolve_field(raw, "cod_amount")),
        "cod_collected": to_bool(resolve_field(raw, "cod_collected")),
        "order_fees": to_float(resolve_field(raw, "order_fees")),
        "fleet_id": to_int(resolve_field(raw, "fleet_id"), default=None) or None,
        "vendor_id": to_int(resolve_field(raw, "vendor_id"), default=None) or None,
        "template_fields": resolve_field(raw, "template_fields") or {},
        "notes": to_text(resolve_field(raw, "notes")),
        "tags": extract_tags(raw),
        "source": SOURCE_API_SYNC,
        "last_synced_at": synced_at or datetime.now(tz=timezone.utc),
        "raw_data": raw,
    }
    for field_name, max_length in COLUMN_LIMITS.items():
        record[field_name] = truncate(resolve_field(raw, field_name), max_length)

    if detail is not None:
        if detail.cod_amount is not None:
            record["cod_amount"] = detail.cod_amount
        if detail.tags is not None:
            record["tags"] = detail.tags

    for field_name in TIMESTAMP_FIELDS:
        timestamp = to_timestamp(resolve_field(raw, field_name))
        if timestamp is not None:
            record[field_name] = timestamp

    return record


def transform_tasks(
    raw_tasks: list[RawTask],
    details: dict[int, JobDetail] | None = None,
    synced_at: datetime | None = None,
) -> tuple[list[TaskRecord], int]:
    """Transform a window's payloads, de-duplicated on ``job_id``.

    Returns the records and the number of payloads skipped as unusable.
    """

    details = details or {}
    synced_at = synced_at or datetime.now(tz=timezone.utc)
    records: dict[int, TaskRecord] = {}
    skipped = 0
    for raw in raw_tasks:
        try:
            job_id = parse_job_id(raw.get("job_id"))
            record = transform_task(raw, detail=details.get(job_id) if job_id else None, synced_at=synced_at)
        except (TypeError, ValueError, OverflowError) as exc:
            skipped += 1
            logger.warning("Skipping task payload: %s", exc)
            continue
        records[record["job_id"]] = record
    return list(records.values()), skipped
