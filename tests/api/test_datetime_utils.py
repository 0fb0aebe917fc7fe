from __future__ import annotations

from datetime import date, datetime, timezone

from tookan_api.utils import coerce_datetime, ensure_aware, is_placeholder_datetime, parse_datetime


def test_parse_datetime_handles_inconsistent_formats() -> None:
    assert parse_datetime("2026-01-01T00:00:00Z") == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert parse_datetime("2026-01-01T00:00:00+0000") == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert parse_datetime("2026-01-01 00:00:00") == datetime(2026, 1, 1)
    assert parse_datetime("2026-01-01T00:00:00.123456789Z") == datetime(
        2026, 1, 1, microsecond=123456, tzinfo=timezone.utc
    )
    assert parse_datetime("not-a-datetime") is None
    assert parse_datetime("") is None


def test_placeholder_datetimes_are_treated_as_unset() -> None:
    assert is_placeholder_datetime("0000-00-00 00:00:00")
    assert is_placeholder_datetime(" 0000-00-00")
    assert not is_placeholder_datetime("2025-01-01 00:00:00")
    assert parse_datetime("0000-00-00 00:00:00") is None


def test_coerce_datetime_supports_date_strings_and_epoch_values() -> None:
    assert coerce_datetime(date(2026, 1, 1)) == datetime(2026, 1, 1)
    assert coerce_datetime(1_704_067_200) == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert coerce_datetime(1_704_067_200_000) == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert coerce_datetime(0) is None
    assert coerce_datetime(True) is None
    assert coerce_datetime(object()) is None


def test_ensure_aware_assumes_utc_for_naive_values() -> None:
    assert ensure_aware(datetime(2025, 3, 1, 8)) == datetime(2025, 3, 1, 8, tzinfo=timezone.utc)
    aware = datetime(2025, 3, 1, 8, tzinfo=timezone.utc)
    assert ensure_aware(aware) is aware


def test_parse_datetime_accepts_display_formats() -> None:
    assert parse_datetime("01/05/2025 02:30 pm") == datetime(2025, 1, 5, 14, 30)
    assert parse_datetime("01/05/2025 14:30") == datetime(2025, 1, 5, 14, 30)
    assert parse_datetime("01/05/2025") == datetime(2025, 1, 5)
