from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

API_DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True, order=True)
class DateBatch:
    start_date: date
    end_date: date

    @property
    def api_start(self) -> str:
        return format_api_date(self.start_date)

    @property
    def api_end(self) -> str:
        return format_api_date(self.end_date)

    def __str__(self) -> str:
        return f"{self.api_start}..{self.api_end}"


def format_api_date(value: date) -> str:
    return value.strftime(API_DATE_FORMAT)


def retention_floor(today: date, months: int) -> date:
    """Oldest date the upstream still serves."""
    return today - relativedelta(months=months)


def plan_date_batches(
    start: date | None = None,
    end: date | None = None,
    *,
    days_per_batch: int = 1,
    retention_months: int = 6,
    today: date | None = None,
) -> list[DateBatch]:
    if days_per_batch < 1:
        raise ValueError("days_per_batch must be at least 1")

    today = today or date.today()
    floor = retention_floor(today, retention_months)
    start_date = max(start or floor, floor)
    end_date = end or today
    if start_date > end_date:
        return []

    width = timedelta(days=days_per_batch)
    batches: list[DateBatch] = []
    window_start = start_date
    while window_start <= end_date:
        window_end = min(window_start + width - timedelta(days=1), end_date)
        batches.append(DateBatch(window_start, window_end))
        window_start = window_end + timedelta(days=1)
    return batches
