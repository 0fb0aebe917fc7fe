from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable

from tookan_api.config.base import AppSettings
from tookan_api.constants import ALL_TASK_STATUSES, JobType
from tookan_api.exceptions import ConfigurationError
from tookan_api.retry import Backoff, RetryPolicy, is_transient_fetch_error


@dataclass(frozen=True)
class SyncConfig:
    api_key: str
    base_url: str = "https://api.tookanapp.com/v2"
    request_timeout_seconds: float = 45.0
    detail_timeout_seconds: float = 30.0
    retention_months: int = 6
    days_per_batch: int = 1
    page_size: int = 200
    max_pages_per_job_type: int = 50
    request_delay_seconds: float = 0.15
    batch_delay_seconds: float = 0.5
    detail_batch_size: int = 50
    detail_delay_seconds: float = 0.2
    upsert_chunk_size: int = 50
    chunk_delay_seconds: float = 0.1
    store_max_attempts: int = 3
    store_backoff_seconds: float = 1.0
    lease_ttl_seconds: int = 3600
    incremental_overlap_days: int = 1
    job_types: tuple[JobType, ...] = tuple(JobType)
    task_statuses: tuple[int, ...] = ALL_TASK_STATUSES
    fetch_retry: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(
            max_attempts=5, backoff_seconds=1.0, is_transient=is_transient_fetch_error
        )
    )

    @classmethod
    def from_settings(cls, app_settings: AppSettings | None = None) -> SyncConfig:
        if app_settings is None:
            from tookan_api.config.initialize import settings as app_settings

        tookan = app_settings.tookan
        sync = app_settings.sync
        return cls(
            api_key=os.getenv("TOOKAN_API_KEY") or tookan.api_key or "",
            base_url=(os.getenv("TOOKAN_BASE_URL") or tookan.base_url).rstrip("/"),
            request_timeout_seconds=float(tookan.request_timeout_seconds),
            detail_timeout_seconds=float(tookan.detail_timeout_seconds),
            retention_months=int(sync.retention_months),
            days_per_batch=int(sync.days_per_batch),
            page_size=int(sync.page_size),
            max_pages_per_job_type=int(sync.max_pages_per_job_type),
            request_delay_seconds=float(sync.request_delay_seconds),
            batch_delay_seconds=float(sync.batch_delay_seconds),
            detail_batch_size=int(sync.detail_batch_size),
            detail_delay_seconds=float(sync.detail_delay_seconds),
            upsert_chunk_size=int(sync.upsert_chunk_size),
            chunk_delay_seconds=float(sync.chunk_delay_seconds),
            store_max_attempts=int(sync.store_max_attempts),
            store_backoff_seconds=float(sync.store_backoff_seconds),
            lease_ttl_seconds=int(sync.lease_ttl_seconds),
            incremental_overlap_days=int(sync.incremental_overlap_days),
            fetch_retry=RetryPolicy(
                max_attempts=int(sync.fetch_max_attempts),
                backoff_seconds=float(sync.fetch_backoff_seconds),
                is_transient=is_transient_fetch_error,
            ),
        )

    @property
    def status_filter(self) -> str:
        return ",".join(str(status) for status in self.task_statuses)

    def store_retry(self, is_transient: Callable[[BaseException], bool]) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.store_max_attempts,
            backoff_seconds=self.store_backoff_seconds,
            is_transient=is_transient,
            backoff=Backoff.LINEAR,
        )

    def require_credentials(self) -> None:
        if not self.api_key:
            raise ConfigurationError(
                "TOOKAN_API_KEY must be provided via environment or the [tookan] config section."
            )
        if not self.base_url:
            raise ConfigurationError("Tookan base_url must be provided.")
