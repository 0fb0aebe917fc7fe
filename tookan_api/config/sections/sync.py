from tookan_api.config.serializable import Serializable


class Sync(Serializable):
    # Tookan only retains six months of tasks and mis-paginates wide windows.
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
    fetch_max_attempts: int = 5
    fetch_backoff_seconds: float = 1.0
    store_max_attempts: int = 3
    store_backoff_seconds: float = 1.0
    lease_ttl_seconds: int = 3600
    incremental_overlap_days: int = 1
