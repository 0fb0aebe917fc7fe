import logging
from dataclasses import dataclass, field
from time import sleep

import requests

from tookan_api.batching import DateBatch
from tookan_api.client import Client
from tookan_api.config import SyncConfig
from tookan_api.constants import JobType
from tookan_api.type_defs import RawTask

logger = logging.getLogger(__name__)


@dataclass
class JobTypeFetch:
    job_type: JobType
    records: list[RawTask] = field(default_factory=list)
    offsets: list[int] = field(default_factory=list)
    error: str | None = None

    @property
    def pages(self) -> int:
        return len(self.offsets)


@dataclass
class WindowFetch:
    batch: DateBatch
    records: list[RawTask] = field(default_factory=list)
    pages: int = 0
    failed_categories: list[JobType] = field(default_factory=list)


class TaskPager:
    def __init__(self, client: Client, config: SyncConfig):
        self.client = client
        self.config = config

    def fetch_window(self, batch: DateBatch) -> WindowFetch:
        result = WindowFetch(batch=batch)
        for job_type in self.config.job_types:
            fetched = self.fetch_job_type(batch, JobType(job_type))
            result.records.extend(fetched.records)
            result.pages += fetched.pages
            if fetched.error is not None:
                result.failed_categories.append(fetched.job_type)
        return result

    def fetch_job_type(self, batch: DateBatch, job_type: JobType) -> JobTypeFetch:
        page_size = self.config.page_size
        label = job_type.name.title()
        fetched = JobTypeFetch(job_type=job_type)
        offset = 0
        while True:
            try:
                rows = self.client.fetch_tasks_page(
                    batch.api_start, batch.api_end, int(job_type), offset, page_size
                )
            except (requests.RequestException, PermissionError, ValueError) as exc:
                logger.error("Error fetching %s tasks for %s (offset %s): %s", label, batch, offset, exc)
                fetched.error = str(exc)
                break

            fetched.offsets.append(offset)
            fetched.records.extend(rows)
            # Upstream miscounts returned rows, so the offset always moves a full page.
            offset += page_size
            sleep(self.config.request_delay_seconds)

            if len(rows) < page_size:
                break
            logger.debug("[%s] Page %s: %s tasks, continuing...", label, fetched.pages, len(rows))
            if fetched.pages >= self.config.max_pages_per_job_type:
                logger.warning(
                    "[%s] Hit %s page limit for %s, moving on...",
                    label,
                    self.config.max_pages_per_job_type,
                    batch,
                )
                break

        if fetched.pages > 1:
            logger.info("[%s] Total: %s tasks in %s pages for %s", label, len(fetched.records), fetched.pages, batch)
        return fetched
