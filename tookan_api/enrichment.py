import logging
import math
from dataclasses import dataclass
from time import sleep
from typing import Iterable

import requests

from tookan_api.client import Client
from tookan_api.config import SyncConfig
from tookan_api.constants import COD_FIELD_LABELS
from tookan_api.type_defs import JsonValue, RawTask

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobDetail:
    tags: str | None = None
    cod_amount: float | None = None


def _label_key(value: object) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().replace(" ", "_").upper()


_COD_LABEL_KEYS = frozenset(_label_key(label) for label in COD_FIELD_LABELS)


def parse_amount(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            amount = float(value)
        elif isinstance(value, str):
            stripped = value.strip().replace(",", "")
            if not stripped:
                return None
            amount = float(stripped)
        else:
            return None
    except (ValueError, OverflowError):
        return None
    # NaN and infinities cannot be stored in the amount columns.
    return amount if math.isfinite(amount) else None


def extract_cod_amount(job: RawTask, labels: frozenset[str] = _COD_LABEL_KEYS) -> float | None:
    custom_fields = job.get("custom_field")
    if not isinstance(custom_fields, list):
        return None
    for custom_field in custom_fields:
        if not isinstance(custom_field, dict):
            continue
        if _label_key(custom_field.get("label")) in labels or _label_key(custom_field.get("display_name")) in labels:
            return parse_amount(custom_field.get("data"))
    return None


def extract_tags(job: RawTask) -> str | None:
    tags: JsonValue = job.get("tags")
    if isinstance(tags, list):
        tags = ",".join(str(tag) for tag in tags if tag not in (None, ""))
    if isinstance(tags, str) and tags.strip():
        return tags.strip()
    return None


def _job_id(job: RawTask) -> int | None:
    raw = job.get("job_id")
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return None


class DetailEnricher:
    def __init__(self, client: Client, config: SyncConfig):
        self.client = client
        self.config = config
        self.failed_requests = 0

    def fetch_details(self, job_ids: Iterable[int]) -> dict[int, JobDetail]:
        unique_ids = list(dict.fromkeys(job_ids))
        details: dict[int, JobDetail] = {}
        size = self.config.detail_batch_size
        for index in range(0, len(unique_ids), size):
            sub_batch = unique_ids[index : index + size]
            try:
                jobs = self.client.fetch_job_details(sub_batch)
            except (requests.RequestException, PermissionError, ValueError) as exc:
                self.failed_requests += 1
                logger.error("Error fetching job details for %s jobs: %s", len(sub_batch), exc)
                continue
            finally:
                sleep(self.config.detail_delay_seconds)

            for job in jobs:
                job_id = _job_id(job)
                if job_id is None:
                    continue
                details[job_id] = JobDetail(tags=extract_tags(job), cod_amount=extract_cod_amount(job))
        return details
