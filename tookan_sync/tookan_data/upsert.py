import logging
from dataclasses import dataclass
from time import sleep
from typing import Iterable, Mapping

from django.db import DatabaseError, InterfaceError, OperationalError, connection, transaction
from django.utils.timezone import now

from tookan_api.config import SyncConfig
from tookan_api.enrichment import JobDetail
from tookan_api.retry import call_with_retry
from tookan_api.type_defs import TaskRecord
from tookan_data.models import Task

logger = logging.getLogger(__name__)

CONFLICT_KEY = "job_id"
NEVER_UPDATED = frozenset({CONFLICT_KEY, "id", "created_at"})


def is_transient_storage_error(error: BaseException) -> bool:
    return isinstance(error, (OperationalError, InterfaceError))


@dataclass
class UpsertResult:
    inserted: int = 0
    errors: int = 0


def _group_by_columns(records: Iterable[TaskRecord]) -> dict[frozenset[str], list[TaskRecord]]:
    groups: dict[frozenset[str], list[TaskRecord]] = {}
    for record in records:
        groups.setdefault(frozenset(record), []).append(record)
    return groups


class BulkUpserter:
    def __init__(self, config: SyncConfig):
        self.config = config
        self.retry_policy = config.store_retry(is_transient_storage_error)

    def upsert(self, records: list[TaskRecord]) -> UpsertResult:
        result = UpsertResult()
        size = self.config.upsert_chunk_size
        for index in range(0, len(records), size):
            chunk = records[index : index + size]
            try:
                call_with_retry(self.retry_policy, self._write_chunk, chunk)
            except DatabaseError as exc:
                result.errors += len(chunk)
                logger.error("Bulk upsert of %s tasks failed: %s", len(chunk), str(exc)[:200])
            else:
                result.inserted += len(chunk)
            sleep(self.config.chunk_delay_seconds)
        return result

    @staticmethod
    def _write_chunk(chunk: list[TaskRecord]) -> None:
        # Rows are grouped by key set so a timestamp the payload omitted is
        # never part of that group's conflict update.
        unique_fields = (
            [CONFLICT_KEY] if connection.features.supports_update_conflicts_with_target else None
        )
        with transaction.atomic():
            for columns, group in _group_by_columns(chunk).items():
                update_fields = sorted((columns - NEVER_UPDATED) | {"updated_at"})
                Task.objects.bulk_create(
                    [Task(**record) for record in group],
                    update_conflicts=True,
                    unique_fields=unique_fields,
                    update_fields=update_fields,
                )

    def update_detail_columns(
        self,
        details: Mapping[int, JobDetail],
        *,
        tags: bool = True,
        cod_amount: bool = True,
    ) -> tuple[int, int]:
        """Write only ``tags`` and/or ``cod_amount`` for tasks already cached.

        Tags are written as returned, so a job whose tags were removed upstream
        is cleared. A missing COD amount never overwrites a stored one. Returns
        ``(updated, errors)``; jobs with no cached row count as neither.
        """

        updated = 0
        errors = 0
        for job_id, detail in details.items():
            values: dict[str, object] = {}
            if tags:
                values["tags"] = detail.tags
            if cod_amount and detail.cod_amount is not None:
                values["cod_amount"] = detail.cod_amount
            if not values:
                continue
            values["updated_at"] = now()
            try:
                matched = call_with_retry(
                    self.retry_policy,
                    Task.objects.filter(job_id=job_id).update,
                    **values,
                )
            except DatabaseError as exc:
                errors += 1
                logger.error("Updating %s for job %s failed: %s", sorted(values), job_id, exc)
                continue
            updated += matched
        return updated, errors
