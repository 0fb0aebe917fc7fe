"""Lease-guarded access to the single ``SyncStatus`` row of a sync type.

A run owns the row while its lease is live. Every write is filtered on the
owner id, so a run whose lease was reclaimed or taken over by ``--force``
finds zero matching rows on its next write and stops instead of clobbering
the new owner's progress.
"""

import logging
from datetime import date, datetime, timedelta
from uuid import uuid4

from django.db import transaction
from django.utils.timezone import now

from tookan_api.batching import DateBatch
from tookan_api.exceptions import TookanSyncError
from tookan_data.models import SyncMode, SyncState, SyncStatus

logger = logging.getLogger(__name__)

DEFAULT_SYNC_TYPE = "orders"
RESUMABLE_STATES = frozenset({SyncState.IN_PROGRESS, SyncState.FAILED})


class LeaseLostError(TookanSyncError):
    pass


def lease_is_live(row: SyncStatus, current_time: datetime | None = None) -> bool:
    if row.status != SyncState.IN_PROGRESS or not row.lease_owner:
        return False
    if row.lease_expires_at is None:
        return False
    return row.lease_expires_at > (current_time or now())


class SyncStateTracker:
    def __init__(
        self,
        sync_type: str = DEFAULT_SYNC_TYPE,
        lease_ttl: timedelta = timedelta(hours=1),
        owner: str | None = None,
    ):
        self.sync_type = sync_type
        self.lease_ttl = lease_ttl
        self.owner = owner or uuid4().hex

    def current(self) -> SyncStatus | None:
        return SyncStatus.objects.filter(sync_type=self.sync_type).first()

    def acquire(self, *, force: bool = False, mode: str = SyncMode.FULL) -> bool:
        current_time = now()
        with transaction.atomic():
            row, _created = SyncStatus.objects.select_for_update().get_or_create(
                sync_type=self.sync_type
            )
            if row.status == SyncState.IN_PROGRESS and row.lease_owner != self.owner:
                if lease_is_live(row, current_time):
                    if not force:
                        logger.warning(
                            "Sync %s already in progress under lease %s until %s",
                            self.sync_type,
                            row.lease_owner,
                            row.lease_expires_at,
                        )
                        return False
                    logger.warning(
                        "Forcing takeover of live lease %s on sync %s", row.lease_owner, self.sync_type
                    )
                else:
                    logger.warning(
                        "Reclaiming expired lease %s on sync %s (expired %s)",
                        row.lease_owner,
                        self.sync_type,
                        row.lease_expires_at,
                    )

            row.status = SyncState.IN_PROGRESS
            row.mode = mode
            row.lease_owner = self.owner
            row.lease_expires_at = current_time + self.lease_ttl
            row.last_heartbeat = current_time
            row.started_at = current_time
            row.completed_at = None
            row.last_error = None
            row.error_count = 0
            row.save()
        return True

    def _write(self, *, release: bool = False, **fields: object) -> None:
        current_time = now()
        if release:
            fields.update(lease_owner=None, lease_expires_at=None)
        else:
            fields["lease_expires_at"] = current_time + self.lease_ttl
        updated = SyncStatus.objects.filter(
            sync_type=self.sync_type, lease_owner=self.owner
        ).update(last_heartbeat=current_time, updated_at=current_time, **fields)
        if updated == 0:
            raise LeaseLostError(
                f"Lease {self.owner} on sync {self.sync_type} is no longer held by this run"
            )

    def update(self, **fields: object) -> None:
        self._write(**fields)

    def record_batch(self, batch: DateBatch, completed_batches: int) -> None:
        self._write(
            current_batch_start=batch.start_date,
            current_batch_end=batch.end_date,
            completed_batches=completed_batches,
        )

    def complete(self, *, record_success: bool = True, **fields: object) -> None:
        current_time = now()
        if record_success:
            fields["last_successful_sync"] = current_time
        self._write(
            release=True,
            status=SyncState.COMPLETED,
            completed_at=current_time,
            current_batch_start=None,
            current_batch_end=None,
            **fields,
        )

    def fail(self, message: str, **fields: object) -> None:
        self._write(release=True, status=SyncState.FAILED, last_error=message, **fields)

    def resume_point(self, date_from: date, date_to: date) -> int:
        """Batches a previous unfinished full run over the same range completed."""

        row = self.current()
        if row is None or row.status not in RESUMABLE_STATES or row.mode != SyncMode.FULL:
            return 0
        if row.sync_from_date != date_from or row.sync_to_date != date_to:
            return 0
        return max(0, row.completed_batches)

    def reset(self) -> SyncStatus:
        row, _created = SyncStatus.objects.update_or_create(
            sync_type=self.sync_type,
            defaults={
                "status": SyncState.IDLE,
                "lease_owner": None,
                "lease_expires_at": None,
                "current_batch_start": None,
                "current_batch_end": None,
            },
        )
        logger.info("Reset sync %s to idle", self.sync_type)
        return row
