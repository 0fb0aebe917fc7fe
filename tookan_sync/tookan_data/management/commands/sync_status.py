import json
from datetime import date
from typing import Any

from django.core.management.base import BaseCommand
from django.utils.timezone import now

from tookan_data.models import SyncState, SyncStatus
from tookan_data.sync_state import DEFAULT_SYNC_TYPE


class Command(BaseCommand):
    help = "Emit Tookan order sync status as single-line JSON"

    def add_arguments(self, parser) -> None:  # type: ignore[no-untyped-def]
        parser.add_argument("--sync-type", default=DEFAULT_SYNC_TYPE)
        parser.add_argument(
            "--stale-threshold-seconds",
            type=int,
            default=0,
            help="Also mark a running sync stale when its last heartbeat is older than this.",
        )
        parser.add_argument(
            "--fail-on-stale",
            action="store_true",
            help="Exit with status code 2 when the running sync is stale.",
        )

    @staticmethod
    def _isoformat(value: date | None) -> str | None:
        if value is None:
            return None
        return value.isoformat()

    def _build_payload(self, sync_type: str, stale_threshold_seconds: int) -> dict[str, Any]:
        status_row = SyncStatus.objects.filter(sync_type=sync_type).first()
        current_time = now()
        if status_row is None:
            return {
                "sync_type": sync_type,
                "status": "unknown",
                "mode": None,
                "started_at": None,
                "completed_at": None,
                "last_successful_sync": None,
                "total_batches": 0,
                "completed_batches": 0,
                "total_records": 0,
                "synced_records": 0,
                "failed_records": 0,
                "sync_from_date": None,
                "sync_to_date": None,
                "current_batch_start": None,
                "current_batch_end": None,
                "last_error": None,
                "error_count": 0,
                "lease_owner": None,
                "lease_expires_at": None,
                "last_heartbeat": None,
                "run_age_seconds": None,
                "heartbeat_age_seconds": None,
                "lease_expired": False,
                "is_stale": False,
                "updated_at": None,
            }

        running = status_row.status == SyncState.IN_PROGRESS

        run_age_seconds: int | None = None
        if status_row.started_at is not None:
            run_end = current_time if running else (status_row.completed_at or current_time)
            run_age_seconds = max(0, int((run_end - status_row.started_at).total_seconds()))

        heartbeat_age_seconds: int | None = None
        if status_row.last_heartbeat is not None:
            heartbeat_age_seconds = max(
                0, int((current_time - status_row.last_heartbeat).total_seconds())
            )

        lease_expired = bool(
            running
            and (status_row.lease_expires_at is None or status_row.lease_expires_at <= current_time)
        )
        heartbeat_stale = bool(
            running
            and heartbeat_age_seconds is not None
            and 0 < stale_threshold_seconds < heartbeat_age_seconds
        )

        return {
            "sync_type": status_row.sync_type,
            "status": status_row.status,
            "mode": status_row.mode,
            "started_at": self._isoformat(status_row.started_at),
            "completed_at": self._isoformat(status_row.completed_at),
            "last_successful_sync": self._isoformat(status_row.last_successful_sync),
            "total_batches": status_row.total_batches,
            "completed_batches": status_row.completed_batches,
            "total_records": status_row.total_records,
            "synced_records": status_row.synced_records,
            "failed_records": status_row.failed_records,
            "sync_from_date": self._isoformat(status_row.sync_from_date),
            "sync_to_date": self._isoformat(status_row.sync_to_date),
            "current_batch_start": self._isoformat(status_row.current_batch_start),
            "current_batch_end": self._isoformat(status_row.current_batch_end),
            "last_error": status_row.last_error,
            "error_count": status_row.error_count,
            "lease_owner": status_row.lease_owner,
            "lease_expires_at": self._isoformat(status_row.lease_expires_at),
            "last_heartbeat": self._isoformat(status_row.last_heartbeat),
            "run_age_seconds": run_age_seconds,
            "heartbeat_age_seconds": heartbeat_age_seconds,
            "lease_expired": lease_expired,
            "is_stale": lease_expired or heartbeat_stale,
            "updated_at": self._isoformat(status_row.updated_at),
        }

    def handle(self, *args, **options) -> None:
        _ = args
        stale_threshold_seconds = max(0, int(options["stale_threshold_seconds"]))
        fail_on_stale = bool(options["fail_on_stale"])

        payload = self._build_payload(options["sync_type"], stale_threshold_seconds)
        self.stdout.write(json.dumps(payload, sort_keys=True, separators=(",", ":")))

        if fail_on_stale and payload.get("is_stale"):
            raise SystemExit(2)
