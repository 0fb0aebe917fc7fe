import json
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone
from time import sleep
from typing import Iterable

from django.db.models import Q
from django.utils.timezone import now

from tookan_api.batching import DateBatch, plan_date_batches, retention_floor
from tookan_api.client import Client
from tookan_api.config import SyncConfig
from tookan_api.enrichment import DetailEnricher
from tookan_api.pager import TaskPager
from tookan_api.transform import parse_job_id, transform_tasks
from tookan_api.utils import ensure_aware
from tookan_data.models import SyncMode, Task
from tookan_data.sync_state import LeaseLostError, SyncStateTracker
from tookan_data.upsert import BulkUpserter

logger = logging.getLogger(__name__)

CACHE_LOOKUP_SIZE = 500


@dataclass
class SyncSummary:
    success: bool
    status: str
    message: str
    synced: int = 0
    errors: int = 0
    batches: int = 0
    date_from: date | None = None
    date_to: date | None = None

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        for key in ("date_from", "date_to"):
            value = payload[key]
            payload[key] = value.isoformat() if value is not None else None
        return payload


@dataclass
class WindowOutcome:
    fetched: int = 0
    synced: int = 0
    errors: int = 0


class OrderSync:
    def __init__(
        self,
        config: SyncConfig,
        *,
        client: Client | None = None,
        pager: TaskPager | None = None,
        enricher: DetailEnricher | None = None,
        upserter: BulkUpserter | None = None,
        tracker: SyncStateTracker | None = None,
        today: date | None = None,
    ):
        self.config = config
        self._client = client
        self._pager = pager
        self._enricher = enricher
        self.upserter = upserter or BulkUpserter(config)
        self.tracker = tracker or SyncStateTracker(
            lease_ttl=timedelta(seconds=config.lease_ttl_seconds)
        )
        self._today = today

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = Client(self.config)
        return self._client

    @property
    def pager(self) -> TaskPager:
        if self._pager is None:
            self._pager = TaskPager(self.client, self.config)
        return self._pager

    @property
    def enricher(self) -> DetailEnricher:
        if self._enricher is None:
            self._enricher = DetailEnricher(self.client, self.config)
        return self._enricher

    def today(self) -> date:
        return self._today or datetime.now(tz=timezone.utc).date()

    def _plan(self, date_from: date | None, date_to: date | None) -> tuple[list[DateBatch], date, date]:
        today = self.today()
        batches = plan_date_batches(
            date_from,
            date_to,
            days_per_batch=self.config.days_per_batch,
            retention_months=self.config.retention_months,
            today=today,
        )
        if batches:
            return batches, batches[0].start_date, batches[-1].end_date
        range_from = date_from or retention_floor(today, self.config.retention_months)
        range_to = date_to or today
        return batches, range_from, range_to

    @staticmethod
    def _already_running(range_from: date | None, range_to: date | None) -> SyncSummary:
        return SyncSummary(
            success=False,
            status="already_running",
            message="Sync already in progress. Use force to override.",
            date_from=range_from,
            date_to=range_to,
        )

    @staticmethod
    def _lease_lost(exc: LeaseLostError, summary: SyncSummary) -> SyncSummary:
        logger.warning("SYNC_RUN stopped reason=lease_lost detail=%s", exc)
        summary.success = False
        summary.status = "lease_lost"
        summary.message = str(exc)
        return summary

    def _mark_failed(self, exc: Exception, errors: int) -> None:
        logger.exception("SYNC_RUN failed error=%s", exc)
        try:
            self.tracker.fail(str(exc), error_count=errors + 1)
        except LeaseLostError:
            logger.warning("Lease already lost; leaving sync status untouched")

    def run_full_sync(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        force: bool = False,
        resume_from_batch: int = 0,
        resume: bool = False,
    ) -> SyncSummary:
        self.config.require_credentials()
        batches, range_from, range_to = self._plan(date_from, date_to)
        if resume:
            resume_from_batch = max(resume_from_batch, self.tracker.resume_point(range_from, range_to))
        resume_from_batch = min(max(resume_from_batch, 0), len(batches))

        if not self.tracker.acquire(force=force, mode=SyncMode.FULL):
            return self._already_running(range_from, range_to)

        return self._run_batches(
            batches,
            range_from,
            range_to,
            mode=SyncMode.FULL,
            start_index=resume_from_batch,
        )

    def run_incremental_sync(self) -> SyncSummary:
        self.config.require_credentials()
        row = self.tracker.current()
        if row is None or row.last_successful_sync is None:
            logger.warning("No previous successful sync found; running a full sync")
            return self.run_full_sync()

        last_sync = ensure_aware(row.last_successful_sync).astimezone(timezone.utc)
        range_from = (last_sync - timedelta(days=self.config.incremental_overlap_days)).date()
        range_to = self.today()
        if range_from > range_to:
            range_from = range_to

        if not self.tracker.acquire(mode=SyncMode.INCREMENTAL):
            return self._already_running(range_from, range_to)

        return self._run_batches(
            [DateBatch(range_from, range_to)],
            range_from,
            range_to,
            mode=SyncMode.INCREMENTAL,
        )

    def _run_batches(
        self,
        batches: list[DateBatch],
        range_from: date,
        range_to: date,
        *,
        mode: str,
        start_index: int = 0,
    ) -> SyncSummary:
        started_at = now()
        summary = SyncSummary(
            success=True,
            status="completed",
            message="Sync completed successfully",
            batches=len(batches),
            date_from=range_from,
            date_to=range_to,
        )
        logger.info(
            "SYNC_RUN start=%s mode=%s from=%s to=%s batches=%s resume_from=%s",
            started_at.isoformat(),
            mode,
            range_from,
            range_to,
            len(batches),
            start_index,
        )
        total_records = 0
        failed_records = 0
        try:
            self.tracker.update(
                sync_from_date=range_from,
                sync_to_date=range_to,
                total_batches=len(batches),
                completed_batches=start_index,
                total_records=0,
                synced_records=0,
                failed_records=0,
            )
            for index in range(start_index, len(batches)):
                batch = batches[index]
                logger.info("Batch %s/%s: %s", index + 1, len(batches), batch)
                self.tracker.record_batch(batch, completed_batches=index)
                try:
                    outcome = self.sync_window(batch)
                except LeaseLostError:
                    raise
                except Exception as exc:
                    summary.errors += 1
                    logger.exception("Batch %s failed: %s", batch, exc)
                    self.tracker.update(last_error=str(exc)[:1000], error_count=summary.errors)
                else:
                    total_records += outcome.fetched
                    summary.synced += outcome.synced
                    summary.errors += outcome.errors
                    failed_records += outcome.errors
                    logger.info(
                        "Batch %s: fetched %s, synced %s, errors %s",
                        batch,
                        outcome.fetched,
                        outcome.synced,
                        outcome.errors,
                    )
                    self.tracker.update(
                        completed_batches=index + 1,
                        total_records=total_records,
                        synced_records=summary.synced,
                        failed_records=failed_records,
                        error_count=summary.errors,
                    )
                if index < len(batches) - 1:
                    sleep(self.config.batch_delay_seconds)

            self.tracker.complete(
                completed_batches=len(batches),
                total_records=total_records,
                synced_records=summary.synced,
                failed_records=failed_records,
                error_count=summary.errors,
            )
        except LeaseLostError as exc:
            return self._lease_lost(exc, summary)
        except Exception as exc:
            self._mark_failed(exc, summary.errors)
            raise

        self._log_done(started_at, mode, summary)
        return summary

    def sync_window(self, batch: DateBatch) -> WindowOutcome:
        """Page, enrich, transform and upsert one date window."""

        fetched = self.pager.fetch_window(batch)
        outcome = WindowOutcome(fetched=len(fetched.records), errors=len(fetched.failed_categories))
        if not fetched.records:
            return outcome

        job_ids = [job_id for job_id in (parse_job_id(raw.get("job_id")) for raw in fetched.records) if job_id]
        failed_before = self.enricher.failed_requests
        details = self.enricher.fetch_details(job_ids)
        outcome.errors += self.enricher.failed_requests - failed_before
        records, skipped = transform_tasks(fetched.records, details, synced_at=now())
        result = self.upserter.upsert(records)
        outcome.synced = result.inserted
        outcome.errors += skipped + result.errors
        return outcome

    def run_tag_sync(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        force: bool = False,
    ) -> SyncSummary:
        self.config.require_credentials()
        batches, range_from, range_to = self._plan(date_from, date_to)
        if not self.tracker.acquire(force=force, mode=SyncMode.TAGS):
            return self._already_running(range_from, range_to)

        started_at = now()
        summary = SyncSummary(
            success=True,
            status="completed",
            message="Tag sync completed successfully",
            batches=len(batches),
            date_from=range_from,
            date_to=range_to,
        )
        logger.info(
            "SYNC_RUN start=%s mode=%s from=%s to=%s batches=%s",
            started_at.isoformat(),
            SyncMode.TAGS,
            range_from,
            range_to,
            len(batches),
        )
        try:
            self.tracker.update(
                sync_from_date=range_from,
                sync_to_date=range_to,
                total_batches=len(batches),
                completed_batches=0,
            )
            failed_records = 0
            for index, batch in enumerate(batches):
                self.tracker.record_batch(batch, completed_batches=index)
                try:
                    fetched = self.pager.fetch_window(batch)
                    job_ids = self._cached_job_ids(
                        parse_job_id(raw.get("job_id")) for raw in fetched.records
                    )
                    failed_before = self.enricher.failed_requests
                    details = self.enricher.fetch_details(job_ids) if job_ids else {}
                    updated, errors = self.upserter.update_detail_columns(details)
                    errors += self.enricher.failed_requests - failed_before
                except LeaseLostError:
                    raise
                except Exception as exc:
                    summary.errors += 1
                    logger.exception("Tag batch %s failed: %s", batch, exc)
                    self.tracker.update(last_error=str(exc)[:1000], error_count=summary.errors)
                else:
                    summary.synced += updated
                    errors += len(fetched.failed_categories)
                    summary.errors += errors
                    failed_records += errors
                    logger.info("Tag batch %s: %s cached tasks, %s updated", batch, len(job_ids), updated)
                    self.tracker.update(
                        completed_batches=index + 1,
                        synced_records=summary.synced,
                        failed_records=failed_records,
                        error_count=summary.errors,
                    )
                if index < len(batches) - 1:
                    sleep(self.config.batch_delay_seconds)

            self.tracker.complete(
                record_success=False,
                completed_batches=len(batches),
                synced_records=summary.synced,
                failed_records=failed_records,
                error_count=summary.errors,
            )
        except LeaseLostError as exc:
            return self._lease_lost(exc, summary)
        except Exception as exc:
            self._mark_failed(exc, summary.errors)
            raise

        self._log_done(started_at, SyncMode.TAGS, summary)
        return summary

    def run_cod_sync(
        self,
        sync_all: bool = False,
        limit: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        job_id: int | None = None,
    ) -> SyncSummary:
        """Backfill ``cod_amount`` for cached tasks from job details.

        Without ``sync_all`` only tasks whose COD is null or zero are selected.
        ``job_id`` targets a single task and ignores the other filters.
        """

        self.config.require_credentials()
        queryset = Task.objects.order_by("-job_id")
        if job_id is not None:
            queryset = queryset.filter(job_id=job_id)
        else:
            if not sync_all:
                queryset = queryset.filter(Q(cod_amount__isnull=True) | Q(cod_amount=0))
            if date_from is not None:
                queryset = queryset.filter(creation_datetime__date__gte=date_from)
            if date_to is not None:
                queryset = queryset.filter(creation_datetime__date__lte=date_to)
        if limit:
            queryset = queryset[:limit]
        job_ids = list(queryset.values_list("job_id", flat=True))

        started_at = now()
        logger.info("SYNC_RUN start=%s mode=%s tasks=%s", started_at.isoformat(), SyncMode.COD, len(job_ids))
        summary = SyncSummary(
            success=True,
            status="completed",
            message="COD sync completed successfully",
            date_from=date_from,
            date_to=date_to,
        )
        if not job_ids:
            summary.message = "No tasks need COD sync"
            self._log_done(started_at, SyncMode.COD, summary)
            return summary

        failed_before = self.enricher.failed_requests
        details = self.enricher.fetch_details(job_ids)
        updated, errors = self.upserter.update_detail_columns(details, tags=False)
        summary.synced = updated
        summary.errors = errors + (self.enricher.failed_requests - failed_before)
        summary.batches = -(-len(job_ids) // self.config.detail_batch_size)
        missing = sum(1 for detail in details.values() if detail.cod_amount is None)
        logger.info(
            "COD sync: %s tasks selected, %s updated, %s without a COD field",
            len(job_ids),
            updated,
            missing + len(job_ids) - len(details),
        )
        self._log_done(started_at, SyncMode.COD, summary)
        return summary

    def _cached_job_ids(self, job_ids: Iterable[int | None]) -> list[int]:
        candidates = list(dict.fromkeys(job_id for job_id in job_ids if job_id))
        cached: set[int] = set()
        for index in range(0, len(candidates), CACHE_LOOKUP_SIZE):
            chunk = candidates[index : index + CACHE_LOOKUP_SIZE]
            cached.update(Task.objects.filter(job_id__in=chunk).values_list("job_id", flat=True))
        return [job_id for job_id in candidates if job_id in cached]

    @staticmethod
    def _log_done(started_at: datetime, mode: str, summary: SyncSummary) -> None:
        finished_at = now()
        elapsed_seconds = int((finished_at - started_at).total_seconds())
        hours, remainder = divmod(elapsed_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)
        logger.info(
            "SYNC_RUN done mode=%s start=%s end=%s synced=%s errors=%s elapsed_hms=%02d:%02d:%02d",
            mode,
            started_at.isoformat(),
            finished_at.isoformat(),
            summary.synced,
            summary.errors,
            hours,
            minutes,
            seconds,
        )
        logger.info(
            "SYNC_CHECK %s",
            json.dumps({"event": "run_summary", "mode": str(mode), **summary.to_dict()}, sort_keys=True),
        )
