from django.db import models


class SyncState(models.TextChoices):
    IDLE = "idle", "Idle"
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class SyncMode(models.TextChoices):
    FULL = "full", "Full"
    INCREMENTAL = "incremental", "Incremental"
    TAGS = "tags", "Tags only"
    COD = "cod", "COD only"


class SyncStatus(models.Model):
    sync_type = models.CharField(max_length=50, unique=True, default="orders")
    status = models.CharField(max_length=20, choices=SyncState.choices, default=SyncState.IDLE)
    mode = models.CharField(max_length=20, choices=SyncMode.choices, null=True)
    started_at = models.DateTimeField(null=True)
    completed_at = models.DateTimeField(null=True)
    last_successful_sync = models.DateTimeField(null=True)

    total_batches = models.IntegerField(default=0)
    completed_batches = models.IntegerField(default=0)
    total_records = models.BigIntegerField(default=0)
    synced_records = models.BigIntegerField(default=0)
    failed_records = models.BigIntegerField(default=0)

    sync_from_date = models.DateField(null=True)
    sync_to_date = models.DateField(null=True)
    current_batch_start = models.DateField(null=True)
    current_batch_end = models.DateField(null=True)

    last_error = models.TextField(null=True)
    error_count = models.IntegerField(default=0)

    lease_owner = models.CharField(max_length=64, null=True)
    lease_expires_at = models.DateTimeField(null=True)
    last_heartbeat = models.DateTimeField(null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tookan_data_sync_status"
        verbose_name = "Sync Status"
        verbose_name_plural = "Sync Status"
