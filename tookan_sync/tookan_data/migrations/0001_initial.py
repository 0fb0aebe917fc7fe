from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies: list[tuple[str, str]] = []

    operations = [
        migrations.CreateModel(
            name="Task",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("job_id", models.BigIntegerField(unique=True)),
                ("order_id", models.CharField(db_index=True, max_length=100, null=True)),
                ("status", models.IntegerField(default=0)),
                ("job_type", models.IntegerField(db_index=True, default=1)),
                ("customer_name", models.CharField(max_length=255, null=True)),
                ("customer_phone", models.CharField(max_length=100, null=True)),
                ("customer_email", models.CharField(max_length=255, null=True)),
                ("delivery_name", models.CharField(max_length=255, null=True)),
                ("delivery_phone", models.CharField(max_length=100, null=True)),
                ("delivery_address", models.TextField(null=True)),
                ("pickup_name", models.CharField(max_length=255, null=True)),
                ("pickup_phone", models.CharField(max_length=100, null=True)),
                ("pickup_address", models.TextField(null=True)),
                ("total_amount", models.FloatField(default=0)),
                ("cod_amount", models.FloatField(default=0, null=True)),
                ("cod_collected", models.BooleanField(default=False)),
                ("order_fees", models.FloatField(default=0)),
                ("fleet_id", models.BigIntegerField(null=True)),
                ("fleet_name", models.CharField(max_length=255, null=True)),
                ("vendor_id", models.BigIntegerField(null=True)),
                ("template_fields", models.JSONField(default=dict)),
                ("notes", models.TextField(null=True)),
                ("tags", models.TextField(null=True)),
                ("creation_datetime", models.DateTimeField(null=True)),
                ("started_datetime", models.DateTimeField(null=True)),
                ("acknowledged_datetime", models.DateTimeField(null=True)),
                ("completed_datetime", models.DateTimeField(db_index=True, null=True)),
                ("raw_data", models.JSONField(default=dict)),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("api_sync", "API sync"),
                            ("webhook", "Webhook"),
                            ("manual", "Manual"),
                        ],
                        db_index=True,
                        default="api_sync",
                        max_length=50,
                    ),
                ),
                ("last_synced_at", models.DateTimeField(db_index=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "tookan_data_tasks",
            },
        ),
        migrations.CreateModel(
            name="SyncStatus",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("sync_type", models.CharField(default="orders", max_length=50, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("idle", "Idle"),
                            ("in_progress", "In progress"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        default="idle",
                        max_length=20,
                    ),
                ),
                (
                    "mode",
                    models.CharField(
                        choices=[
                            ("full", "Full"),
                            ("incremental", "Incremental"),
                            ("tags", "Tags only"),
                            ("cod", "COD only"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
                ("started_at", models.DateTimeField(null=True)),
                ("completed_at", models.DateTimeField(null=True)),
                ("last_successful_sync", models.DateTimeField(null=True)),
                ("total_batches", models.IntegerField(default=0)),
                ("completed_batches", models.IntegerField(default=0)),
                ("total_records", models.BigIntegerField(default=0)),
                ("synced_records", models.BigIntegerField(default=0)),
                ("failed_records", models.BigIntegerField(default=0)),
                ("sync_from_date", models.DateField(null=True)),
                ("sync_to_date", models.DateField(null=True)),
                ("current_batch_start", models.DateField(null=True)),
                ("current_batch_end", models.DateField(null=True)),
                ("last_error", models.TextField(null=True)),
                ("error_count", models.IntegerField(default=0)),
                ("lease_owner", models.CharField(max_length=64, null=True)),
                ("lease_expires_at", models.DateTimeField(null=True)),
                ("last_heartbeat", models.DateTimeField(null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "tookan_data_sync_status",
                "verbose_name": "Sync Status",
                "verbose_name_plural": "Sync Status",
            },
        ),
    ]
