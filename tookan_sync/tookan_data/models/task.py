from django.db import models


class TaskSource(models.TextChoices):
    API_SYNC = "api_sync", "API sync"
    WEBHOOK = "webhook", "Webhook"
    MANUAL = "manual", "Manual"


class Task(models.Model):
    job_id = models.BigIntegerField(unique=True)
    order_id = models.CharField(max_length=100, null=True, db_index=True)
    status = models.IntegerField(default=0)
    job_type = models.IntegerField(default=1, db_index=True)

    customer_name = models.CharField(max_length=255, null=True)
    customer_phone = models.CharField(max_length=100, null=True)
    customer_email = models.CharField(max_length=255, null=True)
    delivery_name = models.CharField(max_length=255, null=True)
    delivery_phone = models.CharField(max_length=100, null=True)
    delivery_address = models.TextField(null=True)
    pickup_name = models.CharField(max_length=255, null=True)
    pickup_phone = models.CharField(max_length=100, null=True)
    pickup_address = models.TextField(null=True)

    total_amount = models.FloatField(default=0)
    cod_amount = models.FloatField(null=True, default=0)
    cod_collected = models.BooleanField(default=False)
    order_fees = models.FloatField(default=0)

    fleet_id = models.BigIntegerField(null=True)
    fleet_name = models.CharField(max_length=255, null=True)
    vendor_id = models.BigIntegerField(null=True)

    template_fields = models.JSONField(default=dict)
    notes = models.TextField(null=True)
    tags = models.TextField(null=True)

    creation_datetime = models.DateTimeField(null=True)
    started_datetime = models.DateTimeField(null=True)
    acknowledged_datetime = models.DateTimeField(null=True)
    completed_datetime = models.DateTimeField(null=True, db_index=True)

    raw_data = models.JSONField(default=dict)
    source = models.CharField(
        max_length=50, choices=TaskSource.choices, default=TaskSource.API_SYNC, db_index=True
    )
    last_synced_at = models.DateTimeField(null=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tookan_data_tasks"
