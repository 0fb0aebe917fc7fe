from django.db import migrations


def seed_order_sync_status(apps, _schema_editor) -> None:
    SyncStatus = apps.get_model("tookan_data", "SyncStatus")
    SyncStatus.objects.get_or_create(sync_type="orders", defaults={"status": "idle"})


class Migration(migrations.Migration):
    dependencies = [
        ("tookan_data", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_order_sync_status, migrations.RunPython.noop),
    ]
