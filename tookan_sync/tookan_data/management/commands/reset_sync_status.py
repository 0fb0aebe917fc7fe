from django.core.management.base import BaseCommand

from tookan_data.sync_state import DEFAULT_SYNC_TYPE, SyncStateTracker


class Command(BaseCommand):
    help = "Force a stuck sync status row back to idle and release its lease"

    def add_arguments(self, parser) -> None:  # type: ignore[no-untyped-def]
        parser.add_argument("--sync-type", default=DEFAULT_SYNC_TYPE)

    def handle(self, *args, **options) -> None:
        _ = args
        row = SyncStateTracker(sync_type=options["sync_type"]).reset()
        self.stdout.write(f"Sync {row.sync_type} reset to {row.status}")
