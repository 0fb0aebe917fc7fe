import json

from django.core.management.base import BaseCommand, CommandError

from tookan_api.config import SyncConfig
from tookan_api.exceptions import ConfigurationError
from tookan_data.management.commands._arguments import iso_date
from tookan_data.order_sync import OrderSync


class Command(BaseCommand):
    help = "Sync Tookan tasks into the local order cache"

    def add_arguments(self, parser) -> None:  # type: ignore[no-untyped-def]
        parser.add_argument("--from", dest="date_from", type=iso_date, help="First day to sync (YYYY-MM-DD).")
        parser.add_argument("--to", dest="date_to", type=iso_date, help="Last day to sync (YYYY-MM-DD).")
        parser.add_argument(
            "--force",
            action="store_true",
            help="Take over a sync that is still marked in progress.",
        )
        parser.add_argument(
            "--resume",
            action="store_true",
            help="Continue an unfinished full sync over the same range.",
        )
        parser.add_argument(
            "--resume-from-batch",
            type=int,
            default=0,
            help="Skip this many leading batches.",
        )
        parser.add_argument(
            "--incremental",
            action="store_true",
            help="Only sync from the last successful sync (with a one day overlap).",
        )

    def handle(self, *args, **options) -> None:
        _ = args
        try:
            order_sync = OrderSync(SyncConfig.from_settings())
            if options["incremental"]:
                summary = order_sync.run_incremental_sync()
            else:
                summary = order_sync.run_full_sync(
                    date_from=options["date_from"],
                    date_to=options["date_to"],
                    force=bool(options["force"]),
                    resume_from_batch=int(options["resume_from_batch"]),
                    resume=bool(options["resume"]),
                )
        except ConfigurationError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(json.dumps(summary.to_dict(), sort_keys=True, separators=(",", ":")))
        if not summary.success:
            raise CommandError(summary.message)
