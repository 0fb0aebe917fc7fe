import json

from django.core.management.base import BaseCommand, CommandError

from tookan_api.config import SyncConfig
from tookan_api.exceptions import ConfigurationError
from tookan_data.management.commands._arguments import iso_date, positive_int
from tookan_data.order_sync import OrderSync


class Command(BaseCommand):
    help = "Backfill COD amounts of cached tasks from Tookan job details"

    def add_arguments(self, parser) -> None:  # type: ignore[no-untyped-def]
        parser.add_argument(
            "--all",
            dest="sync_all",
            action="store_true",
            help="Include tasks that already have a COD amount.",
        )
        parser.add_argument("--limit", type=positive_int, help="Process at most this many tasks.")
        parser.add_argument("--from", dest="date_from", type=iso_date, help="Created on or after (YYYY-MM-DD).")
        parser.add_argument("--to", dest="date_to", type=iso_date, help="Created on or before (YYYY-MM-DD).")
        parser.add_argument("--job-id", type=int, help="Sync a single job.")

    def handle(self, *args, **options) -> None:
        _ = args
        try:
            summary = OrderSync(SyncConfig.from_settings()).run_cod_sync(
                sync_all=bool(options["sync_all"]),
                limit=options["limit"],
                date_from=options["date_from"],
                date_to=options["date_to"],
                job_id=options["job_id"],
            )
        except ConfigurationError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(json.dumps(summary.to_dict(), sort_keys=True, separators=(",", ":")))
