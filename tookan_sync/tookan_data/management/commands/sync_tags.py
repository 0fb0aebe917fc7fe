import json

from django.core.management.base import BaseCommand, CommandError

from tookan_api.config import SyncConfig
from tookan_api.exceptions import ConfigurationError
from tookan_data.management.commands._arguments import iso_date
from tookan_data.order_sync import OrderSync


class Command(BaseCommand):
    help = "Refresh tags and COD amounts of cached Tookan tasks"

    def add_arguments(self, parser) -> None:  # type: ignore[no-untyped-def]
        parser.add_argument("--from", dest="date_from", type=iso_date)
        parser.add_argument("--to", dest="date_to", type=iso_date)
        parser.add_argument("--force", action="store_true")

    def handle(self, *args, **options) -> None:
        _ = args
        try:
            summary = OrderSync(SyncConfig.from_settings()).run_tag_sync(
                date_from=options["date_from"],
                date_to=options["date_to"],
                force=bool(options["force"]),
            )
        except ConfigurationError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(json.dumps(summary.to_dict(), sort_keys=True, separators=(",", ":")))
        if not summary.success:
            raise CommandError(summary.message)
