#!/usr/bin/env python
import os
import sys
from pathlib import Path


def main() -> None:
    sync_root = Path(__file__).resolve().parent
    if str(sync_root) not in sys.path:
        sys.path.insert(0, str(sync_root))
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "tookan_site.settings")

    from django.core.management import execute_from_command_line

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
