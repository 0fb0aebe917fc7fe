import subprocess
import sys
from importlib.util import find_spec
from pathlib import Path
from collections.abc import Sequence


def _manage_script() -> str:
    spec = find_spec("tookan_sync.manage")
    if spec is None or spec.origin is None:
        raise RuntimeError("Could not locate tookan_sync.manage")
    return str(Path(spec.origin).resolve())


def _run_manage(args: Sequence[str]) -> int:
    completed = subprocess.run([sys.executable, _manage_script(), *args])
    return completed.returncode


def migrate() -> int:
    return _run_manage(["migrate"])


def _migrate_then(args: Sequence[str]) -> int:
    exit_code = migrate()
    if exit_code != 0:
        return exit_code
    return _run_manage(args)


def sync_orders() -> int:
    return _migrate_then(["sync_orders", *sys.argv[1:]])


def sync_orders_incremental() -> int:
    return _migrate_then(["sync_orders", "--incremental", *sys.argv[1:]])


def sync_tags() -> int:
    return _migrate_then(["sync_tags", *sys.argv[1:]])


def sync_cod_amounts() -> int:
    return _migrate_then(["sync_cod_amounts", *sys.argv[1:]])


def sync_status() -> int:
    return _run_manage(["sync_status", *sys.argv[1:]])
