from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SYNC_ROOT = ROOT / "tookan_sync"

if str(SYNC_ROOT) not in sys.path:
    sys.path.insert(0, str(SYNC_ROOT))

# AppSettings writes its TOML file on first import; keep it out of $HOME.
os.environ.setdefault(
    "TOOKAN_CONFIG_FILE",
    str(Path(tempfile.gettempdir()) / "tookan-api-tests" / "config.toml"),
)
