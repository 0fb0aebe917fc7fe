from .initialize import settings
from .sync_config import SyncConfig

__all__ = ["settings", "SyncConfig"]
