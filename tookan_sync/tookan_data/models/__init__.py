from .sync_status import SyncMode, SyncState, SyncStatus
from .task import Task, TaskSource
