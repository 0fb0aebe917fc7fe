from enum import IntEnum


class JobType(IntEnum):
    PICKUP = 0
    DELIVERY = 1
    APPOINTMENT = 2
    FOS = 3


class TaskStatus(IntEnum):
    ASSIGNED = 0
    STARTED = 1
    SUCCESSFUL = 2
    FAILED = 3
    IN_PROGRESS = 4
    UNASSIGNED = 5
    ACCEPTED = 6
    DECLINED = 7
    CANCELLED = 8
    DELETED = 9


ALL_TASK_STATUSES: tuple[int, ...] = tuple(int(status) for status in TaskStatus)

# Success markers used by Tookan's JSON envelope.
API_SUCCESS_STATUSES = frozenset({200, 1})
NO_DATA_MARKERS = ("no task", "no data", "no job")

COD_FIELD_LABELS = (
    "CASH_NEEDS_TO_BE_COLLECTED",
    "CASH NEEDS TO BE COLLECTED",
    "COD_Amount",
)
