"""Task list and progress log access."""

from taskloop.tasks.models import TaskList, TaskRecord
from taskloop.tasks.store import (
    ProgressLog,
    ProgressLogSnapshot,
    TaskListSnapshot,
    TaskListStore,
)

__all__ = [
    "ProgressLog",
    "ProgressLogSnapshot",
    "TaskList",
    "TaskListSnapshot",
    "TaskListStore",
    "TaskRecord",
]
