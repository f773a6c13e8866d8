"""Read-only access to the task list and progress log files.

Both files are written only by the agent. Every read returns a fresh
snapshot; nothing is cached between iterations.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from taskloop.core.exceptions import ProgressLogError, TaskListError
from taskloop.tasks.models import TaskList

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class TaskListSnapshot:
    """Task list as it was on disk at read time."""
    content: str
    tasks: TaskList


@dataclass(frozen=True)
class ProgressLogSnapshot:
    """Progress log as it was on disk at read time."""
    content: str

    @property
    def size(self) -> int:
        return len(self.content)


class TaskListStore:
    """Reads and validates the task list file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> TaskListSnapshot:
        """Read and parse the current task list.

        Returns:
            Snapshot with the raw text (passed verbatim to the agent) and the
            parsed TaskList

        Raises:
            TaskListError: If the file is missing, unreadable or invalid
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise TaskListError(f"Task list not found: {self.path}") from e
        except OSError as e:
            raise TaskListError(f"Cannot read task list {self.path}: {e}") from e
        except UnicodeDecodeError as e:
            raise TaskListError(f"Task list {self.path} is not valid UTF-8: {e}") from e

        return TaskListSnapshot(content=content, tasks=self.parse(content))

    def parse(self, content: str) -> TaskList:
        if not content.strip():
            raise TaskListError(f"Task list is empty: {self.path}")

        try:
            if self.path.suffix.lower() in YAML_SUFFIXES:
                data = yaml.safe_load(content)
            else:
                data = json.loads(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise TaskListError(f"Cannot parse task list {self.path}: {e}") from e

        return TaskList.from_data(data)


class ProgressLog:
    """Reads the append-only progress log and notices if it ever shrinks."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._last_size: Optional[int] = None

    def read(self) -> ProgressLogSnapshot:
        """Read the current log content; a missing file reads as empty.

        The log is free text, so undecodable bytes are replaced rather than
        rejected.

        Raises:
            ProgressLogError: If the path exists but cannot be read
        """
        try:
            content = self.path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            content = ""
        except OSError as e:
            raise ProgressLogError(f"Cannot read progress log {self.path}: {e}") from e

        snapshot = ProgressLogSnapshot(content=content)
        if self._last_size is not None and snapshot.size < self._last_size:
            logger.warning(
                f"Progress log {self.path} shrank from {self._last_size} to {snapshot.size} "
                "characters; it should only ever be appended to"
            )
        self._last_size = snapshot.size
        return snapshot

    def reset(self) -> None:
        """Forget the previously observed size."""
        self._last_size = None
