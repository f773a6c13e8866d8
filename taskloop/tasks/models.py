"""Data models for the task list the agent works through."""

from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from taskloop.core.exceptions import TaskListError

# Keys under which a mapping-shaped task file may hold its records
TASK_CONTAINER_KEYS = ("tasks", "userStories")


class TaskRecord(BaseModel):
    """One entry in the task list.

    The file is owned by the agent, so unknown keys are preserved and several
    common spellings are accepted for each field.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., description="Unique task identifier")
    description: str = Field(
        "",
        validation_alias=AliasChoices("description", "title"),
        description="Human-readable description"
    )
    acceptance: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("acceptance", "acceptanceCriteria", "acceptance_criteria"),
        description="Acceptance criteria; a single string becomes a one-item list"
    )
    done: bool = Field(
        False,
        validation_alias=AliasChoices("done", "passes", "completed"),
        description="Completion flag, flipped by the agent"
    )
    priority: Optional[Union[int, str]] = Field(
        None,
        description="Ordering hint written by whoever authored the list; numeric or a label"
    )

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str:
        if isinstance(v, bool) or v is None:
            raise ValueError("task id must be a string or integer")
        v = str(v).strip()
        if not v:
            raise ValueError("task id must not be empty")
        return v

    @field_validator("acceptance", mode="before")
    @classmethod
    def normalize_acceptance(cls, v: Union[str, List[Any], None]) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return [str(item) for item in v]


class TaskList(BaseModel):
    """Ordered collection of task records with unique identifiers."""

    tasks: List[TaskRecord] = Field(default_factory=list)

    @field_validator("tasks")
    @classmethod
    def validate_unique_ids(cls, v: List[TaskRecord]) -> List[TaskRecord]:
        seen = set()
        duplicates = []
        for task in v:
            if task.id in seen and task.id not in duplicates:
                duplicates.append(task.id)
            seen.add(task.id)
        if duplicates:
            raise ValueError(f"duplicate task ids: {', '.join(duplicates)}")
        return v

    @classmethod
    def from_data(cls, data: Any) -> "TaskList":
        """Create a TaskList from parsed JSON/YAML content.

        Args:
            data: Either a list of task records or a mapping holding that list
                under 'tasks' or 'userStories'

        Returns:
            TaskList instance

        Raises:
            TaskListError: If the shape is wrong, a record is invalid or ids repeat
        """
        if isinstance(data, dict):
            records = None
            for key in TASK_CONTAINER_KEYS:
                if key in data:
                    records = data[key]
                    break
            if records is None:
                raise TaskListError(
                    f"Task list mapping must contain one of: {', '.join(TASK_CONTAINER_KEYS)}"
                )
        else:
            records = data

        if not isinstance(records, list):
            raise TaskListError(
                f"Task records must be a list, got {type(records).__name__}"
            )

        try:
            return cls(tasks=records)
        except ValidationError as e:
            raise TaskListError(f"Invalid task list: {e}") from e

    def pending(self) -> List[TaskRecord]:
        return [t for t in self.tasks if not t.done]

    def completed(self) -> List[TaskRecord]:
        return [t for t in self.tasks if t.done]

    def summary(self) -> Dict[str, int]:
        done = len(self.completed())
        return {
            "total": len(self.tasks),
            "done": done,
            "pending": len(self.tasks) - done,
        }
