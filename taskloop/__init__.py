"""taskloop - run a coding agent over a task list until it says it is done."""

__version__ = "0.1.0"

from taskloop.core.exceptions import (
    AgentInvocationError,
    ConfigurationError,
    InvalidArgumentError,
    ProgressLogError,
    TaskListError,
    TaskLoopError,
)
from taskloop.core.runner import (
    Completed,
    Exhausted,
    IterationRecord,
    RunnerState,
    TaskRunner,
    TerminationReason,
)
from taskloop.core.simple_config import Config, load_config

__all__ = [
    "__version__",
    "AgentInvocationError",
    "Completed",
    "Config",
    "ConfigurationError",
    "Exhausted",
    "InvalidArgumentError",
    "IterationRecord",
    "ProgressLogError",
    "RunnerState",
    "TaskListError",
    "TaskLoopError",
    "TaskRunner",
    "TerminationReason",
    "load_config",
]
