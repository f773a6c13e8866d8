"""Exception hierarchy for taskloop."""

from typing import Optional


class TaskLoopError(Exception):
    """Base exception for all taskloop errors."""

    pass


class InvalidArgumentError(TaskLoopError, ValueError):
    """Raised when the iteration cap is missing, malformed or below one."""

    pass


class ConfigurationError(TaskLoopError):
    """Raised when the configuration file or an override cannot be used."""

    pass


class TaskListError(TaskLoopError):
    """Raised when the task list is missing, unparseable or has duplicate ids."""

    pass


class ProgressLogError(TaskLoopError):
    """Raised when the progress log exists but cannot be read."""

    pass


class AgentInvocationError(TaskLoopError):
    """Raised when the external agent cannot be started or exits nonzero."""

    def __init__(self, message: str, exit_code: Optional[int] = None, output: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output
