"""Bounded task loop: invoke the agent until it signals completion or the cap is hit."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

import structlog

from taskloop.core.exceptions import AgentInvocationError, InvalidArgumentError
from taskloop.core.prompt_loader import PromptLoader
from taskloop.core.simple_config import Config, DEFAULT_SENTINEL
from taskloop.interfaces.agent_invoker import AgentInvoker, SubprocessAgentInvoker
from taskloop.interfaces.cli_interface import get_cli_agent
from taskloop.tasks.store import ProgressLog, TaskListStore

logger = structlog.get_logger(__name__)

FAILURE_POLICIES = ("abort", "skip")


class RunnerState(Enum):
    """Lifecycle of a TaskRunner."""
    IDLE = "idle"
    RUNNING = "running"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class TerminationReason:
    """Why a run stopped. Both variants are normal terminations."""
    iterations: int

    def exit_code(self, fail_on_exhausted: bool = False) -> int:
        return 0


@dataclass(frozen=True)
class Completed(TerminationReason):
    """The agent printed the sentinel on iteration ``iterations``."""

    @property
    def iterations_used(self) -> int:
        return self.iterations

    def __str__(self) -> str:
        return f"Completed({self.iterations})"


@dataclass(frozen=True)
class Exhausted(TerminationReason):
    """The cap was reached without the sentinel."""

    @property
    def max_iterations(self) -> int:
        return self.iterations

    def exit_code(self, fail_on_exhausted: bool = False) -> int:
        return 3 if fail_on_exhausted else 0

    def __str__(self) -> str:
        return f"Exhausted({self.iterations})"


@dataclass
class IterationRecord:
    """What happened during one iteration of the last run."""
    iteration: int
    pending_tasks: int
    exit_code: Optional[int]
    duration_seconds: float
    sentinel_found: bool
    failed: bool = False


class TaskRunner:
    """Drives a bounded number of agent iterations, strictly one at a time."""

    def __init__(
        self,
        invoker: AgentInvoker,
        task_list_path: Path,
        progress_log_path: Path,
        sentinel: str = DEFAULT_SENTINEL,
        on_agent_failure: str = "abort",
        prompt_loader: Optional[PromptLoader] = None,
    ):
        """Initialize the runner.

        Args:
            invoker: Runs the agent once per iteration
            task_list_path: Task list file, written only by the agent
            progress_log_path: Progress log file, appended only by the agent
            sentinel: Literal token that ends the loop when found in agent output
            on_agent_failure: "abort" to propagate invocation failures, "skip"
                to log them and move on to the next iteration
            prompt_loader: Loader for the iteration prompt template
        """
        if not sentinel:
            raise InvalidArgumentError("sentinel must be a non-empty string")
        if on_agent_failure not in FAILURE_POLICIES:
            raise InvalidArgumentError(
                f"on_agent_failure must be one of {FAILURE_POLICIES}, got '{on_agent_failure}'"
            )

        self.invoker = invoker
        self.task_store = TaskListStore(task_list_path)
        self.progress_log = ProgressLog(progress_log_path)
        self.sentinel = sentinel
        self.on_agent_failure = on_agent_failure
        self.prompt_loader = prompt_loader or PromptLoader()
        self.state = RunnerState.IDLE
        self.history: List[IterationRecord] = []

    @classmethod
    def from_config(cls, config: Config, invoker: Optional[AgentInvoker] = None) -> "TaskRunner":
        """Build a runner (and, unless given, a subprocess invoker) from config."""
        if invoker is None:
            agent = get_cli_agent(config.agent, command=config.agent_command)
            invoker = SubprocessAgentInvoker(
                agent,
                working_directory=config.resolved_working_directory,
                model=config.model,
                echo_output=config.echo_agent_output,
            )

        return cls(
            invoker=invoker,
            task_list_path=config.resolved_task_list_path,
            progress_log_path=config.resolved_progress_log_path,
            sentinel=config.sentinel,
            on_agent_failure=config.on_agent_failure,
        )

    def run(self, max_iterations: int) -> TerminationReason:
        """Run up to ``max_iterations`` agent invocations.

        Args:
            max_iterations: Iteration cap, at least 1

        Returns:
            Completed(k) if the sentinel appeared on iteration k, otherwise
            Exhausted(max_iterations)

        Raises:
            InvalidArgumentError: If max_iterations is not a positive integer
            TaskListError: If the task list cannot be read at the start of an iteration
            ProgressLogError: If the progress log exists but cannot be read
            AgentInvocationError: If an invocation fails and the policy is "abort"
        """
        if isinstance(max_iterations, bool) or not isinstance(max_iterations, int):
            raise InvalidArgumentError(
                f"max_iterations must be an integer, got {type(max_iterations).__name__}"
            )
        if max_iterations < 1:
            raise InvalidArgumentError(f"max_iterations must be >= 1, got {max_iterations}")

        self.history = []
        self.progress_log.reset()
        self.state = RunnerState.RUNNING
        logger.info("run_started", max_iterations=max_iterations, task_list=str(self.task_store.path))

        try:
            for iteration in range(1, max_iterations + 1):
                if self._run_iteration(iteration, max_iterations):
                    result: TerminationReason = Completed(iteration)
                    logger.info("run_completed", iterations=iteration)
                    return result

            result = Exhausted(max_iterations)
            logger.info(
                "run_exhausted",
                max_iterations=max_iterations,
                note="iteration cap reached without completion signal",
            )
            return result
        finally:
            self.state = RunnerState.TERMINATED

    def _run_iteration(self, iteration: int, max_iterations: int) -> bool:
        """Run one iteration; return True if the agent signalled completion."""
        log = logger.bind(iteration=iteration, max_iterations=max_iterations)

        tasks = self.task_store.read()
        progress = self.progress_log.read()
        summary = tasks.tasks.summary()
        log.info("iteration_started", pending=summary["pending"], done=summary["done"])

        prompt = self.prompt_loader.format_iteration_prompt(
            task_list=tasks.content,
            progress_log=progress.content,
            sentinel=self.sentinel,
            task_list_path=str(self.task_store.path),
            progress_log_path=str(self.progress_log.path),
        )

        try:
            result = self.invoker.invoke(prompt)
        except AgentInvocationError as e:
            self.history.append(
                IterationRecord(
                    iteration=iteration,
                    pending_tasks=summary["pending"],
                    exit_code=e.exit_code,
                    duration_seconds=0.0,
                    sentinel_found=False,
                    failed=True,
                )
            )
            if self.on_agent_failure == "skip":
                log.warning("agent_failed_skipping", error=str(e), exit_code=e.exit_code)
                return False
            log.error("agent_failed_aborting", error=str(e), exit_code=e.exit_code)
            raise

        found = self.sentinel in result.output
        self.history.append(
            IterationRecord(
                iteration=iteration,
                pending_tasks=summary["pending"],
                exit_code=result.exit_code,
                duration_seconds=result.duration_seconds,
                sentinel_found=found,
            )
        )
        log.info(
            "iteration_finished",
            exit_code=result.exit_code,
            duration=round(result.duration_seconds, 2),
            sentinel_found=found,
        )
        return found
