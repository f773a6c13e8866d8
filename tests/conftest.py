"""Shared pytest fixtures for taskloop tests."""

import json
import logging

import pytest

from taskloop.core.exceptions import AgentInvocationError
from taskloop.core.simple_config import ENV_OVERRIDES, CONFIG_PATH_ENV
from taskloop.interfaces.agent_invoker import AgentResult

SENTINEL = "<promise>COMPLETE</promise>"


class ScriptedInvoker:
    """Stand-in agent that returns scripted outputs and records every prompt.

    Each script entry is either a string (returned as output with exit code 0)
    or an exception instance (raised). An optional ``side_effect`` callable is
    called with the iteration number before the output is returned, which lets
    tests mutate the task list or progress log the way a real agent would.
    """

    def __init__(self, outputs, side_effect=None):
        self.outputs = list(outputs)
        self.side_effect = side_effect
        self.prompts = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def invoke(self, prompt: str) -> AgentResult:
        self.prompts.append(prompt)
        if not self.outputs:
            raise AssertionError("agent invoked more times than scripted")
        item = self.outputs.pop(0)
        if self.side_effect:
            self.side_effect(self.calls)
        if isinstance(item, BaseException):
            raise item
        return AgentResult(output=item, exit_code=0, duration_seconds=0.01)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep TASKLOOP_* variables and logging handlers from leaking between tests."""
    for name in list(ENV_OVERRIDES) + [CONFIG_PATH_ENV]:
        monkeypatch.delenv(name, raising=False)

    root_logger = logging.getLogger("taskloop")
    handlers = list(root_logger.handlers)
    propagate = root_logger.propagate
    yield
    for handler in list(root_logger.handlers):
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.propagate = propagate


@pytest.fixture
def task_records():
    return [
        {
            "id": "US-001",
            "title": "Add login form",
            "acceptanceCriteria": ["Form renders", "Typecheck passes"],
            "priority": 1,
            "passes": False,
        },
        {
            "id": "US-002",
            "title": "Add logout button",
            "acceptanceCriteria": "Button clears the session",
            "priority": 2,
            "passes": False,
        },
    ]


@pytest.fixture
def workspace(tmp_path, task_records):
    """A project directory with a two-task prd.json and a one-entry progress log."""
    (tmp_path / "prd.json").write_text(
        json.dumps({"branchName": "feature/auth", "userStories": task_records}, indent=2)
    )
    (tmp_path / "progress.txt").write_text("## Codebase Patterns\n- use the shared form helpers\n")
    return tmp_path


@pytest.fixture
def make_runner(workspace):
    """Factory building a TaskRunner over the workspace files."""
    from taskloop.core.runner import TaskRunner

    def _make(invoker, **kwargs):
        return TaskRunner(
            invoker=invoker,
            task_list_path=workspace / "prd.json",
            progress_log_path=workspace / "progress.txt",
            sentinel=kwargs.pop("sentinel", SENTINEL),
            **kwargs,
        )

    return _make


@pytest.fixture
def agent_failure():
    """Factory for the error a failing agent process produces."""

    def _make(exit_code=1, output="boom"):
        return AgentInvocationError(f"Agent 'fake' exited with code {exit_code}", exit_code=exit_code, output=output)

    return _make


@pytest.fixture
def python_agent_command(tmp_path):
    """Write a tiny Python 'agent' script and return a factory for its argv.

    The script echoes its stdin length, prints the given text and exits with
    the given code, so real subprocess invocations can be exercised.
    """
    import sys

    def _make(text="working...", exit_code=0):
        script = tmp_path / f"fake_agent_{exit_code}_{abs(hash(text))}.py"
        script.write_text(
            "import sys\n"
            "prompt = sys.stdin.read()\n"
            "print('received %d chars' % len(prompt))\n"
            f"print({text!r})\n"
            f"sys.exit({exit_code})\n"
        )
        return [sys.executable, str(script)]

    return _make


@pytest.fixture
def scripted():
    """Factory for ScriptedInvoker instances."""
    return ScriptedInvoker


@pytest.fixture
def sentinel():
    return SENTINEL
