"""Synchronous invocation of an external coding agent."""

import os
import sys
import time
import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol

from taskloop.core.exceptions import AgentInvocationError
from taskloop.interfaces.cli_interface import CLIAgentInterface

logger = logging.getLogger(__name__)

# Characters of output kept on failure messages
FAILURE_TAIL_CHARS = 2000


@dataclass(frozen=True)
class AgentResult:
    """Full outcome of one agent invocation."""
    output: str
    exit_code: int
    duration_seconds: float = 0.0


class AgentInvoker(Protocol):
    """Anything that can run the agent once on a prompt."""

    def invoke(self, prompt: str) -> AgentResult:
        ...


class SubprocessAgentInvoker:
    """Runs a CLI agent as a child process, one blocking call per prompt."""

    def __init__(
        self,
        agent: CLIAgentInterface,
        working_directory: Path,
        model: Optional[str] = None,
        echo_output: bool = False,
        env: Optional[Dict[str, str]] = None,
    ):
        """Initialize the invoker.

        Args:
            agent: CLI agent adapter providing the launch command
            working_directory: Directory the agent process runs in
            model: Optional model override passed to the adapter
            echo_output: Print each invocation's output to stdout
            env: Extra environment variables for the child process
        """
        self.agent = agent
        self.working_directory = Path(working_directory)
        self.model = model
        self.echo_output = echo_output
        self.env = env

    def invoke(self, prompt: str) -> AgentResult:
        """Run the agent on a prompt and wait for it to exit.

        Args:
            prompt: Full prompt, delivered on the agent's stdin

        Returns:
            AgentResult with combined stdout/stderr and exit code

        Raises:
            AgentInvocationError: If the process cannot start or exits nonzero
        """
        command = self.agent.get_launch_command(self.model)
        logger.debug(f"Launching agent: {' '.join(command)} (cwd={self.working_directory})")

        child_env = None
        if self.env:
            child_env = {**os.environ, **self.env}

        # Prompt reaches the child on stdin via a temp file
        fd, prompt_file = tempfile.mkstemp(prefix="taskloop_prompt_", suffix=".md")
        started = time.monotonic()
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(prompt)

            with open(prompt_file, "r", encoding="utf-8") as stdin:
                proc = subprocess.run(
                    command,
                    stdin=stdin,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    cwd=str(self.working_directory),
                    env=child_env,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    check=False,
                )
        except OSError as e:
            raise AgentInvocationError(f"Failed to start agent '{command[0]}': {e}") from e
        finally:
            try:
                os.unlink(prompt_file)
            except OSError:
                logger.debug(f"Prompt file already removed: {prompt_file}")

        duration = time.monotonic() - started
        output = proc.stdout or ""

        if self.echo_output and output:
            sys.stdout.write(output)
            if not output.endswith("\n"):
                sys.stdout.write("\n")
            sys.stdout.flush()

        if proc.returncode != 0:
            hint = " (output suggests the agent is stuck)" if self.agent.is_stuck(output) else ""
            raise AgentInvocationError(
                f"Agent '{command[0]}' exited with code {proc.returncode}{hint}",
                exit_code=proc.returncode,
                output=output[-FAILURE_TAIL_CHARS:],
            )

        return AgentResult(output=output, exit_code=proc.returncode, duration_seconds=duration)
