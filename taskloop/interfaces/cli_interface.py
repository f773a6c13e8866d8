"""Abstract interface for CLI AI agents."""

from abc import ABC, abstractmethod
from typing import List, Optional
import re
import logging

from taskloop.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CLIAgentInterface(ABC):
    """Abstract interface for CLI AI agents.

    Every agent runs non-interactively: it reads the full prompt on stdin,
    works until it is done and prints its transcript on stdout.
    """

    name = "agent"

    @abstractmethod
    def get_launch_command(self, model: Optional[str] = None) -> List[str]:
        """Generate the argv that runs one non-interactive agent session.

        Args:
            model: Optional model override

        Returns:
            Command as an argv list; the prompt is supplied on stdin
        """
        pass

    @abstractmethod
    def get_stuck_patterns(self) -> List[str]:
        """Return patterns that indicate the agent hit a blocking problem.

        Returns:
            List of patterns to check for stuck state
        """
        pass

    def is_stuck(self, output: str) -> bool:
        """Check if the agent appears stuck.

        Args:
            output: Output from the agent

        Returns:
            True if stuck, False otherwise
        """
        for pattern in self.get_stuck_patterns():
            if re.search(pattern, output, re.MULTILINE | re.IGNORECASE):
                return True
        return False


class ClaudeCodeAgent(CLIAgentInterface):
    """Implementation for Claude Code CLI in print mode."""

    name = "claude"

    def get_launch_command(self, model: Optional[str] = None) -> List[str]:
        command = ["claude", "-p", "--dangerously-skip-permissions"]
        if model:
            command.extend(["--model", model])
        return command

    def get_stuck_patterns(self) -> List[str]:
        return [
            r"rate limit exceeded",
            r"API error",
            r"connection timeout",
            r"Error:.*API",
            r"Failed to connect",
            r"Maximum retries exceeded",
        ]


class CodexAgent(CLIAgentInterface):
    """Implementation for Codex CLI.

    ``codex exec -`` reads the prompt from stdin.
    """

    name = "codex"

    def get_launch_command(self, model: Optional[str] = None) -> List[str]:
        command = ["codex", "exec", "--dangerously-bypass-approvals-and-sandbox"]
        if model:
            command.extend(["--model", model])
        command.append("-")
        return command

    def get_stuck_patterns(self) -> List[str]:
        return [
            r"error:",
            r"connection failed",
            r"timeout",
            r"invalid response",
            r"Authentication failed",
            r"Rate limit",
        ]


class AmpAgent(CLIAgentInterface):
    """Implementation for Amp CLI, which executes a piped prompt and exits."""

    name = "amp"

    def get_launch_command(self, model: Optional[str] = None) -> List[str]:
        if model:
            logger.warning(f"Amp does not accept a model flag; ignoring model '{model}'")
        return ["amp", "--dangerously-allow-all"]

    def get_stuck_patterns(self) -> List[str]:
        return [
            r"rate limit",
            r"authentication failed",
            r"invalid API key",
            r"Failed to connect",
        ]


class CommandAgent(CLIAgentInterface):
    """Any other CLI: run a user-supplied argv with the prompt on stdin."""

    name = "command"

    def __init__(self, command: Optional[List[str]] = None):
        if not command:
            raise ConfigurationError(
                "The 'command' agent requires agent_command (e.g. --agent-command 'my-agent --yes')"
            )
        self.command = list(command)

    def get_launch_command(self, model: Optional[str] = None) -> List[str]:
        # model is not injected into arbitrary commands
        return list(self.command)

    def get_stuck_patterns(self) -> List[str]:
        return []


# Registry for available CLI agents
CLI_AGENTS = {
    "claude": ClaudeCodeAgent,
    "codex": CodexAgent,
    "amp": AmpAgent,
    "command": CommandAgent,
}


def get_cli_agent(agent_type: str, command: Optional[List[str]] = None) -> CLIAgentInterface:
    """Get a CLI agent instance by type.

    Args:
        agent_type: Type of CLI agent (claude, codex, amp, command)
        command: Argv for the 'command' agent

    Returns:
        CLI agent instance

    Raises:
        ConfigurationError: If agent type is not supported
    """
    if agent_type not in CLI_AGENTS:
        raise ConfigurationError(
            f"Unsupported CLI agent type: {agent_type}. Available: {list(CLI_AGENTS.keys())}"
        )

    if agent_type == "command":
        return CommandAgent(command)
    return CLI_AGENTS[agent_type]()
