"""Interfaces to external CLI agents."""

from taskloop.interfaces.cli_interface import (
    CLI_AGENTS,
    CLIAgentInterface,
    ClaudeCodeAgent,
    CodexAgent,
    AmpAgent,
    CommandAgent,
    get_cli_agent,
)
from taskloop.interfaces.agent_invoker import (
    AgentInvoker,
    AgentResult,
    SubprocessAgentInvoker,
)

__all__ = [
    "CLI_AGENTS",
    "CLIAgentInterface",
    "ClaudeCodeAgent",
    "CodexAgent",
    "AmpAgent",
    "CommandAgent",
    "get_cli_agent",
    "AgentInvoker",
    "AgentResult",
    "SubprocessAgentInvoker",
]
