"""Command-line entry point for taskloop.

Usage:
    taskloop [options] ITERATIONS
    taskloop [options] --once

Runs the agent up to ITERATIONS times against the task list and progress log,
stopping early when the agent prints the completion sentinel. ``--once`` runs
a single iteration, for stepping through a task list by hand.
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from taskloop import __version__
from taskloop.core.exceptions import (
    AgentInvocationError,
    ConfigurationError,
    InvalidArgumentError,
    ProgressLogError,
    TaskListError,
)
from taskloop.core.logging_config import setup_logging
from taskloop.core.runner import TaskRunner
from taskloop.core.simple_config import load_config

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def positive_int(value: str) -> int:
    """argparse type for the iteration cap."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid iteration count: '{value}' is not an integer")
    if number < 1:
        raise argparse.ArgumentTypeError(f"invalid iteration count: {number} (must be >= 1)")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskloop",
        description="Run a coding agent over a task list until it signals completion "
                    "or the iteration cap is reached.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    cap = parser.add_mutually_exclusive_group(required=True)
    cap.add_argument(
        "iterations",
        nargs="?",
        type=positive_int,
        help="Maximum number of agent iterations (>= 1)",
    )
    cap.add_argument(
        "--once",
        action="store_true",
        help="Run exactly one iteration",
    )

    parser.add_argument("--config", type=str, help="Path to a taskloop YAML config file")
    parser.add_argument("--agent", type=str, help="CLI agent to run (claude, codex, amp, command)")
    parser.add_argument("--model", type=str, help="Model override passed to the agent")
    parser.add_argument(
        "--agent-command",
        type=str,
        help="Command line for --agent command; the prompt is supplied on stdin",
    )
    parser.add_argument("--workdir", type=str, help="Directory the agent runs in")
    parser.add_argument("--task-list", type=str, help="Task list file (default: prd.json)")
    parser.add_argument("--progress-log", type=str, help="Progress log file (default: progress.txt)")
    parser.add_argument("--sentinel", type=str, help="Completion token to look for in agent output")
    parser.add_argument(
        "--on-agent-failure",
        choices=["abort", "skip"],
        help="What to do when an agent invocation fails (default: abort)",
    )
    parser.add_argument(
        "--fail-on-exhausted",
        action="store_true",
        default=None,
        help="Exit with code 3 when the cap is reached without completion",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not echo agent output to the console",
    )
    parser.add_argument("--log-level", type=str, help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--log-format", choices=["console", "json"], help="Log output format")
    parser.add_argument("--log-file", type=str, help="Also write JSON logs to this file")
    return parser


def _overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {
        "agent": args.agent,
        "model": args.model,
        "agent_command": args.agent_command,
        "working_directory": args.workdir,
        "task_list_path": args.task_list,
        "progress_log_path": args.progress_log,
        "sentinel": args.sentinel,
        "on_agent_failure": args.on_agent_failure,
        "fail_on_exhausted": args.fail_on_exhausted,
        "log_level": args.log_level,
        "log_format": args.log_format,
        "log_file": args.log_file,
    }
    if args.quiet:
        overrides["echo_agent_output"] = False
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    """Run the task loop from the command line and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    max_iterations = 1 if args.once else args.iterations

    try:
        config = load_config(args.config, overrides=_overrides_from_args(args))
    except ConfigurationError as e:
        print(f"taskloop: configuration error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        setup_logging(config.log_level, config.log_format, config.log_file)
    except OSError as e:
        print(f"taskloop: configuration error: cannot open log file {config.log_file}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        runner = TaskRunner.from_config(config)
        result = runner.run(max_iterations)
    except InvalidArgumentError as e:
        parser.print_usage(sys.stderr)
        print(f"taskloop: error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except (ConfigurationError, TaskListError, ProgressLogError) as e:
        logger.error(str(e))
        print(f"taskloop: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except AgentInvocationError as e:
        if e.output:
            logger.debug(f"Last agent output:\n{e.output}")
        print(f"taskloop: agent invocation failed: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("taskloop: interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED

    print(f"taskloop: {result}")
    return result.exit_code(config.fail_on_exhausted)


if __name__ == "__main__":
    sys.exit(main())
