"""Configuration loading for taskloop.

Settings come from (lowest to highest precedence) the model defaults, a YAML
config file, ``TASKLOOP_*`` environment variables (a ``.env`` file is loaded
first) and explicit overrides passed by the CLI.
"""

import os
import shlex
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from taskloop.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "taskloop.yaml"
CONFIG_PATH_ENV = "TASKLOOP_CONFIG"
DEFAULT_SENTINEL = "<promise>COMPLETE</promise>"

# Environment variable -> config key
ENV_OVERRIDES = {
    "TASKLOOP_AGENT": "agent",
    "TASKLOOP_MODEL": "model",
    "TASKLOOP_AGENT_COMMAND": "agent_command",
    "TASKLOOP_WORKING_DIRECTORY": "working_directory",
    "TASKLOOP_TASK_LIST": "task_list_path",
    "TASKLOOP_PROGRESS_LOG": "progress_log_path",
    "TASKLOOP_SENTINEL": "sentinel",
    "TASKLOOP_ON_AGENT_FAILURE": "on_agent_failure",
    "TASKLOOP_FAIL_ON_EXHAUSTED": "fail_on_exhausted",
    "TASKLOOP_ECHO_AGENT_OUTPUT": "echo_agent_output",
    "TASKLOOP_LOG_LEVEL": "log_level",
    "TASKLOOP_LOG_FORMAT": "log_format",
    "TASKLOOP_LOG_FILE": "log_file",
}


class Config(BaseModel):
    """Runtime configuration for a task loop run.

    Unknown keys are rejected so a misspelled setting in the YAML file fails
    loudly instead of falling back to its default.
    """

    model_config = ConfigDict(extra="forbid")

    agent: str = Field("claude", description="CLI agent to invoke (claude, codex, amp, command)")
    model: Optional[str] = Field(None, description="Model override passed to the agent CLI")
    agent_command: Optional[List[str]] = Field(
        None,
        description="Argv for the 'command' agent; the prompt is supplied on stdin"
    )
    working_directory: Path = Field(Path("."), description="Directory the agent runs in")
    task_list_path: Path = Field(Path("prd.json"), description="Task list file")
    progress_log_path: Path = Field(Path("progress.txt"), description="Append-only progress log")
    sentinel: str = Field(DEFAULT_SENTINEL, description="Literal token that signals completion")
    on_agent_failure: Literal["abort", "skip"] = "abort"
    fail_on_exhausted: bool = False
    echo_agent_output: bool = True
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_file: Optional[Path] = None

    @field_validator("agent")
    @classmethod
    def validate_agent(cls, v: str) -> str:
        """Validate that agent is a registered CLI agent type."""
        # Import here to avoid circular dependency
        from taskloop.interfaces.cli_interface import CLI_AGENTS

        v = v.strip().lower()
        if v not in CLI_AGENTS:
            raise ValueError(
                f"Invalid agent '{v}'. Must be one of: {', '.join(CLI_AGENTS.keys())}"
            )
        return v

    @field_validator("agent_command", mode="before")
    @classmethod
    def split_agent_command(cls, v: Union[str, List[str], None]) -> Optional[List[str]]:
        """Accept the command either as an argv list or as one shell-like string."""
        if v is None:
            return None
        if isinstance(v, str):
            v = shlex.split(v)
        if not v:
            raise ValueError("agent_command must not be empty")
        return [str(part) for part in v]

    @field_validator("sentinel")
    @classmethod
    def validate_sentinel(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("sentinel must be a non-empty string")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log_level '{v}'")
        return level

    @property
    def resolved_working_directory(self) -> Path:
        return self.working_directory.expanduser().resolve()

    @property
    def resolved_task_list_path(self) -> Path:
        return self._resolve(self.task_list_path)

    @property
    def resolved_progress_log_path(self) -> Path:
        return self._resolve(self.progress_log_path)

    def _resolve(self, path: Path) -> Path:
        path = path.expanduser()
        if not path.is_absolute():
            path = self.resolved_working_directory / path
        return path


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, "r") as f:
            content = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {config_path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping, got {type(content).__name__}"
        )
    return content


def _find_config_file(config_path: Optional[Union[str, Path]]) -> Optional[Path]:
    if config_path:
        path = Path(config_path).expanduser()
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        return path

    env_path = os.getenv(CONFIG_PATH_ENV)
    if env_path:
        path = Path(env_path).expanduser()
        if not path.exists():
            raise ConfigurationError(
                f"Environment variable {CONFIG_PATH_ENV} points to '{env_path}', which does not exist."
            )
        return path

    default = Path.cwd() / DEFAULT_CONFIG_FILENAME
    if default.exists():
        return default
    return None


def _env_values() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for env_name, key in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is not None and raw != "":
            values[key] = raw
    return values


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Config:
    """Build a Config from file, environment and explicit overrides.

    Args:
        config_path: Explicit YAML config path; falls back to $TASKLOOP_CONFIG
            and then ./taskloop.yaml
        overrides: Values that win over everything else (None values are ignored)

    Returns:
        Validated Config

    Raises:
        ConfigurationError: If the file cannot be read or a value is invalid
    """
    load_dotenv(find_dotenv(usecwd=True))

    values: Dict[str, Any] = {}
    path = _find_config_file(config_path)
    if path:
        logger.debug(f"Loading config from {path}")
        values.update(_read_yaml(path))

    values.update(_env_values())

    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Config(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
