"""Utility for loading and formatting agent prompts."""

from pathlib import Path
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_PROMPTS_DIR = Path(__file__).parent.parent / "prompts"
EMPTY_PROGRESS_LOG = "(no progress entries yet)"


class PromptLoader:
    """Load and format prompts from markdown files."""

    def __init__(self, prompts_dir: Optional[Path] = None):
        """Initialize prompt loader with prompts directory path."""
        self.prompts_dir = Path(prompts_dir) if prompts_dir else DEFAULT_PROMPTS_DIR
        if not self.prompts_dir.exists():
            raise ValueError(f"Prompts directory not found: {self.prompts_dir}")

    def load_prompt(self, prompt_name: str) -> str:
        """Load a prompt from its markdown file.

        Args:
            prompt_name: Name of the prompt file (without .md extension)

        Returns:
            Raw prompt template string
        """
        prompt_path = self.prompts_dir / f"{prompt_name}.md"
        if not prompt_path.exists():
            raise ValueError(f"Prompt file not found: {prompt_path}")

        with open(prompt_path, "r", encoding="utf-8") as f:
            return f.read()

    def format_iteration_prompt(
        self,
        task_list: str,
        progress_log: str,
        sentinel: str,
        task_list_path: str = "prd.json",
        progress_log_path: str = "progress.txt",
    ) -> str:
        """Format the fixed per-iteration instruction prompt.

        Args:
            task_list: Raw task list content as read this iteration
            progress_log: Raw progress log content as read this iteration
            sentinel: Completion token the agent prints when all tasks are done
            task_list_path: Path shown to the agent for the task list
            progress_log_path: Path shown to the agent for the progress log

        Returns:
            Formatted prompt ready for the agent
        """
        template = self.load_prompt("iteration")

        prompt = template.format(
            task_list=task_list.rstrip("\n"),
            progress_log=progress_log.rstrip("\n") or EMPTY_PROGRESS_LOG,
            sentinel=sentinel,
            task_list_path=task_list_path,
            progress_log_path=progress_log_path,
        )
        logger.debug("iteration_prompt_formatted", length=len(prompt))
        return prompt
