"""Core runtime: configuration, logging, prompts and the task loop."""
