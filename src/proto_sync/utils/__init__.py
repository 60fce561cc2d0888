"""Utility modules for proto-sync."""

from .console import console, err_console
from .logger import setup_logging
from .subprocess_utils import git_output, run_git_command

__all__ = ["console", "err_console", "setup_logging", "git_output", "run_git_command"]
