"""Subprocess utilities for running git."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import GitCommandError

logger = logging.getLogger(__name__)


def git_env() -> Dict[str, str]:
    """Environment for git children: never block on an interactive prompt."""
    env = dict(os.environ)
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def run_git_command(
    args: List[str], cwd: Optional[Path] = None
) -> subprocess.CompletedProcess[str]:
    """Run a git command and return the result.

    Raises GitCommandError carrying the captured stderr on a non-zero exit.
    """
    cmd = ["git", *args]
    logger.debug("Running: %s%s", " ".join(cmd), f" (in {cwd})" if cwd else "")
    result = subprocess.run(
        cmd,
        cwd=str(cwd) if cwd else None,
        capture_output=True,
        text=True,
        env=git_env(),
    )
    if result.returncode != 0:
        logger.debug(
            "Command failed with exit code %s: %s", result.returncode, result.stderr
        )
        raise GitCommandError(cmd, result.returncode, result.stderr)
    return result


def git_output(args: List[str], cwd: Optional[Path] = None) -> str:
    """Run a git command and return its stripped stdout."""
    return run_git_command(args, cwd=cwd).stdout.strip()
