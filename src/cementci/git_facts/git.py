# git.py
# Small, focused wrapper around the Git CLI.
# Used only when the CI environment does not tell us which revision we are
# building; everything else gets the revision from PipelineContext.

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional


def _git(args: list[str], cwd: Optional[str | Path] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    Args:
        args: List of git arguments (e.g. ["rev-parse", "HEAD"])
        cwd: Optional working directory in which to run the git command.

    Returns:
        Stdout from the git command with surrounding whitespace removed.

    Raises:
        subprocess.CalledProcessError: git exited non-zero
        FileNotFoundError: git is not installed
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=cwd,
        text=True,
        stderr=subprocess.DEVNULL,
    )
    return out.strip()


def head_sha(cwd: Optional[str | Path] = None) -> str:
    """
    Return the full SHA of HEAD.

    This is the revision cache keys are derived from when GITHUB_SHA is
    not set.
    """
    return _git(["rev-parse", "HEAD"], cwd=cwd)

