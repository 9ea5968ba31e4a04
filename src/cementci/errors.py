# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class PipelineError(Exception):
    """Base class for every failure the pipeline reports."""


@dataclass
class UnsupportedPlatform(PipelineError):
    platform: str

    def __str__(self) -> str:
        return f"Unknown {self.platform!r} os."


@dataclass
class ToolFailure(PipelineError):
    """
    An external invocation exited non-zero.

    `arguments` is already masked: secrets registered on the runner never
    appear here.
    """
    executable: str
    arguments: List[str] = field(default_factory=list)
    exit_status: int = 1
    hint: Optional[str] = None

    @property
    def cmd(self) -> str:
        return " ".join([self.executable, *self.arguments])

    def __str__(self) -> str:
        msg = f"'{self.cmd}' failed (exit={self.exit_status})"
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg


@dataclass
class NoTestsDetected(PipelineError):
    framework: Optional[str] = None

    def __str__(self) -> str:
        if self.framework:
            return f"Tests not found (framework={self.framework})."
        return "Tests not found."


@dataclass
class UnknownJob(PipelineError):
    job_name: str

    def __str__(self) -> str:
        return f"Unknown '{self.job_name}' job."


@dataclass
class RevisionUnavailable(PipelineError):
    workspace: str

    def __str__(self) -> str:
        return (
            f"Could not determine revision: GITHUB_SHA is not set and git could not resolve HEAD in {self.workspace}."
            "\nHint: pass --revision <sha>"
        )
