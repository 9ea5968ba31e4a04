# model.py
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from .errors import UnknownJob


# Called once per line of a tool's standard output, in arrival order.
LineObserver = Callable[[str], None]


class JobKind(str, Enum):
    """The three jobs a pipeline run can be."""
    BUILD = "build"
    TEST = "test"
    PUBLISH = "publish"

    @classmethod
    def parse(cls, job_name: str) -> JobKind:
        for kind in cls:
            if kind.value == job_name:
                return kind
        raise UnknownJob(job_name)


@dataclass(frozen=True)
class ToolInvocation:
    """One blocking call to an external executable."""
    executable: str
    args: List[str] = field(default_factory=list)
    cwd: Optional[str] = None
    on_line: Optional[LineObserver] = None


@dataclass(frozen=True)
class ProjectSet:
    """Buildable and test project folders of a module, in discovery order."""
    projects: List[Path] = field(default_factory=list)
    tests: List[Path] = field(default_factory=list)


@dataclass(frozen=True)
class PipelineContext:
    """
    Everything a stage needs to know about the current run.

    Built once at process start (see cli.py) and handed to every stage;
    nothing below the CLI reads CI environment variables itself.
    """
    job: str
    revision: str
    ref: str = ""
    run_number: int = 0
    workspace: Path = field(default_factory=Path.cwd)
    module_folder: Path = field(default_factory=Path.cwd)
    platform: str = sys.platform

    # options
    references: str = "cement"
    framework: Optional[str] = None
    key: Optional[str] = field(default=None, repr=False)
    cache_qualifier: Optional[str] = None

    @property
    def is_release(self) -> bool:
        return self.ref.startswith("refs/tags/")

    @property
    def version_suffix(self) -> str:
        # Run numbers past 999999 are not truncated; the suffix just grows.
        return "pre" + str(self.run_number).zfill(6)
