# stages/build.py
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from ..discovery import discover_projects
from ..model import ProjectSet
from ..toolchain import NUGET_SOURCE, CementInstaller, DotnetTools
from .base import Stage


class ReferenceStrategy(str, Enum):
    """How references between cement modules are resolved at build time."""
    CEMENT = "cement"
    REGISTRY = "registry"

    @classmethod
    def from_option(cls, value: Optional[str]) -> ReferenceStrategy:
        # only the literal "cement" builds dependencies from source
        return cls.CEMENT if value == "cement" else cls.REGISTRY


def _build_cement_deps(stage: BuildStage) -> None:
    stage.group("Build dependencies")
    stage.runner.run("cm", ["build-deps"], cwd=stage.module)


def _use_registry_references(stage: BuildStage) -> None:
    stage.group("Replace cement references")
    stage.tools.run(
        "dotnetcementrefs",
        [f"--source:{NUGET_SOURCE}", "--ensureMultitargeted"],
        cwd=stage.module,
    )


REFERENCE_STEPS = {
    ReferenceStrategy.CEMENT: _build_cement_deps,
    ReferenceStrategy.REGISTRY: _use_registry_references,
}

ANALYZERS = [
    ("Check ConfigureAwait(false)", "configure-await-false"),
    ("Check TaskCreationOptions.RunContinuationsAsynchronously", "tcs-create-options"),
]


class BuildStage(Stage):
    name = "build"

    def __init__(
        self,
        *args,
        installer: Optional[CementInstaller] = None,
        tools: Optional[DotnetTools] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.installer = installer or CementInstaller(self.runner, self.ctx.workspace)
        self.tools = tools or DotnetTools(self.runner)
        self.strategy = ReferenceStrategy.from_option(self.ctx.references)
        self.projects = ProjectSet()

    def run(self) -> None:
        self.console.print_info(f"Building '{self.ctx.ref}'")

        self.group("Install Cement")
        self.installer.install(self.ctx.platform)

        self.group("Download dependencies")
        self.runner.run("cm", ["init"], cwd=str(self.ctx.workspace))
        self.runner.run("cm", ["update-deps"], cwd=self.module)

        self.group("Locate projects")
        self.projects = discover_projects(self.ctx.module_folder)
        self.console.print_info(f"Detected project folders: {_joined(self.projects.projects)}")
        self.console.print_info(f"Detected test folders: {_joined(self.projects.tests)}")

        for title, tool in ANALYZERS:
            self.group(title)
            self.tools.run(tool, [str(p) for p in self.projects.projects])

        if not self.ctx.is_release:
            self.group("Add version suffix")
            self.tools.run("dotnetversionsuffix", [self.ctx.version_suffix], cwd=self.module)

        REFERENCE_STEPS[self.strategy](self)

        self.group("Build")
        self.dotnet("build", "-c", "Release")

        self.group("Cache")
        self.save_cache(self.ctx.cache_qualifier)


def _joined(paths) -> str:
    return ", ".join(str(Path(p)) for p in paths) or "(none)"
