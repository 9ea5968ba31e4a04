# stages/publish.py
from __future__ import annotations

from pathlib import Path
from typing import List

from ..discovery import discover_packages
from ..toolchain import NUGET_SOURCE
from .base import Stage

PUBLISH_CHANNEL = "nuget"


class PublishStage(Stage):
    name = "publish"

    def run(self) -> None:
        self.runner.add_secret(self.ctx.key)

        self.group("Uncache")
        self.restore_cache(PUBLISH_CHANNEL)

        self.group("Restore")
        self.dotnet("restore")

        self.group("Pack")
        self.dotnet("pack", "-c", "Release", "--no-build")

        self.group("Publish")
        packages = discover_packages(self.ctx.module_folder)
        self.console.print_info(f"Detected packages: {', '.join(map(str, packages)) or '(none)'}")
        self.push_all(packages)

    def push_all(self, packages: List[Path]) -> None:
        # the first failing push raises and the rest are never attempted
        for package in packages:
            self.runner.run(
                "dotnet",
                ["nuget", "push", str(package), "--api-key", self.ctx.key or "", "--source", NUGET_SOURCE],
            )
            self.console.print_notice(f"{package} published")
