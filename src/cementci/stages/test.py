# stages/test.py
from __future__ import annotations

from typing import List

from ..errors import NoTestsDetected
from ..ui.console import Console
from .base import Stage

SUMMARY_MARKER = "Total:   "


class SummaryLineObserver:
    """
    Watches `dotnet test` output for summary lines.

    Whether a summary was printed is tracked separately from the exit
    status: a zero exit with no summary means discovery found nothing.
    """

    def __init__(self, console: Console):
        self.console = console
        self.summaries: List[str] = []

    def __call__(self, line: str) -> None:
        if SUMMARY_MARKER in line:
            self.summaries.append(line)
            self.console.print_notice(line)

    @property
    def seen(self) -> bool:
        return bool(self.summaries)


class TestStage(Stage):
    __test__ = False  # not a pytest class

    name = "test"

    def test_args(self) -> List[str]:
        args = ["test", "-c", "Release", "--logger", "GitHubActions"]
        if self.ctx.framework:
            args += ["--framework", self.ctx.framework]
        args.append("--no-build")
        return args

    def run(self) -> None:
        self.group("Uncache")
        self.restore_cache()

        self.group("Restore")
        self.dotnet("restore")

        self.group("Test")
        observer = SummaryLineObserver(self.console)
        self.dotnet(*self.test_args(), on_line=observer)
        if not observer.seen:
            raise NoTestsDetected(self.ctx.framework)
