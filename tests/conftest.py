from __future__ import annotations

from pathlib import Path

import pytest

from cementci.cache import CacheKeyDeriver, CacheStore
from cementci.errors import ToolFailure
from cementci.model import PipelineContext
from cementci.runner import ToolRunner
from cementci.ui.console import Console, set_console


class FakeRunner(ToolRunner):
    """
    Records every invocation instead of spawning processes.

    respond("dotnet", "test", lines=[...], exit_status=1) scripts the output
    and exit status of any command starting with that prefix.
    """

    def __init__(self):
        super().__init__(console=Console())
        self.calls = []
        self._responses = []

    def respond(self, *prefix, lines=(), exit_status=0):
        self._responses.append(([str(p) for p in prefix], list(lines), exit_status))

    def execute(self, inv):
        self.calls.append(inv)
        cmd = [inv.executable, *inv.args]
        lines, status = [], 0
        for prefix, r_lines, r_status in self._responses:
            if cmd[: len(prefix)] == prefix:
                lines, status = r_lines, r_status
                break
        for line in lines:
            if inv.on_line is not None:
                inv.on_line(line)
        if status != 0:
            raise ToolFailure(inv.executable, [self.mask(a) for a in inv.args], status)
        return 0

    @property
    def commands(self):
        return [[c.executable, *c.args] for c in self.calls]


@pytest.fixture(autouse=True)
def quiet_console():
    set_console(Console())
    yield


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def module(tmp_path) -> Path:
    m = tmp_path / "workspace" / "Vostok.Sample"
    m.mkdir(parents=True)
    return m


@pytest.fixture
def make_ctx(tmp_path, module):
    def _make(**overrides) -> PipelineContext:
        values = dict(
            job="build",
            revision="3f2a9c1d",
            ref="refs/heads/main",
            run_number=42,
            workspace=module.parent,
            module_folder=module,
            platform="linux",
            references="cement",
            framework="net8.0",
        )
        values.update(overrides)
        return PipelineContext(**values)

    return _make


@pytest.fixture
def store(tmp_path) -> CacheStore:
    return CacheStore(tmp_path / "cache")


@pytest.fixture
def make_keys(tmp_path, module):
    def _make(revision="3f2a9c1d") -> CacheKeyDeriver:
        return CacheKeyDeriver(revision, module, home=tmp_path / "home")

    return _make
