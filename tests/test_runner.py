"""Tests for ToolRunner against real child processes."""
import os
import sys

import pytest

from cementci.errors import ToolFailure
from cementci.runner import ToolRunner


def _py(code):
    return [sys.executable, ["-c", code]]


def test_lines_reach_observer_in_order():
    runner = ToolRunner()
    seen = []
    exe, args = _py("for i in range(5): print(f'line {i}')")

    assert runner.run(exe, args, on_line=seen.append) == 0
    assert seen == [f"line {i}" for i in range(5)]


def test_non_zero_exit_raises_tool_failure():
    runner = ToolRunner()
    exe, args = _py("import sys; sys.exit(3)")

    with pytest.raises(ToolFailure) as exc:
        runner.run(exe, args)
    assert exc.value.exit_status == 3
    assert exc.value.executable == sys.executable
    assert exc.value.arguments == ["-c", "import sys; sys.exit(3)"]


def test_observer_sees_output_of_failing_tool():
    """Output inspection and exit status are separate signals."""
    runner = ToolRunner()
    seen = []
    exe, args = _py("print('Total:     1'); raise SystemExit(1)")

    with pytest.raises(ToolFailure):
        runner.run(exe, args, on_line=seen.append)
    assert seen == ["Total:     1"]


def test_missing_executable_is_tool_failure():
    runner = ToolRunner()
    with pytest.raises(ToolFailure) as exc:
        runner.run("cementci-no-such-tool", ["--version"])
    assert exc.value.exit_status == 127
    assert exc.value.hint


def test_missing_cwd_raises(tmp_path):
    runner = ToolRunner()
    exe, args = _py("pass")
    with pytest.raises(FileNotFoundError):
        runner.run(exe, args, cwd=tmp_path / "nope")


def test_runs_in_cwd(tmp_path):
    runner = ToolRunner()
    seen = []
    exe, args = _py("import os; print(os.getcwd())")

    runner.run(exe, args, cwd=tmp_path, on_line=seen.append)
    assert os.path.realpath(seen[0]) == os.path.realpath(tmp_path)


def test_path_additions_are_inherited(tmp_path):
    runner = ToolRunner()
    runner.add_path(tmp_path / "bin")
    seen = []
    exe, args = _py("import os; print(os.environ['PATH'].split(os.pathsep)[0])")

    runner.run(exe, args, on_line=seen.append)
    assert seen == [str(tmp_path / "bin")]


def test_environment_keeps_parent_variables(monkeypatch):
    monkeypatch.setenv("CEMENTCI_TEST_VAR", "kept")
    runner = ToolRunner(env={"EXTRA": "1"})
    env = runner.environment()

    assert env["CEMENTCI_TEST_VAR"] == "kept"
    assert env["EXTRA"] == "1"


def test_secrets_are_masked(capsys):
    runner = ToolRunner()
    runner.add_secret("s3cr3t")
    exe, args = _py("import sys; print(sys.argv[1]); sys.exit(2)")
    args = args + ["s3cr3t"]

    with pytest.raises(ToolFailure) as exc:
        runner.run(exe, args)

    out = capsys.readouterr().out
    assert "s3cr3t" not in out
    assert "***" in out
    assert "s3cr3t" not in str(exc.value)
    assert exc.value.arguments[-1] == "***"
