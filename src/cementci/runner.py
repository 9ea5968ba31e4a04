# runner.py
from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import IO, Dict, List, Optional, cast

from .errors import ToolFailure
from .model import LineObserver, ToolInvocation
from .ui.console import Console, get_console


TOOL_HINTS = {
    "cm": "Cement is installed by the build job; make sure ~/bin is on PATH.",
    "dotnet": "Install the .NET SDK or fix PATH.",
    "git": "Install Git or fix PATH.",
    "chmod": "chmod is only needed on linux/macOS runners.",
}

MASK = "***"


class ToolRunner:
    """
    Runs external tools one at a time, streaming their stdout.

    Every child gets the full inherited environment plus whatever the
    pipeline added (extra PATH entries after installing the toolchain).
    """

    def __init__(self, console: Optional[Console] = None, env: Optional[Dict[str, str]] = None):
        self._console = console
        self._env = dict(env or {})
        self._extra_paths: List[str] = []
        self._secrets: List[str] = []

    @property
    def console(self) -> Console:
        return self._console or get_console()

    def add_path(self, directory: str | Path) -> None:
        """Prepend a directory to PATH for all later invocations."""
        d = str(directory)
        if d not in self._extra_paths:
            self._extra_paths.insert(0, d)

    def add_secret(self, value: Optional[str]) -> None:
        """Never echo `value`; it is replaced with *** in logs and errors."""
        if value:
            self._secrets.append(value)

    def mask(self, text: str) -> str:
        for s in self._secrets:
            text = text.replace(s, MASK)
        return text

    def environment(self) -> Dict[str, str]:
        env = os.environ.copy()
        env.update(self._env)
        if self._extra_paths:
            parts = self._extra_paths + [p for p in [env.get("PATH", "")] if p]
            env["PATH"] = os.pathsep.join(parts)
        return env

    def _resolve(self, executable: str, env: Dict[str, str]) -> str:
        # bare names go through PATH lookup so PATH additions (and .cmd/.exe
        # suffixes on windows) are honoured; relative paths are left to cwd
        if os.sep in executable or (os.altsep and os.altsep in executable):
            return executable
        return shutil.which(executable, path=env.get("PATH")) or executable

    def run(
        self,
        executable: str,
        args: Optional[List[str]] = None,
        cwd: str | Path | None = None,
        on_line: Optional[LineObserver] = None,
    ) -> int:
        """
        Run `executable` to completion and return its exit status (always 0:
        any other status raises ToolFailure).

        `on_line` sees every stdout line, synchronously and in order.
        """
        inv = ToolInvocation(
            executable=executable,
            args=[str(a) for a in (args or [])],
            cwd=str(cwd) if cwd is not None else None,
            on_line=on_line,
        )
        return self.execute(inv)

    def execute(self, inv: ToolInvocation) -> int:
        masked_args = [self.mask(a) for a in inv.args]
        cmd_display = " ".join([inv.executable, *masked_args])

        if inv.cwd is not None and not Path(inv.cwd).is_dir():
            raise FileNotFoundError(f"cwd not found for '{cmd_display}': {inv.cwd}")

        env = self.environment()
        self.console.print_command(cmd_display, inv.cwd)

        try:
            proc = subprocess.Popen(
                [self._resolve(inv.executable, env), *inv.args],
                cwd=inv.cwd,
                env=env,
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except (FileNotFoundError, PermissionError):
            raise ToolFailure(
                executable=inv.executable,
                arguments=masked_args,
                exit_status=127,
                hint=TOOL_HINTS.get(inv.executable, f"Install {inv.executable} or fix PATH."),
            ) from None

        stdout = cast(IO[str], proc.stdout)  # stdout=PIPE
        try:
            for raw in stdout:
                line = raw.rstrip("\r\n")
                self.console.print_output(self.mask(line))
                if inv.on_line is not None:
                    inv.on_line(line)
        except BaseException:
            proc.kill()
            proc.wait()
            raise
        finally:
            stdout.close()

        exit_status = proc.wait()
        if exit_status != 0:
            raise ToolFailure(executable=inv.executable, arguments=masked_args, exit_status=exit_status)
        return exit_status
