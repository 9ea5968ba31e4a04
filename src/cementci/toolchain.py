# toolchain.py
# Installing cement and the .NET helper tools the build stage relies on.

from __future__ import annotations

import os
import shutil
import urllib.request
import zipfile
from pathlib import Path
from typing import Callable, Dict, Optional, Set

from .errors import UnsupportedPlatform
from .runner import ToolRunner


CEMENT_URL = (
    "https://github.com/skbkontur/cement/releases/download/v1.0.96/"
    "37b0721909481833156818068686611ccaa5bca0.zip"
)
NUGET_SOURCE = "https://api.nuget.org/v3/index.json"

# sys.platform -> folder inside the cement release
PLATFORM_FOLDERS = {
    "linux": "linux-x64",
    "win32": "win10-x64",
    "darwin": "osx-x64",
}

# command name -> NuGet package id of the global tool providing it
DOTNET_TOOL_PACKAGES: Dict[str, str] = {}


def platform_folder(platform: str) -> str:
    """Cement distribution folder for `platform`; no fallback for others."""
    try:
        return PLATFORM_FOLDERS[platform]
    except KeyError:
        raise UnsupportedPlatform(platform) from None


def download_and_extract(url: str, dest: Path) -> Path:
    """Download a zip archive and extract it into `dest` (replaced if present)."""
    dest = Path(dest)
    if dest.exists():
        shutil.rmtree(dest)
    dest.mkdir(parents=True)

    archive = dest.with_suffix(".zip")
    with urllib.request.urlopen(url) as response, archive.open("wb") as out:
        shutil.copyfileobj(response, out)
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(dest)
            if os.name != "nt":
                _restore_modes(zf, dest)
    finally:
        archive.unlink(missing_ok=True)
    return dest


def _restore_modes(zf: zipfile.ZipFile, dest: Path) -> None:
    # extractall drops the unix permission bits kept in external_attr
    for info in zf.infolist():
        mode = (info.external_attr >> 16) & 0o777
        if mode and not info.is_dir():
            os.chmod(dest / info.filename, mode)


class CementInstaller:
    """Installs the cement CLI (`cm`) and puts it on the runner's PATH."""

    def __init__(
        self,
        runner: ToolRunner,
        workspace: str | Path,
        *,
        home: str | Path | None = None,
        fetch: Callable[[str, Path], Path] = download_and_extract,
    ):
        self.runner = runner
        self.workspace = Path(workspace)
        self.home = Path(home) if home is not None else Path.home()
        self.fetch = fetch

    def install(self, platform: str) -> None:
        # resolve the platform before touching the network or the disk
        folder = platform_folder(platform)

        root = self.fetch(CEMENT_URL, self.workspace / "cement-zip")
        cwd = Path(root) / "dotnet" / folder

        if platform == "win32":
            self.runner.run(str(cwd / "install.cmd"), [], cwd=cwd)
        else:
            self.runner.run("chmod", ["+x", "./install.sh"], cwd=cwd)
            self.runner.run(str(cwd / "install.sh"), [], cwd=cwd)

        self.runner.add_path(self.home / "bin")
        self.runner.run("cm", ["--version"])


class DotnetTools:
    """
    Runs .NET global tools by command name, installing (or updating) each
    one the first time it is used in this process.
    """

    def __init__(
        self,
        runner: ToolRunner,
        *,
        home: str | Path | None = None,
        packages: Optional[Dict[str, str]] = None,
    ):
        self.runner = runner
        self.home = Path(home) if home is not None else Path.home()
        self.packages = dict(DOTNET_TOOL_PACKAGES if packages is None else packages)
        self._installed: Set[str] = set()

    def ensure(self, tool: str) -> None:
        if tool in self._installed:
            return
        package = self.packages.get(tool, tool)
        self.runner.run("dotnet", ["tool", "update", "--global", package])
        self.runner.add_path(self.home / ".dotnet" / "tools")
        self._installed.add(tool)

    def run(self, tool: str, args, cwd: str | Path | None = None) -> int:
        self.ensure(tool)
        return self.runner.run(tool, [str(a) for a in args], cwd=cwd)
