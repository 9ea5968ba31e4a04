# discovery.py
from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path
from typing import List

from .model import ProjectSet

PROJECT_PATTERN = "*/*.csproj"
TEST_PROJECT_PATTERN = "*.Tests/*.csproj"
PACKAGE_PATTERN = "**/*.nupkg"


def _relative_posix(p: Path, root: Path) -> str:
    return p.relative_to(root).as_posix()


def discover_projects(module_folder: str | Path) -> ProjectSet:
    """
    Find project folders one level below the module root.

    Test projects (`*.Tests/*.csproj`) are never treated as buildable
    library projects, so the two lists are disjoint.
    """
    root = Path(module_folder).resolve()
    project_files: List[Path] = []
    test_files: List[Path] = []
    for f in sorted(root.glob(PROJECT_PATTERN)):
        if fnmatch(_relative_posix(f, root), TEST_PROJECT_PATTERN):
            test_files.append(f)
        else:
            project_files.append(f)

    # a folder holding several project files is listed once
    return ProjectSet(
        projects=list(dict.fromkeys(f.parent for f in project_files)),
        tests=list(dict.fromkeys(f.parent for f in test_files)),
    )


def discover_packages(module_folder: str | Path) -> List[Path]:
    """All package artifacts under the module root, in sorted (stable) order."""
    root = Path(module_folder).resolve()
    return sorted(p for p in root.glob(PACKAGE_PATTERN) if p.is_file())
