"""Tests for project and package discovery."""
from cementci.discovery import discover_packages, discover_projects


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")
    return path


def test_test_projects_are_not_buildable(module):
    _touch(module / "Sample" / "Sample.csproj")
    _touch(module / "Sample.Abstractions" / "Sample.Abstractions.csproj")
    _touch(module / "Sample.Tests" / "Sample.Tests.csproj")

    found = discover_projects(module)

    assert found.projects == [module / "Sample", module / "Sample.Abstractions"]
    assert found.tests == [module / "Sample.Tests"]
    assert not set(found.projects) & set(found.tests)


def test_only_first_level_projects(module):
    _touch(module / "Sample" / "Sample.csproj")
    _touch(module / "Sample" / "nested" / "Nested.csproj")
    _touch(module / "Root.csproj")

    assert discover_projects(module).projects == [module / "Sample"]


def test_folder_with_two_projects_listed_once(module):
    _touch(module / "Sample" / "Sample.csproj")
    _touch(module / "Sample" / "Sample.Legacy.csproj")

    assert discover_projects(module).projects == [module / "Sample"]


def test_empty_module(module):
    found = discover_projects(module)
    assert found.projects == []
    assert found.tests == []


def test_packages_are_found_recursively_in_stable_order(module):
    b = _touch(module / "Sample" / "bin" / "Release" / "Sample.1.0.0-pre000042.nupkg")
    a = _touch(module / "Sample.Abstractions" / "bin" / "Release" / "Sample.Abstractions.1.0.0.nupkg")
    _touch(module / "Sample" / "bin" / "Release" / "Sample.dll")

    assert discover_packages(module) == [a, b]
    assert discover_packages(module) == discover_packages(module)
