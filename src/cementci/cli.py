# cli.py
from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Optional

import click

from cementci.cache import DEFAULT_CACHE_DIR, CacheKeyDeriver, CacheStore
from cementci.dispatch import JobDispatcher, default_stages, run_pipeline
from cementci.errors import PipelineError, RevisionUnavailable
from cementci.git_facts.git import head_sha
from cementci.model import PipelineContext
from cementci.runner import ToolRunner
from cementci.ui.console import Console, get_console, set_console


def resolve_revision(revision: Optional[str], workspace: Path) -> str:
    """
    Revision from the option/environment, else HEAD of the workspace repo.

    Raises:
        RevisionUnavailable: If neither is available
    """
    if revision:
        return revision

    console = get_console()
    try:
        sha = head_sha(cwd=workspace)
        console.print_debug(f"Using revision from git HEAD: {sha}")
        return sha
    except (subprocess.CalledProcessError, FileNotFoundError):
        raise RevisionUnavailable(str(workspace)) from None


def build_context(
    *,
    job: str,
    revision: Optional[str],
    ref: str,
    run_number: int,
    workspace: str,
    module_folder: str,
    references: str,
    framework: Optional[str],
    key: Optional[str],
    cache_qualifier: Optional[str] = None,
) -> PipelineContext:
    workspace_p = Path(workspace).resolve()
    module_p = (workspace_p / module_folder).resolve()
    return PipelineContext(
        job=job,
        revision=resolve_revision(revision, workspace_p),
        ref=ref or "",
        run_number=run_number,
        workspace=workspace_p,
        module_folder=module_p,
        references=references,
        framework=framework or None,
        key=key or None,
        cache_qualifier=cache_qualifier or None,
    )


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """cementci: build, test and publish cement modules across CI jobs."""
    annotations = os.environ.get("GITHUB_ACTIONS", "").lower() == "true"
    set_console(Console(debug=debug, annotations=annotations))
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.option("--job", envvar="GITHUB_JOB", required=True, help="Job to run: build, test or publish")
@click.option("--ref", envvar="GITHUB_REF", default="", help="Git ref being built (refs/tags/* is a release)")
@click.option("--run-number", envvar="GITHUB_RUN_NUMBER", default=0, type=int, help="Monotonic run counter")
@click.option("--revision", envvar="GITHUB_SHA", default=None, help="Revision cache keys derive from (defaults to git HEAD)")
@click.option("--workspace", envvar="GITHUB_WORKSPACE", default=".", help="Workspace root (cement init runs here)")
@click.option(
    "--module-folder",
    envvar=["INPUT_MODULE-FOLDER", "INPUT_MODULE_FOLDER"],
    default=".",
    help="Module folder, relative to the workspace",
)
@click.option("--references", envvar="INPUT_REFERENCES", default="cement", show_default=True,
              help="'cement' builds dependencies; anything else points references at NuGet")
@click.option("--framework", envvar="INPUT_FRAMEWORK", default=None, help="Target framework for dotnet test")
@click.option("--key", envvar="INPUT_KEY", default=None, help="NuGet API key used by publish")
@click.option("--cache-dir", envvar="CEMENTCI_CACHE_DIR", default=DEFAULT_CACHE_DIR, help="Cache store directory")
@click.option("--cache-qualifier", default=None, help="Build only: save into a qualified channel (e.g. nuget)")
@click.pass_context
def run(ctx, job, ref, run_number, revision, workspace, module_folder, references, framework, key,
        cache_dir, cache_qualifier):
    """Run one pipeline job."""
    console = get_console()

    try:
        pctx = build_context(
            job=job,
            revision=revision,
            ref=ref,
            run_number=run_number,
            workspace=workspace,
            module_folder=module_folder,
            references=references,
            framework=framework,
            key=key,
            cache_qualifier=cache_qualifier,
        )
        runner = ToolRunner()
        cache = CacheStore(Path(pctx.workspace) / cache_dir)
        dispatcher = JobDispatcher(default_stages(pctx, runner, cache))
        ok = run_pipeline(pctx, dispatcher)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        # setup failed before any stage could run
        console.print_failure(job, str(e))
        if console.debug:
            console.print_exception(e)
        sys.exit(1)

    if not ok:
        sys.exit(1)


@cli.command("cache-key")
@click.option("--revision", envvar="GITHUB_SHA", default=None, help="Revision (defaults to git HEAD)")
@click.option("--workspace", envvar="GITHUB_WORKSPACE", default=".", help="Workspace root")
@click.option("--module-folder", envvar=["INPUT_MODULE-FOLDER", "INPUT_MODULE_FOLDER"], default=".")
@click.option("--qualifier", default=None, help="Channel qualifier (e.g. nuget)")
def cache_key(revision, workspace, module_folder, qualifier):
    """Print the cache key and cached paths for a revision."""
    workspace_p = Path(workspace).resolve()
    try:
        resolved = resolve_revision(revision, workspace_p)
    except PipelineError as e:
        raise click.ClickException(str(e)) from None
    keys = CacheKeyDeriver(resolved, (workspace_p / module_folder).resolve())
    click.echo(keys.derive_key(qualifier))
    for p in keys.cache_paths():
        click.echo(f"  {p}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
