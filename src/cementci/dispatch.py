# dispatch.py
from __future__ import annotations

from typing import Callable, Dict, Mapping, Optional

from .cache import CacheStore
from .model import JobKind, PipelineContext
from .runner import ToolRunner
from .stages.base import Stage
from .stages.build import BuildStage
from .stages.publish import PublishStage
from .stages.test import TestStage
from .ui.console import Console, get_console

StageFactory = Callable[[], Stage]

STAGE_CLASSES = {
    JobKind.BUILD: BuildStage,
    JobKind.TEST: TestStage,
    JobKind.PUBLISH: PublishStage,
}


def default_stages(ctx: PipelineContext, runner: ToolRunner, cache: CacheStore) -> Dict[JobKind, StageFactory]:
    """Factories for the real stages; nothing is built until one is picked."""
    return {
        kind: (lambda cls=cls: cls(ctx, runner, cache))
        for kind, cls in STAGE_CLASSES.items()
    }


class JobDispatcher:
    """Picks exactly one stage for a job name and runs it."""

    def __init__(self, stages: Mapping[JobKind, StageFactory]):
        self.stages = dict(stages)

    def select(self, job_name: str) -> Stage:
        kind = JobKind.parse(job_name)  # raises UnknownJob
        return self.stages[kind]()

    def dispatch(self, job_name: str) -> None:
        self.select(job_name).run()


def run_pipeline(
    ctx: PipelineContext,
    dispatcher: JobDispatcher,
    console: Optional[Console] = None,
) -> bool:
    """
    Run the job named in `ctx` and report the outcome.

    This is the single place failures stop: whatever a stage raises ends
    up as one failure report and a False return.
    """
    console = console or get_console()
    console.print_run_started(job=ctx.job, revision=ctx.revision, module=str(ctx.module_folder))
    try:
        dispatcher.dispatch(ctx.job)
    except Exception as e:
        console.print_failure(ctx.job, str(e))
        console.print_debug(f"{type(e).__name__}: {e!r}")
        if console.debug:
            console.print_exception(e)
        return False

    console.print_success(ctx.job)
    return True
