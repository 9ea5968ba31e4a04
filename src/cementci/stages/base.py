# stages/base.py
from __future__ import annotations

from typing import Optional

from ..cache import CacheKeyDeriver, CacheStore
from ..model import LineObserver, PipelineContext
from ..runner import ToolRunner
from ..ui.console import Console, get_console


class Stage:
    """
    One pipeline job: a fixed, ordered sequence of steps.

    The first step that raises ends the stage; nothing is retried and
    nothing already done is rolled back.
    """
    name = "stage"

    def __init__(
        self,
        ctx: PipelineContext,
        runner: ToolRunner,
        cache: CacheStore,
        *,
        keys: Optional[CacheKeyDeriver] = None,
        console: Optional[Console] = None,
    ):
        self.ctx = ctx
        self.runner = runner
        self.cache = cache
        self.keys = keys or CacheKeyDeriver(ctx.revision, ctx.module_folder)
        self._console = console

    @property
    def console(self) -> Console:
        return self._console or get_console()

    @property
    def module(self) -> str:
        return str(self.ctx.module_folder)

    def run(self) -> None:
        raise NotImplementedError

    def group(self, title: str) -> None:
        self.console.start_group(title)

    def dotnet(
        self,
        *args: str,
        cwd: Optional[str] = None,
        on_line: Optional[LineObserver] = None,
    ) -> int:
        return self.runner.run("dotnet", list(args), cwd=cwd or self.module, on_line=on_line)

    # ---- cache ----

    def save_cache(self, qualifier: Optional[str] = None) -> None:
        key = self.keys.derive_key(qualifier)
        paths = self.keys.cache_paths()
        self.console.print_info(f"Caching: {paths} with key = {key}")
        result = self.cache.save(paths, key)
        if result.saved:
            self.console.print_cache_saved(key, result.files)
        else:
            self.console.print_cache_skipped(key, result.reason)

    def restore_cache(self, qualifier: Optional[str] = None) -> bool:
        """Restore an entry; a miss is reported and left for later steps to trip over."""
        key = self.keys.derive_key(qualifier)
        paths = self.keys.cache_paths()
        self.console.print_info(f"Uncaching: {paths} with key = {key}")
        hit = self.cache.restore(paths, key)
        if hit.hit:
            self.console.print_cache_hit(key, hit.reason)
        else:
            self.console.print_cache_miss(key, hit.reason)
        return hit.hit
