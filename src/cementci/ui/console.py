"""Console output formatting utilities for cementci."""

from __future__ import annotations

import sys
from typing import Optional


def escape_data(message: str) -> str:
    """Escape a workflow command message (GitHub requires %, CR and LF encoded)."""
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False, annotations: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            annotations: If True, also emit GitHub Actions workflow commands
                (::group::, ::notice::, ::error::)
        """
        self.debug = debug
        self.annotations = annotations
        self._group_open = False

    def print_run_started(
        self,
        job: str,
        revision: str,
        module: str,
    ) -> None:
        """Print run start information."""
        print("\nRUN STARTED")
        print(f"Job: {job}")
        print(f"Revision: {revision}")
        print(f"Module: {module}")
        print()

    def start_group(self, title: str) -> None:
        """Open a named section; closes the previous one if still open."""
        self.end_group()
        if self.annotations:
            print(f"::group::{title}")
        else:
            print(f"\nGROUP: {title}")
        self._group_open = True

    def end_group(self) -> None:
        if self._group_open and self.annotations:
            print("::endgroup::")
        self._group_open = False

    def print_command(self, cmd: str, cwd: Optional[str] = None) -> None:
        """Echo a command before it runs."""
        if cwd:
            print(f"[command]{cmd} (cwd={cwd})")
        else:
            print(f"[command]{cmd}")

    def print_output(self, line: str) -> None:
        """Print one line of streamed tool output."""
        print(line)

    def print_cache_hit(self, key: str, reason: str) -> None:
        print(f"CACHE: hit ({reason}) key={key}")

    def print_cache_miss(self, key: str, reason: str = "cache miss") -> None:
        print(f"CACHE: miss ({reason}) key={key}")

    def print_cache_saved(self, key: str, files: int) -> None:
        short_key = key[:24] + "..." if len(key) > 24 else key
        print(f"CACHE: saved {files} file(s) ({short_key})")

    def print_cache_skipped(self, key: str, reason: str) -> None:
        print(f"CACHE: not saved ({reason}) key={key}")

    def print_notice(self, message: str) -> None:
        """Print a notable event (test summary, published package)."""
        if self.annotations:
            print(f"::notice::{escape_data(message)}")
        else:
            print(f"NOTICE: {message}")

    def print_success(self, job: str) -> None:
        self.end_group()
        print(f"\nJOB {job}: SUCCESS")

    def print_failure(self, job: str, reason: str) -> None:
        """
        Print the single failure report of a run.

        In non-debug mode only the first line of the reason is shown.
        """
        self.end_group()
        if self.annotations:
            print(f"::error::{escape_data(reason or 'Unknown error')}")
        print(f"\nPIPELINE FAILED: {job}", file=sys.stderr)
        if self.debug:
            print(f"Error details: {reason}", file=sys.stderr)
        else:
            lines = (reason or "Unknown error").split("\n")
            print(f"Error: {lines[0]}", file=sys.stderr)
            for extra in lines[1:]:
                if extra.startswith("Hint:"):
                    print(extra, file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
