"""
Timestamped progress lines for a generation run.

Each line carries the time since the run started as MM:SS.cc:

    00:00.01 protostage v0.3.0
    00:00.02 [1/4] Discovering proto sources...
    00:00.05       12 source(s) in 1 directory(ies)
    00:00.31 [2/4] Staging archives...
    00:00.40       [archive] googleapis-common-protos-1.62.0.jar (38 sources)

Debug diagnostics go through ``logging``; this module only carries the lines
a user follows while protoc runs.
"""

import sys
import time
from types import TracebackType
from typing import Optional, TextIO

_DETAIL_INDENT = 6

_started_at: Optional[float] = None
_stream: TextIO = sys.stdout
_verbose = False


def init_timer(output_stream: Optional[TextIO] = None) -> None:
    """
    Restart the run clock, optionally redirecting output.

    Args:
        output_stream: Stream to write progress lines to (keeps the current
            one when omitted)
    """
    global _started_at, _stream
    _started_at = time.time()
    if output_stream is not None:
        _stream = output_stream


def set_verbose(verbose: bool) -> None:
    global _verbose
    _verbose = verbose


def format_timestamp() -> str:
    if _started_at is None:
        init_timer()
    minutes, seconds = divmod(time.time() - _started_at, 60)  # type: ignore[operator]
    return f"{int(minutes):02d}:{seconds:05.2f}"


def _emit(message: str, verbose_only: bool = False) -> None:
    if verbose_only and not _verbose:
        return
    _stream.write(f"{format_timestamp()} {message}\n")
    _stream.flush()


def log(message: str, verbose_only: bool = False) -> None:
    _emit(message, verbose_only)


def log_phase(phase: int, total: int, message: str, verbose_only: bool = False) -> None:
    """Log the start of generation phase ``phase`` out of ``total``."""
    _emit(f"[{phase}/{total}] {message}", verbose_only)


def log_detail(message: str, verbose_only: bool = False) -> None:
    """Log a line belonging to the current phase."""
    _emit(f"{' ' * _DETAIL_INDENT}{message}", verbose_only)


def log_source(origin: str, name: str, verbose_only: bool = True) -> None:
    """
    Log where a group of sources came from.

    Args:
        origin: Kind of origin, e.g. 'archive'
        name: Display name of the origin
        verbose_only: Only shown in verbose mode unless False
    """
    log_detail(f"[{origin}] {name}", verbose_only)


def log_header(title: str, version: str) -> None:
    _emit(f"{title} v{version}")


def log_warning(message: str) -> None:
    _emit(f"WARNING: {message}")


class TimedLogger:
    """
    Announces a generation phase and reports its duration when it completes.

    Nothing is reported if the phase raises, since the error itself is shown.

    Usage:
        with TimedLogger("Staging archives", phase=(2, 4)) as timed:
            ...
            timed.detail("3 archive(s) with proto sources")
    """

    def __init__(self, operation: str, phase: Optional[tuple[int, int]] = None, verbose_only: bool = False):
        self.operation = operation
        self.phase = phase
        self.verbose_only = verbose_only
        self._entered_at = 0.0

    def __enter__(self) -> "TimedLogger":
        self._entered_at = time.time()
        if self.phase is None:
            log(f"{self.operation}...", self.verbose_only)
        else:
            log_phase(*self.phase, f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb  # Unused
        if exc_type is None:
            log_detail(f"Done ({time.time() - self._entered_at:.2f}s)", self.verbose_only)

    def detail(self, message: str) -> None:
        log_detail(message, self.verbose_only)
