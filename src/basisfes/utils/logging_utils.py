from __future__ import annotations

"""Framed log notices and timing helpers for the sampling loop."""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from time import perf_counter
from types import TracebackType
from typing import Literal, Sequence

BORDER = ":" * 60


def format_duration(seconds: float) -> str:
    """Render a duration in seconds into a human-readable ASCII string."""

    duration = timedelta(seconds=max(seconds, 0.0))
    total_seconds = duration.total_seconds()

    if total_seconds < 1.0:
        return f"{total_seconds * 1000.0:.0f} ms"
    if total_seconds < 60.0:
        return f"{total_seconds:.2f} s"

    days = duration.days
    remaining_seconds = duration.seconds
    hours, remaining_seconds = divmod(remaining_seconds, 3600)
    minutes, seconds_whole = divmod(remaining_seconds, 60)
    seconds_fraction = seconds_whole + duration.microseconds / 1_000_000

    if days == 0 and hours == 0:
        return f"{minutes} min {seconds_fraction:.1f} s"
    if days == 0:
        return f"{hours} h {minutes} min {seconds_fraction:.1f} s"
    return f"{days} d {hours} h {minutes} min"


def emit_banner(
    message: str,
    *,
    logger: logging.Logger,
    details: Sequence[str] | None = None,
    level: int = logging.INFO,
    echo: bool = False,
) -> None:
    """Log a framed notice, optionally echoing it to stdout.

    Used for the rare run-level events (domain exits, configuration
    fallbacks, convergence) that should stand out in long logs.
    """
    lines = [BORDER, message, *(details or ()), BORDER]
    if echo:
        for line in lines:
            print(line, flush=True)
    for line in lines:
        logger.log(level, line)


@dataclass
class StageTimer:
    """Context manager that measures execution time and logs completion."""

    label: str
    logger: logging.Logger
    level: int = logging.DEBUG

    _start: float = field(init=False, default=0.0)
    elapsed: float = field(init=False, default=0.0)

    def __enter__(self) -> "StageTimer":
        self._start = perf_counter()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        _tb: TracebackType | None,
    ) -> Literal[False]:
        self.elapsed = perf_counter() - self._start
        status = "completed" if exc is None else "failed"
        message = f"{self.label} {status} in {format_duration(self.elapsed)}."
        log_level = logging.ERROR if exc is not None else self.level
        self.logger.log(log_level, message)
        return False
