"""Progress reporting for long harvests.

Library code only talks to `progress_context`; the CLI installs the tqdm bar,
everything else (service runs, tests) gets a silent reporter.
"""

from __future__ import annotations

from contextlib import contextmanager, nullcontext
from typing import Any, Callable, ContextManager, Iterator, Optional, Protocol

TQDM_NCOLS = 80
TQDM_MIN_INTERVAL = 0.5
TQDM_UNIT = "book"


class ProgressReporter(Protocol):
    def update(self, advance: int) -> None: ...


ProgressFactory = Callable[[Optional[int], str], ContextManager[ProgressReporter]]


class SilentProgress:
    """Reporter that ignores every update."""

    def update(self, advance: int) -> None:
        return None


class TqdmProgress:
    """Forwards updates to a tqdm bar."""

    def __init__(self, bar: Any) -> None:
        self._bar = bar

    def update(self, advance: int) -> None:
        self._bar.update(advance)


@contextmanager
def tqdm_progress(total: Optional[int], description: str) -> Iterator[ProgressReporter]:
    """Progress factory drawing one terminal bar per harvest, counted in books.

    Console log handlers write through ``tqdm.write`` while the bar is open, so
    per-book log lines appear above the bar instead of breaking it.
    """
    from tqdm import tqdm
    from tqdm.contrib.logging import logging_redirect_tqdm

    with logging_redirect_tqdm(), tqdm(
        total=total,
        desc=description,
        unit=TQDM_UNIT,
        leave=True,
        ncols=TQDM_NCOLS,
        mininterval=TQDM_MIN_INTERVAL,
    ) as bar:
        yield TqdmProgress(bar)


_active_factory: Optional[ProgressFactory] = None


def set_progress_factory(factory: Optional[ProgressFactory]) -> None:
    """Install the factory used by `progress_context`; None restores silence."""
    global _active_factory
    _active_factory = factory


def get_progress_factory() -> Optional[ProgressFactory]:
    return _active_factory


def progress_context(total: Optional[int], description: str) -> ContextManager[ProgressReporter]:
    """Open a reporter for ``total`` units of work labelled ``description``."""
    if _active_factory is None:
        return nullcontext(SilentProgress())
    return _active_factory(total, description)


__all__ = [
    "ProgressFactory",
    "ProgressReporter",
    "SilentProgress",
    "TqdmProgress",
    "get_progress_factory",
    "progress_context",
    "set_progress_factory",
    "tqdm_progress",
]
