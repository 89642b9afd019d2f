"""Harvest coordinator: a fixed pool of worker threads building one feed per book.

A dispatcher thread puts book addresses on a bounded queue in listing order,
then one stop marker per worker. Every worker reports each address it took on
the completion queue, whether the feed was written or not. The calling thread
drains exactly one completion per address and logs progress; completion order
follows whichever book finishes first, not listing order.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, List, Optional, Sequence

from . import progress
from .exceptions import HarvestError

logger = logging.getLogger(__name__)

BuildFn = Callable[[str], Any]

PROGRESS_FORMAT = "%5d / %5d : %s"


def _dispatch_books(
    addresses: Sequence[str],
    book_queue: "queue.Queue[Optional[str]]",
    workers: int,
) -> None:
    for address in addresses:
        book_queue.put(address)
    # One stop marker per worker closes the input
    for _ in range(workers):
        book_queue.put(None)
    logger.debug("Dispatched %d addresses to %d workers", len(addresses), workers)


def _feed_worker(
    book_queue: "queue.Queue[Optional[str]]",
    done_queue: "queue.Queue[str]",
    build_fn: BuildFn,
) -> None:
    while True:
        address = book_queue.get()
        if address is None:
            logger.debug("%s: input closed, exiting", threading.current_thread().name)
            return
        try:
            build_fn(address)
        except HarvestError as exc:
            logger.error("[ERROR] %s", exc)
        except OSError as exc:
            logger.error("[ERROR] [%s] could not write feed: %s", address, exc)
        except Exception:
            logger.exception("[ERROR] [%s] unexpected failure while building feed", address)
        finally:
            done_queue.put(address)


def harvest(addresses: Sequence[str], build_fn: BuildFn, workers: int) -> int:
    """Run ``build_fn`` once per address on a pool of ``workers`` threads.

    Failures are logged by the worker that hit them and never stop the pool.

    Args:
        addresses: Book addresses, dispatched in order
        build_fn: Callable building and writing one feed
        workers: Pool size

    Returns:
        Number of completion signals received, always ``len(addresses)``

    Raises:
        ValueError: If ``workers`` is less than 1
    """
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got: {workers}")

    total = len(addresses)
    book_queue: "queue.Queue[Optional[str]]" = queue.Queue(maxsize=workers)
    done_queue: "queue.Queue[str]" = queue.Queue()

    pool: List[threading.Thread] = [
        threading.Thread(
            target=_feed_worker,
            args=(book_queue, done_queue, build_fn),
            name=f"FeedWorker-{n}",
            daemon=True,
        )
        for n in range(1, workers + 1)
    ]
    for thread in pool:
        thread.start()
    logger.debug("Started %d feed workers", workers)

    dispatcher = threading.Thread(
        target=_dispatch_books,
        args=(addresses, book_queue, workers),
        name="BookDispatcher",
        daemon=True,
    )
    dispatcher.start()

    completed = 0
    with progress.progress_context(total, "Harvesting feeds") as reporter:
        while completed < total:
            address = done_queue.get()
            completed += 1
            logger.info(PROGRESS_FORMAT, completed, total, address)
            reporter.update(1)

    dispatcher.join()
    for thread in pool:
        thread.join()
    return completed


__all__ = ["BuildFn", "PROGRESS_FORMAT", "harvest"]
