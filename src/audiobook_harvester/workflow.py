"""Run orchestration: list the catalog, then harvest every book's feed."""

from __future__ import annotations

import logging
import os
from functools import partial
from pathlib import Path
from typing import Optional, Tuple

from . import catalog, config, feed_builder, filesystem, harvest
from .chapters import create_chapter_extractor

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _has_file_handler(root_logger: logging.Logger, log_file: str) -> bool:
    target = os.path.abspath(log_file)
    return any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == target
        for handler in root_logger.handlers
    )


def apply_log_level(level: str, log_file: Optional[str] = None) -> None:
    """Configure the root logger for a run.

    The console handler is created on first use; later calls only adjust levels.
    With ``log_file`` the same records are appended to that file as well.

    Raises:
        ValueError: If ``level`` is not a logging level name
        OSError: If the log file cannot be opened
    """
    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root_logger = logging.getLogger()
    formatter = logging.Formatter(LOG_FORMAT)
    if not root_logger.handlers:
        root_logger.addHandler(logging.StreamHandler())

    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)

    if log_file and not _has_file_handler(root_logger, log_file):
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def run_pipeline(cfg: config.Config) -> Tuple[int, str]:
    """Execute a full harvest.

    1. Validate and create the output directory
    2. Walk the catalog listing pages and collect book addresses
    3. Build and write one feed per book on a pool of ``cfg.workers`` threads

    A catalog failure aborts the run before any feed is built.

    Args:
        cfg: Configuration object

    Returns:
        Tuple of (number of books processed, human-readable summary)

    Raises:
        ValueError: If the output directory is invalid
        FetchError, ParseError: If the catalog listing fails
    """
    output_dir = filesystem.validate_and_normalize_output_dir(cfg.output_dir)
    os.makedirs(output_dir, exist_ok=True)
    run_cfg = cfg.model_copy(update={"output_dir": output_dir})

    listing = catalog.list_books(
        run_cfg.listing_url, run_cfg.max_pages, run_cfg.user_agent, run_cfg.timeout
    )
    if listing.error is not None:
        logger.error(
            "Catalog listing failed after %d addresses; no feeds will be built",
            len(listing.addresses),
        )
        raise listing.error

    addresses = listing.addresses
    if run_cfg.max_books is not None:
        addresses = addresses[: run_cfg.max_books]
    logger.info(f"Books to harvest: {len(addresses)} of {len(listing.addresses)}")

    extractor = create_chapter_extractor(run_cfg.chapter_strategy, run_cfg)
    build_fn = partial(feed_builder.create_feed, cfg=run_cfg, extractor=extractor)
    processed = harvest.harvest(addresses, build_fn, run_cfg.workers)

    summary = f"Done. books_processed={processed} output_dir={output_dir}"
    return processed, summary


__all__ = ["LOG_FORMAT", "apply_log_level", "run_pipeline"]
