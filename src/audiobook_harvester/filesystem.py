"""Output directory checks and feed file writing."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import FrozenSet

from platformdirs import user_data_dir

from .config_constants import FEED_FILE_EXTENSION

logger = logging.getLogger(__name__)

APP_NAME = "audiobook-harvester"


@lru_cache(maxsize=1)
def _app_data_root() -> FrozenSet[Path]:
    try:
        return frozenset({Path(user_data_dir(APP_NAME)).expanduser().resolve()})
    except (OSError, RuntimeError) as exc:
        logger.debug("No application data directory available: %s", exc)
        return frozenset()


def _is_recommended_location(path: Path) -> bool:
    roots = {Path.cwd().resolve(), Path.home().resolve(), *_app_data_root()}
    return any(path == root or path.is_relative_to(root) for root in roots)


def validate_and_normalize_output_dir(path: str) -> str:
    """Return the absolute form of ``path`` for writing feeds into.

    The directory does not have to exist yet. Locations outside the working
    directory, the home directory and the application data directory are
    accepted with a warning.

    Raises:
        ValueError: If ``path`` is blank, cannot be resolved, or names a file
    """
    if not path or not path.strip():
        raise ValueError("Output directory path cannot be empty")

    try:
        resolved = Path(path).expanduser().resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid output directory path: {path} ({exc})") from exc

    if resolved.exists() and not resolved.is_dir():
        raise ValueError(f"Output path is not a directory: {resolved}")

    if not _is_recommended_location(resolved):
        logger.warning("Writing feeds outside the home and working directories: %s", resolved)
    return str(resolved)


def build_feed_path(output_dir: str, filename: str) -> str:
    """Return ``<output_dir>/<filename>.rss``."""
    return os.path.join(output_dir, f"{filename}{FEED_FILE_EXTENSION}")


def write_text_file(path: str, text: str) -> None:
    """Write ``text`` as UTF-8, replacing any existing file."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(text)


__all__ = ["build_feed_path", "validate_and_normalize_output_dir", "write_text_file"]
