"""Non-interactive entry point for scheduled harvests.

Configuration comes from a single JSON or YAML file and the outcome is returned
as a `ServiceResult` instead of a process exit path, so a supervisor or cron
wrapper can inspect it::

    # crontab: rebuild every feed on Monday night
    0 3 * * 1 audiobook-harvester-service --config /etc/audiobook-harvester.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from . import __version__, config, workflow

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """Outcome of one service run.

    ``books_processed`` counts completion signals, so books whose feed could not
    be written are included. ``error`` is only set when ``success`` is False.
    """

    books_processed: int
    summary: str
    success: bool = True
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "ServiceResult":
        return cls(books_processed=0, summary="", success=False, error=error)


def run(cfg: config.Config) -> ServiceResult:
    """Harvest with ``cfg``; any failure is logged and reported in the result."""
    try:
        workflow.apply_log_level(level=cfg.log_level, log_file=cfg.log_file)
        processed, summary = workflow.run_pipeline(cfg)
    except Exception as exc:
        logger.error("Harvest failed: %s", exc, exc_info=True)
        return ServiceResult.failed(str(exc))
    return ServiceResult(books_processed=processed, summary=summary)


def load_service_config(config_path: str | Path) -> config.Config:
    """Read and validate a configuration file.

    Raises:
        ValueError: If the file cannot be read or holds invalid settings
    """
    data = config.load_config_file(str(config_path))
    try:
        return config.Config.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration in {config_path}: {exc}") from exc


def run_from_config_file(config_path: str | Path) -> ServiceResult:
    """Load ``config_path`` and run the harvest it describes."""
    try:
        cfg = load_service_config(config_path)
    except ValueError as exc:
        message = f"Failed to load configuration file: {exc}"
        logger.error(message)
        return ServiceResult.failed(message)
    return run(cfg)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """``audiobook-harvester-service --config FILE``; exit status 0 on success."""
    parser = argparse.ArgumentParser(
        prog="audiobook-harvester-service",
        description="Run an audiobook feed harvest from a configuration file",
    )
    parser.add_argument("--config", required=True, help="Configuration file (JSON or YAML)")
    parser.add_argument(
        "--version", action="version", version=f"audiobook_harvester {__version__}"
    )
    args = parser.parse_args(argv)

    result = run_from_config_file(args.config)
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    print(result.summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
