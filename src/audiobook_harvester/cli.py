"""Command-line interface for audiobook_harvester."""

from __future__ import annotations

import argparse
import logging
from typing import Any, Callable, cast, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from pydantic import ValidationError

from . import __version__, config, filesystem, progress, workflow
from .config_constants import CHAPTER_STRATEGY_API

_LOGGER = logging.getLogger(__name__)


def _validate_url(name: str, value: str, errors: List[str]) -> None:
    if not value:
        errors.append(f"{name} is required")
        return
    parsed_obj = urlparse(value)
    if parsed_obj.scheme not in ("http", "https"):
        errors.append(f"{name} must be http or https: {value}")
    if not parsed_obj.netloc:
        errors.append(f"{name} must have a valid hostname: {value}")


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments and raise ValueError when invalid."""
    errors: List[str] = []

    _validate_url("Listing URL", (args.listing or "").strip(), errors)
    _validate_url("--api-base", (args.api_base or "").strip(), errors)

    if args.max_pages < config.MIN_PAGES:
        errors.append(f"--max-pages must be at least {config.MIN_PAGES}, got: {args.max_pages}")
    if args.max_books is not None and args.max_books <= 0:
        errors.append(f"--max-books must be positive, got: {args.max_books}")
    if args.workers < config.MIN_WORKERS:
        errors.append(f"--workers must be at least {config.MIN_WORKERS}")
    if args.timeout is not None and args.timeout <= 0:
        errors.append(f"--timeout must be positive, got: {args.timeout}")
    if args.strategy not in config.CHAPTER_STRATEGIES:
        errors.append(
            f"--strategy must be one of {config.CHAPTER_STRATEGIES}, got: {args.strategy}"
        )

    if args.output_dir:
        try:
            filesystem.validate_and_normalize_output_dir(args.output_dir)
        except ValueError as exc:
            errors.append(str(exc))

    if errors:
        raise ValueError("Invalid input parameters:\n  " + "\n  ".join(errors))


def _add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default=None, help="Path to configuration file (JSON or YAML)")
    parser.add_argument(
        "listing",
        nargs="?",
        default=config.DEFAULT_LISTING_URL,
        help="Catalog listing URL (pages are fetched as <listing>/page/<n>)",
    )
    parser.add_argument(
        "--output-dir",
        default=config.DEFAULT_OUTPUT_DIR,
        help="Directory for the .rss files (default: current directory)",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=config.DEFAULT_MAX_PAGES,
        help="Number of listing pages to walk",
    )
    parser.add_argument(
        "--max-books", type=int, default=None, help="Harvest at most this many books"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=config.DEFAULT_WORKERS,
        help="Number of concurrent feed workers (default: CPU count)",
    )
    parser.add_argument(
        "--strategy",
        default=config.DEFAULT_CHAPTER_STRATEGY,
        type=str.lower,
        help="Chapter extraction strategy: 'api' (JSON API per chapter) or 'page' (inline links)",
    )
    parser.add_argument(
        "--api-base", default=config.DEFAULT_API_BASE, help="Per-chapter JSON API base URL"
    )
    parser.add_argument("--user-agent", default=config.DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Request timeout in seconds (default: wait indefinitely)",
    )
    parser.add_argument("--version", action="store_true", help="Show program version and exit")
    parser.add_argument(
        "--log-file",
        default=None,
        help="Path to log file (logs will be written to both console and file)",
    )
    parser.add_argument(
        "--log-level",
        default=config.DEFAULT_LOG_LEVEL,
        type=str.upper,
        help="Logging level (e.g., DEBUG, INFO)",
    )


# Config file keys that differ from the parser destinations
_CONFIG_TO_DEST = {"chapter_strategy": "strategy"}


def _load_and_merge_config(
    parser: argparse.ArgumentParser, config_path: str, argv: Optional[Sequence[str]]
) -> argparse.Namespace:
    """Load configuration file and merge with CLI arguments.

    Values from the file become parser defaults, so explicit flags win.

    Raises:
        ValueError: If the file is invalid or has unknown keys
    """
    config_data = config.load_config_file(config_path)
    try:
        config_model = config.Config.model_validate(config_data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    defaults_updates: Dict[str, Any] = {
        _CONFIG_TO_DEST.get(key, key): value
        for key, value in config_model.model_dump(exclude_none=True, by_alias=True).items()
    }

    parser.set_defaults(**defaults_updates)
    return parser.parse_args(argv)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments, optionally merging configuration file defaults."""
    parser = argparse.ArgumentParser(
        description="Harvest an audiobook catalog into one RSS feed per book."
    )
    _add_arguments(parser)

    initial_args, _ = parser.parse_known_args(argv)

    if initial_args.version:
        print(f"audiobook_harvester {__version__}")
        raise SystemExit(0)

    if initial_args.config:
        args = _load_and_merge_config(parser, initial_args.config, argv)
    else:
        args = parser.parse_args(argv)

    validate_args(args)
    return args


def _build_config(args: argparse.Namespace) -> config.Config:
    """Materialize a Config object from already-validated CLI arguments."""
    payload: Dict[str, Any] = {
        "listing_url": args.listing,
        "max_pages": args.max_pages,
        "api_base": args.api_base,
        "chapter_strategy": args.strategy,
        "output_dir": args.output_dir,
        "workers": args.workers,
        "max_books": args.max_books,
        "user_agent": args.user_agent,
        "timeout": args.timeout,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }
    return cast(config.Config, config.Config.model_validate(payload))


def _log_configuration(cfg: config.Config, logger: logging.Logger) -> None:
    logger.info("=" * 80)
    logger.info("Configuration")
    logger.info("=" * 80)
    logger.info(f"  Listing URL: {cfg.listing_url}")
    logger.info(f"  Listing Pages: {cfg.max_pages}")
    logger.info(f"  Max Books: {cfg.max_books or 'all'}")
    logger.info(f"  Chapter Strategy: {cfg.chapter_strategy}")
    if cfg.chapter_strategy == CHAPTER_STRATEGY_API:
        logger.info(f"  API Base: {cfg.api_base}")
    logger.info(f"  Output Directory: {cfg.output_dir}")
    logger.info(f"  Workers: {cfg.workers}")
    logger.info(f"  Timeout: {f'{cfg.timeout}s' if cfg.timeout else 'none'}")
    logger.info(f"  Log Level: {cfg.log_level}")
    logger.info(f"  Log File: {cfg.log_file or 'console only'}")
    logger.info("=" * 80)


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    apply_log_level_fn: Optional[Callable[[str, Optional[str]], None]] = None,
    run_pipeline_fn: Optional[Callable[[config.Config], Tuple[int, str]]] = None,
    logger: Optional[logging.Logger] = None,
) -> int:
    """Entry point for the CLI; returns an exit status code."""
    progress.set_progress_factory(progress.tqdm_progress)
    log = logger or _LOGGER
    if apply_log_level_fn is None:
        apply_log_level_fn = workflow.apply_log_level
    if run_pipeline_fn is None:
        run_pipeline_fn = workflow.run_pipeline

    try:
        args = parse_args(argv)
    except ValueError as exc:
        log.error(f"Error: {exc}")
        return 1

    try:
        cfg = _build_config(args)
    except ValidationError as exc:
        log.error(f"Invalid configuration: {exc}")
        return 1

    apply_log_level_fn(cfg.log_level, cfg.log_file)

    log.info("Starting audiobook feed harvest")
    _log_configuration(cfg, log)

    try:
        _, summary = run_pipeline_fn(cfg)
    except Exception as exc:
        log.error(f"Harvest aborted: {exc}")
        return 1

    log.info(summary)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    raise SystemExit(main())
