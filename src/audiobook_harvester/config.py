from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import config_constants

# Re-exported for callers that only import config
DEFAULT_LOG_LEVEL = config_constants.DEFAULT_LOG_LEVEL
DEFAULT_USER_AGENT = config_constants.DEFAULT_USER_AGENT
DEFAULT_WORKERS = config_constants.DEFAULT_WORKERS
DEFAULT_OUTPUT_DIR = config_constants.DEFAULT_OUTPUT_DIR
DEFAULT_LISTING_URL = config_constants.DEFAULT_LISTING_URL
DEFAULT_MAX_PAGES = config_constants.DEFAULT_MAX_PAGES
DEFAULT_API_BASE = config_constants.DEFAULT_API_BASE
DEFAULT_CHAPTER_STRATEGY = config_constants.DEFAULT_CHAPTER_STRATEGY
CHAPTER_STRATEGIES = config_constants.CHAPTER_STRATEGIES
MIN_WORKERS = config_constants.MIN_WORKERS
MIN_PAGES = config_constants.MIN_PAGES


class Config(BaseModel):
    """Configuration model for the audiobook harvesting run.

    Every field has a default, so ``Config()`` reproduces the stock harvest of the
    litteratureaudio.com catalog into the current directory. The model is frozen
    after creation.

    Attributes:
        listing_url: Base address of the paginated catalog listing.
        max_pages: Number of listing pages to walk (pages 1..max_pages).
        api_base: Base address of the per-chapter JSON API.
        chapter_strategy: "api" resolves each chapter through the JSON API,
            "page" reads titles and download links straight from the detail page.
        output_dir: Directory receiving the ``<slug>.rss`` files.
        workers: Number of feed-building worker threads.
        max_books: Optional cap on the number of books harvested, in listing order.
        user_agent: HTTP User-Agent header for requests.
        timeout: Per-request timeout in seconds. None waits indefinitely.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file path, in addition to the console.

    Example:
        >>> from audiobook_harvester import Config
        >>> cfg = Config(max_pages=2, workers=4, output_dir="./feeds")

    Example:
        Load configuration from file:

        >>> from audiobook_harvester import Config, load_config_file
        >>> cfg = Config(**load_config_file("harvest.yaml"))
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    listing_url: str = Field(default=DEFAULT_LISTING_URL, alias="listing")
    max_pages: int = Field(default=DEFAULT_MAX_PAGES, alias="max_pages")
    api_base: str = Field(default=DEFAULT_API_BASE, alias="api_base")
    chapter_strategy: Literal["api", "page"] = Field(
        default=DEFAULT_CHAPTER_STRATEGY, alias="chapter_strategy"
    )
    output_dir: str = Field(default=DEFAULT_OUTPUT_DIR, alias="output_dir")
    workers: int = Field(default=DEFAULT_WORKERS, alias="workers")
    max_books: Optional[int] = Field(default=None, alias="max_books")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="user_agent")
    timeout: Optional[float] = Field(
        default=None,
        alias="timeout",
        description="Per-request timeout in seconds; None means no deadline",
    )
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, alias="log_level")
    log_file: Optional[str] = Field(default=None, alias="log_file")

    @field_validator("listing_url", "api_base", mode="before")
    @classmethod
    def _validate_http_url(cls, value: Any) -> str:
        value = str(value or "").strip()
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"URL must be http or https with a hostname: {value!r}")
        return value.rstrip("/")

    @field_validator("output_dir", mode="before")
    @classmethod
    def _coerce_output_dir(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_OUTPUT_DIR
        return str(value).strip() or DEFAULT_OUTPUT_DIR

    @field_validator("user_agent", mode="before")
    @classmethod
    def _coerce_user_agent(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_USER_AGENT
        value_str = str(value).strip()
        if not value_str:
            return DEFAULT_USER_AGENT
        return value_str

    @field_validator("chapter_strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_CHAPTER_STRATEGY
        return str(value).strip().lower()

    @field_validator("workers")
    @classmethod
    def _validate_workers(cls, value: int) -> int:
        if value < MIN_WORKERS:
            raise ValueError(f"workers must be at least {MIN_WORKERS}")
        return value

    @field_validator("max_pages")
    @classmethod
    def _validate_max_pages(cls, value: int) -> int:
        if value < MIN_PAGES:
            raise ValueError(f"max_pages must be at least {MIN_PAGES}")
        return value

    @field_validator("max_books")
    @classmethod
    def _validate_max_books(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 1:
            raise ValueError("max_books must be positive")
        return value

    @field_validator("timeout")
    @classmethod
    def _validate_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("timeout must be positive")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        level = str(value or DEFAULT_LOG_LEVEL).strip().upper()
        if not isinstance(getattr(logging, level, None), int):
            raise ValueError(f"Invalid log level: {value}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def _strip_log_file(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc


def _parse_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML: {exc}") from exc


_CONFIG_PARSERS = {".json": _parse_json, ".yaml": _parse_yaml, ".yml": _parse_yaml}


def load_config_file(path: str) -> Dict[str, Any]:
    """Read a JSON or YAML configuration file into a dict for `Config`.

    The format follows the extension (``.json``, ``.yaml`` or ``.yml``). Keys may
    be field names or aliases, for example::

        listing: https://www.litteratureaudio.com/classement-de-nos-livres-audio-gratuits-les-plus-apprecies
        max_pages: 10
        workers: 4
        output_dir: ./feeds

    Raises:
        ValueError: If the path is empty or missing, the extension is unsupported,
            the content cannot be parsed, or the top level is not a mapping.
    """
    if not path:
        raise ValueError("Config path cannot be empty")

    try:
        cfg_path = Path(path).expanduser().resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid config path: {path} ({exc})") from exc
    if not cfg_path.is_file():
        raise ValueError(f"Config file not found: {cfg_path}")

    parse = _CONFIG_PARSERS.get(cfg_path.suffix.lower())
    if parse is None:
        raise ValueError(f"Unsupported config file type: {cfg_path.suffix or '(none)'}")

    try:
        text = cfg_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Failed to read config file {cfg_path}: {exc}") from exc

    try:
        data = parse(text)
    except ValueError as exc:
        raise ValueError(f"{exc} in config file {cfg_path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Config file {cfg_path} must contain a mapping at the top level")
    return data
