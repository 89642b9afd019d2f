"""Audiobook Harvester - Turn an audiobook catalog into one RSS feed per book.

The harvester walks a paginated catalog listing, fetches every book's detail
page on a pool of worker threads, resolves each chapter's audio address and
writes ``<author_title>.rss`` podcast feeds that any player can subscribe to.

Programmatic API Example:
    >>> import audiobook_harvester
    >>>
    >>> cfg = audiobook_harvester.Config(max_pages=3, output_dir="./feeds")
    >>> count, summary = audiobook_harvester.run_pipeline(cfg)

CLI Usage:
    $ audiobook-harvester --max-pages 3 --output-dir ./feeds
    $ audiobook-harvester --config harvest.yaml
"""

from __future__ import annotations

__version__ = "1.0.0"

from .config import Config, load_config_file
from .workflow import run_pipeline

__all__ = [
    "Config",
    "load_config_file",
    "run_pipeline",
    "__version__",
]
