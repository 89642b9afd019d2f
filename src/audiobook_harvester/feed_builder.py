"""Build one audiobook's feed from its detail page and write it to disk."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple, TYPE_CHECKING

from bs4 import BeautifulSoup

from . import downloader, filesystem, pages, rss_writer, slug
from .chapters import ChapterExtractor, create_chapter_extractor
from .config_constants import DEFAULT_USER_AGENT, ITEM_TIMESTAMP_SPACING_HOURS
from .exceptions import EmptyTitleError
from .models import Chapter, Feed, FeedItem

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import Config

logger = logging.getLogger(__name__)


def extract_book_metadata(soup: BeautifulSoup, address: str) -> Feed:
    """Read title, author and cover from a detail page into an item-less feed."""
    title = pages.select_text(soup, pages.BOOK_TITLE_SELECTOR).strip()
    author_name = pages.select_text(soup, pages.BOOK_AUTHOR_SELECTOR).strip()
    cover_url = (pages.select_attr(soup, pages.BOOK_COVER_SELECTOR, "src") or "").strip()
    return Feed(
        title=title,
        description=title,
        author_name=author_name,
        source_link=address,
        cover_image_url=cover_url or None,
    )


def feed_filename(feed: Feed) -> str:
    """Slug of ``author + " " + title``; empty when neither yields a usable character."""
    return slug.clean(f"{feed.author_name} {feed.title}")


def build_items(chapters: Iterable[Chapter], base_time: datetime) -> List[FeedItem]:
    """Turn chapters into feed items with ordinal timestamps.

    Chapter *i* is stamped ``base_time + i * 24h`` so that players sorting by
    publication date keep the book's chapter order.
    """
    return [
        FeedItem(
            title=chapter.title,
            media_url=chapter.media_url,
            description=chapter.title,
            published=base_time + timedelta(hours=ITEM_TIMESTAMP_SPACING_HOURS * chapter.index),
        )
        for chapter in chapters
    ]


def build_feed(
    address: str,
    extractor: ChapterExtractor,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: Optional[float] = None,
    base_time: Optional[datetime] = None,
) -> Tuple[Feed, str]:
    """Fetch a detail page and assemble its feed.

    Chapters are only extracted once the book is known to have a usable filename.

    Args:
        address: Detail page address
        extractor: Chapter extraction strategy for this page format
        user_agent: HTTP User-Agent header
        timeout: Per-request timeout in seconds, None for no deadline
        base_time: Timestamp of the first chapter (defaults to now)

    Returns:
        Tuple of (feed, filename without extension)

    Raises:
        FetchError: If the detail page cannot be fetched
        ParseError: If the detail page cannot be parsed
        EmptyTitleError: If author and title normalize to an empty filename
    """
    markup = downloader.fetch_text(address, user_agent, timeout)
    soup = pages.parse_html(markup, address)

    feed = extract_book_metadata(soup, address)
    filename = feed_filename(feed)
    if not filename:
        raise EmptyTitleError(address)

    chapters = extractor.extract(soup, address)
    feed.items.extend(build_items(chapters, base_time or datetime.now(timezone.utc)))
    logger.debug(
        "Built feed %r by %r with %d chapters from %s",
        feed.title,
        feed.author_name,
        len(feed.items),
        address,
    )
    return feed, filename


def create_feed(
    address: str,
    cfg: "Config",
    extractor: Optional[ChapterExtractor] = None,
) -> str:
    """Build the feed for one book and write ``<slug>.rss`` into the output directory.

    An existing file with the same name is overwritten.

    Returns:
        Path of the written feed file

    Raises:
        FetchError, ParseError, EmptyTitleError: As raised by `build_feed`
        OSError: If the file cannot be written
    """
    if extractor is None:
        extractor = create_chapter_extractor(cfg.chapter_strategy, cfg)
    feed, filename = build_feed(address, extractor, cfg.user_agent, cfg.timeout)
    document = rss_writer.to_rss(feed)
    path = filesystem.build_feed_path(cfg.output_dir, filename)
    filesystem.write_text_file(path, document)
    logger.debug("Wrote %s (%d items)", path, len(feed.items))
    return path


__all__ = [
    "build_feed",
    "build_items",
    "create_feed",
    "extract_book_metadata",
    "feed_filename",
]
