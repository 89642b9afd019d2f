"""HTML parsing helpers and the CSS selectors of the litteratureaudio.com markup."""

from __future__ import annotations

import logging
from typing import Optional

from bs4 import BeautifulSoup, Tag

from .exceptions import ParseError

logger = logging.getLogger(__name__)

# Catalog listing
LISTING_BOOK_LINK_SELECTOR = "article header h3.entry-title a"

# Book detail page
BOOK_TITLE_SELECTOR = "article.post .header-station > .entry-header h1.entry-title"
BOOK_AUTHOR_SELECTOR = "article.post .header-station > .entry-header .entry-auteur a"
BOOK_COVER_SELECTOR = "article.post .header-station .post-thumbnail img"
TRACK_SELECTOR = "article.album-track"
TRACK_PLAY_ID_ATTR = "data-play-id"
TRACK_TITLE_SELECTOR = ".entry-header .entry-title"
TRACK_DOWNLOAD_LINK_SELECTOR = ".entry-footer a.no-ajax"

HTML_PARSER = "html.parser"


def parse_html(markup: str, url: str) -> BeautifulSoup:
    """Parse an HTML document.

    Raises:
        ParseError: If the parser rejects the markup or finds no element at all.
    """
    try:
        soup = BeautifulSoup(markup, HTML_PARSER)
    except Exception as exc:
        raise ParseError(url, str(exc)) from exc
    if soup.find() is None:
        raise ParseError(url, "document contains no markup")
    return soup


def select_text(node: Tag, selector: str) -> str:
    """Concatenated text of every element matching ``selector``, or ""."""
    return "".join(element.get_text() for element in node.select(selector))


def select_attr(node: Tag, selector: str, attribute: str) -> Optional[str]:
    """Attribute of the first element matching ``selector``, or None."""
    element = node.select_one(selector)
    if element is None:
        return None
    value = element.get(attribute)
    if isinstance(value, list):
        value = " ".join(value)
    return value
