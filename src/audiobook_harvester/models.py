from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .config_constants import FEED_LANGUAGE
from .exceptions import HarvestError


@dataclass
class Chapter:
    """One audio segment found on a detail page.

    ``index`` is the chapter's position among the page's tracks, kept even when
    earlier chapters were skipped.
    """

    index: int
    title: str
    media_url: str


@dataclass
class FeedItem:
    """A single feed entry; ``published`` is synthetic and only encodes playback order."""

    title: str
    media_url: str
    description: str
    published: datetime


@dataclass
class Feed:
    """Syndication feed for one audiobook."""

    title: str
    description: str
    author_name: str
    source_link: str
    language: str = FEED_LANGUAGE
    cover_image_url: Optional[str] = None
    items: List[FeedItem] = field(default_factory=list)


@dataclass
class CatalogListing:
    """Book addresses collected from the catalog, in listing order.

    When a page fails, ``addresses`` holds what the earlier pages produced and
    ``error`` holds the failure.
    """

    addresses: List[str] = field(default_factory=list)
    error: Optional[HarvestError] = None

    @property
    def complete(self) -> bool:
        return self.error is None
