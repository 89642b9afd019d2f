"""Chapter extraction strategies for book detail pages.

Two strategies share the ``ChapterExtractor`` protocol:

- ``ApiChapterExtractor`` reads a play id per track and resolves title and
  stream address through the site's JSON API, one request per chapter.
- ``PageChapterExtractor`` reads title and download link straight from the page.

A chapter that cannot be resolved is logged and skipped; the feed is still built
from the remaining chapters.
"""

from __future__ import annotations

import logging
from html import unescape
from typing import Any, List, Optional, Protocol, runtime_checkable, TYPE_CHECKING

from bs4 import BeautifulSoup, Tag

from . import downloader, pages
from .config_constants import (
    API_FIELDS,
    CHAPTER_STRATEGY_API,
    CHAPTER_STRATEGY_PAGE,
    DEFAULT_API_BASE,
    DEFAULT_USER_AGENT,
)
from .exceptions import ChapterExtractionError, FetchError, ParseError
from .models import Chapter

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import Config

logger = logging.getLogger(__name__)


@runtime_checkable
class ChapterExtractor(Protocol):
    """Extracts the ordered chapters of one book from its parsed detail page."""

    def extract(self, soup: BeautifulSoup, page_url: str) -> List[Chapter]:
        """Return chapters in page order; unresolvable chapters are left out."""
        ...


def build_api_url(api_base: str, play_id: str) -> str:
    """Return the API address resolving one chapter, restricted to the fields we read."""
    return f"{api_base.rstrip('/')}/{play_id}?_fields={API_FIELDS}"


def parse_station(data: Any, index: int, page_url: str, play_id: str) -> Chapter:
    """Build a chapter from a ``{title: {rendered}, meta: {stream}}`` API object.

    Raises:
        ChapterExtractionError: If the payload is not a JSON object.
    """
    if not isinstance(data, dict):
        raise ChapterExtractionError(page_url, play_id, "API response is not an object")

    title_obj = data.get("title") or {}
    meta_obj = data.get("meta") or {}
    title = title_obj.get("rendered", "") if isinstance(title_obj, dict) else ""
    stream = meta_obj.get("stream", "") if isinstance(meta_obj, dict) else ""
    return Chapter(
        index=index,
        title=unescape(str(title or "")).strip(),
        media_url=str(stream or "").strip(),
    )


class ApiChapterExtractor:
    """Resolves each track's play id through the JSON API, sequentially."""

    def __init__(
        self,
        api_base: str = DEFAULT_API_BASE,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_base = api_base
        self.user_agent = user_agent
        self.timeout = timeout

    def extract(self, soup: BeautifulSoup, page_url: str) -> List[Chapter]:
        chapters: List[Chapter] = []
        for index, track in enumerate(soup.select(pages.TRACK_SELECTOR)):
            chapter = self._extract_track(track, index, page_url)
            if chapter is not None:
                chapters.append(chapter)
        return chapters

    def _extract_track(self, track: Tag, index: int, page_url: str) -> Optional[Chapter]:
        play_id = track.get(pages.TRACK_PLAY_ID_ATTR)
        try:
            return self.resolve_chapter(str(play_id or "").strip(), index, page_url)
        except ChapterExtractionError as exc:
            logger.warning("%s", exc)
            return None

    def resolve_chapter(self, play_id: str, index: int, page_url: str) -> Chapter:
        """Fetch one chapter from the API.

        Raises:
            ChapterExtractionError: On a missing play id, a failed request or bad JSON.
        """
        if not play_id:
            raise ChapterExtractionError(page_url, None, "track has no play id")

        api_url = build_api_url(self.api_base, play_id)
        try:
            data = downloader.fetch_json(api_url, self.user_agent, self.timeout)
        except (FetchError, ParseError) as exc:
            raise ChapterExtractionError(page_url, play_id, str(exc)) from exc
        return parse_station(data, index, page_url, play_id)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(api_base='{self.api_base}')>"


class PageChapterExtractor:
    """Reads chapter titles and direct download links inline from the detail page."""

    def extract(self, soup: BeautifulSoup, page_url: str) -> List[Chapter]:
        chapters: List[Chapter] = []
        for index, track in enumerate(soup.select(pages.TRACK_SELECTOR)):
            title = pages.select_text(track, pages.TRACK_TITLE_SELECTOR).strip()
            link = pages.select_attr(track, pages.TRACK_DOWNLOAD_LINK_SELECTOR, "href") or ""
            if not link:
                logger.debug("Track %d on %s has no download link", index, page_url)
            chapters.append(Chapter(index=index, title=title, media_url=link.strip()))
        return chapters

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}()>"


def create_chapter_extractor(
    strategy: str,
    cfg: Optional["Config"] = None,
) -> ChapterExtractor:
    """Create the chapter extractor for a strategy name ("api" or "page").

    Args:
        strategy: Strategy name
        cfg: Optional configuration supplying API base, user agent and timeout

    Raises:
        ValueError: If the strategy is unknown
    """
    if strategy == CHAPTER_STRATEGY_API:
        if cfg is None:
            return ApiChapterExtractor()
        return ApiChapterExtractor(
            api_base=cfg.api_base, user_agent=cfg.user_agent, timeout=cfg.timeout
        )
    if strategy == CHAPTER_STRATEGY_PAGE:
        return PageChapterExtractor()
    raise ValueError(
        f"Unsupported chapter strategy: {strategy!r}. "
        f"Supported: {CHAPTER_STRATEGY_API}, {CHAPTER_STRATEGY_PAGE}"
    )


__all__ = [
    "ApiChapterExtractor",
    "ChapterExtractor",
    "PageChapterExtractor",
    "build_api_url",
    "create_chapter_extractor",
    "parse_station",
]
