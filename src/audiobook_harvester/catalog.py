"""Catalog listing: collects every book's detail-page address.

Pages are fetched one after another; parallelism belongs to the harvest pool.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from . import downloader, pages
from .config_constants import DEFAULT_USER_AGENT
from .exceptions import HarvestError
from .models import CatalogListing

logger = logging.getLogger(__name__)


def build_page_url(listing_url: str, page: int) -> str:
    """Return the address of one listing page (``<listing>/page/<n>``)."""
    return f"{listing_url.rstrip('/')}/page/{page}"


def extract_book_urls(markup: str, page_url: str) -> List[str]:
    """Extract book addresses from one listing page, in document order.

    Raises:
        ParseError: If the page cannot be parsed.
    """
    soup = pages.parse_html(markup, page_url)
    book_urls: List[str] = []
    for anchor in soup.select(pages.LISTING_BOOK_LINK_SELECTOR):
        href = anchor.get("href")
        if not href:
            continue
        book_url = str(href).strip()
        logger.debug("Found %s", book_url)
        book_urls.append(book_url)
    return book_urls


def list_books(
    listing_url: str,
    max_pages: int,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: Optional[float] = None,
) -> CatalogListing:
    """Walk listing pages 1..max_pages and collect book addresses.

    The first page that cannot be fetched or parsed stops the walk. The returned
    listing then keeps the addresses gathered so far and carries the error.

    Args:
        listing_url: Base address of the catalog listing
        max_pages: Fixed number of pages to walk
        user_agent: HTTP User-Agent header
        timeout: Per-request timeout in seconds, None for no deadline

    Returns:
        CatalogListing with addresses in page-then-document order
    """
    listing = CatalogListing()
    for page in range(1, max_pages + 1):
        page_url = build_page_url(listing_url, page)
        logger.info("Getting books at %s", page_url)
        try:
            markup = downloader.fetch_text(page_url, user_agent, timeout)
            listing.addresses.extend(extract_book_urls(markup, page_url))
        except HarvestError as exc:
            logger.error("Catalog listing stopped at page %d: %s", page, exc)
            listing.error = exc
            break

    logger.info(
        "Collected %d book addresses from %s%s",
        len(listing.addresses),
        listing_url,
        "" if listing.complete else " (incomplete)",
    )
    return listing


__all__ = ["build_page_url", "extract_book_urls", "list_books"]
