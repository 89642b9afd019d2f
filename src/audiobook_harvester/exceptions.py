"""Exceptions raised while harvesting audiobook feeds.

Exception Hierarchy:
    HarvestError (base)
    ├── FetchError - Non-200 HTTP status or transport failure
    ├── ParseError - Malformed markup or JSON
    ├── EmptyTitleError - Book title and author produce no usable filename
    └── ChapterExtractionError - One chapter could not be resolved (never fatal)
"""

from typing import Optional


class HarvestError(Exception):
    """Base exception for all harvesting errors.

    Attributes:
        url: Address of the unit of work that failed, if known
        message: Human-readable error message
    """

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        self.url = url
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.url:
            return f"[{self.url}] {self.message}"
        return self.message


class FetchError(HarvestError):
    """Raised when a page or API call returns a non-200 status or cannot be read.

    Example:
        >>> raise FetchError("https://example.com/page/3", status_code=503, reason="Unavailable")
    """

    def __init__(
        self,
        url: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        if status_code is not None:
            message = f"status code error: {status_code}"
            if reason:
                message = f"{message} {reason}"
        else:
            message = f"request failed: {reason or 'unknown error'}"
        super().__init__(message, url=url)


class ParseError(HarvestError):
    """Raised when a document does not have the expected structure."""

    def __init__(self, url: str, reason: str) -> None:
        self.reason = reason
        super().__init__(f"could not parse document: {reason}", url=url)


class EmptyTitleError(HarvestError):
    """Raised when a book's author and title normalize to an empty filename.

    No file is written for such a book.
    """

    def __init__(self, url: str) -> None:
        super().__init__("book has no title", url=url)


class ChapterExtractionError(HarvestError):
    """Raised when one chapter's secondary lookup fails.

    Callers log and skip the chapter; the rest of the feed is still written.

    Attributes:
        play_id: Chapter identifier embedded in the detail page
        reason: Why the lookup failed
    """

    def __init__(self, url: str, play_id: Optional[str], reason: str) -> None:
        self.play_id = play_id
        self.reason = reason
        super().__init__(f"chapter {play_id or '?'} skipped: {reason}", url=url)
