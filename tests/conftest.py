"""Shared fixtures and test utilities for audiobook_harvester tests.

This module contains:
- Test constants
- Builders for catalog listing and book detail pages
- A fake site standing in for the HTTP layer
- Helper functions for creating test objects

All test files can import from this module using pytest's conftest.py mechanism.
"""

import os

os.environ["TERM"] = "dumb"  # Keep tqdm output plain in tests

import threading
from html import escape

from audiobook_harvester import config
from audiobook_harvester.exceptions import FetchError

# Test constants
TEST_BASE_URL = "https://audio.example.com"
TEST_LISTING_URL = f"{TEST_BASE_URL}/classement"
TEST_API_BASE = f"{TEST_BASE_URL}/wp-json/wp/v2/station"
TEST_BOOK_URL = f"{TEST_BASE_URL}/livre-audio-gratuit-mp3/hugo-victor-les-miserables.html"
TEST_BOOK_TITLE = "Les Misérables"
TEST_BOOK_AUTHOR = "Victor Hugo"
TEST_BOOK_SLUG = "victor_hugo_les_miserables"
TEST_COVER_URL = f"{TEST_BASE_URL}/wp-content/uploads/les-miserables.jpg"
TEST_MEDIA_URL = f"{TEST_BASE_URL}/mp3/hugo-les-miserables-01.mp3"
TEST_USER_AGENT = "test-agent"


def create_test_config(**overrides):
    """Create test Config object with defaults.

    Args:
        **overrides: Fields to override from defaults

    Returns:
        config.Config object with test defaults
    """
    defaults = {
        "listing_url": TEST_LISTING_URL,
        "api_base": TEST_API_BASE,
        "max_pages": 1,
        "output_dir": ".",
        "workers": 2,
        "user_agent": TEST_USER_AGENT,
        "chapter_strategy": "api",
        "log_level": "INFO",
    }
    defaults.update(overrides)
    return config.Config(**defaults)


def build_listing_html(book_urls):
    """Build a catalog listing page with one article per book address."""
    articles = "".join(
        f"""
    <article class="post">
      <header class="entry-header">
        <h3 class="entry-title"><a href="{escape(url)}">Book {idx}</a></h3>
      </header>
      <div class="entry-summary"><a href="/ignored-{idx}">Lire la suite</a></div>
    </article>"""
        for idx, url in enumerate(book_urls, start=1)
    )
    return f"""<!DOCTYPE html>
<html lang="fr">
  <head><title>Classement</title></head>
  <body>
    <main>{articles}
    </main>
  </body>
</html>"""


def build_detail_html(title=TEST_BOOK_TITLE, author=TEST_BOOK_AUTHOR, cover_url=None, tracks=()):
    """Build a book detail page.

    Args:
        title: Book title (rendered with surrounding whitespace)
        author: Author name
        cover_url: Optional cover image address; no thumbnail block when None
        tracks: Sequence of dicts with optional keys ``play_id``, ``title`` and ``link``

    Returns:
        HTML string
    """
    cover = (
        f'<div class="post-thumbnail"><img src="{escape(cover_url)}" alt="cover"></div>'
        if cover_url
        else ""
    )
    track_html = ""
    for track in tracks:
        play_id = track.get("play_id")
        play_attr = f' data-play-id="{escape(play_id)}"' if play_id is not None else ""
        link = track.get("link")
        track_title = escape(track.get("title", ""))
        footer = (
            f'<footer class="entry-footer"><a class="no-ajax" href="{escape(link)}">'
            "Télécharger</a></footer>"
            if link
            else ""
        )
        track_html += f"""
      <article class="album-track"{play_attr}>
        <header class="entry-header"><h2 class="entry-title">{track_title}</h2></header>
        {footer}
      </article>"""
    return f"""<!DOCTYPE html>
<html lang="fr">
  <body>
    <article class="post">
      <div class="header-station">
        {cover}
        <div class="entry-header">
          <h1 class="entry-title">
            {escape(title)}
          </h1>
          <div class="entry-auteur"><a href="/auteur/x">{escape(author)}</a></div>
        </div>
      </div>
      <div class="album-tracks">{track_html}
      </div>
    </article>
  </body>
</html>"""


def build_station_json(title, stream):
    """Build the chapter API payload for one play id."""
    return {"title": {"rendered": title}, "meta": {"stream": stream}}


class FakeSite:
    """In-memory stand-in for the HTTP layer.

    ``pages`` maps URLs to markup, ``api`` maps URLs to decoded JSON. A value that
    is an exception is raised instead; unknown URLs raise a 404 ``FetchError``.
    """

    def __init__(self, pages=None, api=None):
        self.pages = dict(pages or {})
        self.api = dict(api or {})
        self.requested = []
        self._lock = threading.Lock()

    def _lookup(self, table, url):
        with self._lock:
            self.requested.append(url)
        value = table.get(url)
        if value is None:
            raise FetchError(url, status_code=404, reason="Not Found")
        if isinstance(value, Exception):
            raise value
        return value

    def fetch_text(self, url, user_agent, timeout=None):
        return self._lookup(self.pages, url)

    def fetch_json(self, url, user_agent, timeout=None):
        return self._lookup(self.api, url)


class FakeHTTPResponse:
    """Simple stand-in for ``requests.Response`` used by downloader tests."""

    def __init__(self, *, status_code=200, reason="OK", text="", headers=None):
        self.status_code = status_code
        self.reason = reason
        self.text = text
        self.headers = headers or {"Content-Type": "text/html; charset=UTF-8"}
        self.encoding = None
        self.apparent_encoding = "utf-8"
        self.closed = False

    def close(self):
        self.closed = True
