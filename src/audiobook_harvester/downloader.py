"""HTTP session management and fetch helpers for audiobook_harvester.

Each worker thread owns its own ``requests.Session``. Requests are never
retried: a failed fetch surfaces as a ``FetchError`` for the caller to log.
"""

from __future__ import annotations

import atexit
import json
import logging
import threading
from typing import Any, cast, List, Optional

import requests
from requests.adapters import HTTPAdapter
from requests.utils import requote_uri

from .exceptions import FetchError, ParseError

logger = logging.getLogger(__name__)

HTTP_OK = 200


class _SessionPool:
    """Hands every thread its own ``requests.Session`` and closes them all at exit."""

    def __init__(self) -> None:
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._lock = threading.Lock()

    def get(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            _configure_http_session(session)
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
            logger.debug("Opened HTTP session for %s", threading.current_thread().name)
        return session

    def close_all(self) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()


def normalize_url(url: str) -> str:
    """Quote unsafe characters without double-encoding existing escapes."""
    return cast(str, requote_uri(url))


def _configure_http_session(session: requests.Session) -> None:
    adapter = HTTPAdapter(max_retries=0)
    session.mount("http://", adapter)
    session.mount("https://", adapter)


_SESSIONS = _SessionPool()
atexit.register(_SESSIONS.close_all)


def _get_thread_request_session() -> requests.Session:
    return _SESSIONS.get()


def _open_http_request(url: str, user_agent: str, timeout: Optional[float]) -> requests.Response:
    """Execute a GET request and return the response when the status is 200."""
    normalized_url = normalize_url(url)
    headers = {"User-Agent": user_agent}
    session = _get_thread_request_session()
    try:
        resp = session.get(normalized_url, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(url, reason=str(exc)) from exc

    if resp.status_code != HTTP_OK:
        status, reason = resp.status_code, resp.reason
        resp.close()
        raise FetchError(url, status_code=status, reason=reason)

    logger.debug("GET %s succeeded with status %s", normalized_url, resp.status_code)
    return resp


def fetch_text(url: str, user_agent: str, timeout: Optional[float] = None) -> str:
    """Fetch a URL and return its decoded body.

    Raises:
        FetchError: On a non-200 status, a transport failure or an unreadable body.
    """
    resp = _open_http_request(url, user_agent, timeout)
    try:
        # Without a declared charset requests falls back to ISO-8859-1
        if "charset" not in resp.headers.get("Content-Type", "").lower():
            resp.encoding = resp.apparent_encoding
        return resp.text
    except (requests.RequestException, OSError) as exc:
        raise FetchError(url, reason=f"error reading body: {exc}") from exc
    finally:
        resp.close()


def fetch_json(url: str, user_agent: str, timeout: Optional[float] = None) -> Any:
    """Fetch a URL and decode its JSON body.

    Raises:
        FetchError: On a non-200 status or a transport failure.
        ParseError: When the body is not valid JSON.
    """
    body = fetch_text(url, user_agent, timeout)
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise ParseError(url, f"invalid JSON: {exc}") from exc


__all__ = ["HTTP_OK", "fetch_json", "fetch_text", "normalize_url"]
