#!/usr/bin/env python3
"""Tests for HTTP fetch helpers."""

import sys
import threading
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

import requests

from audiobook_harvester import downloader
from audiobook_harvester.exceptions import FetchError, ParseError

# Add tests directory to path for conftest import
tests_dir = Path(__file__).parent.parent.parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from conftest import FakeHTTPResponse, TEST_BOOK_URL, TEST_USER_AGENT  # noqa: E402


def _session_returning(response=None, side_effect=None):
    session = Mock()
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        session.get.return_value = response
    return session


class TestNormalizeUrl(unittest.TestCase):
    def test_spaces_quoted(self):
        self.assertEqual(
            downloader.normalize_url("https://audio.example.com/a b.html"),
            "https://audio.example.com/a%20b.html",
        )

    def test_encoded_url_unchanged(self):
        url = "https://audio.example.com/mis%C3%A9rables.html"
        self.assertEqual(downloader.normalize_url(url), url)


class TestFetchText(unittest.TestCase):
    def test_returns_body_and_sends_user_agent(self):
        response = FakeHTTPResponse(text="<html>ok</html>")
        session = _session_returning(response)
        with patch.object(downloader, "_get_thread_request_session", return_value=session):
            body = downloader.fetch_text(TEST_BOOK_URL, TEST_USER_AGENT, timeout=5)

        self.assertEqual(body, "<html>ok</html>")
        session.get.assert_called_once_with(
            TEST_BOOK_URL, headers={"User-Agent": TEST_USER_AGENT}, timeout=5
        )
        self.assertTrue(response.closed)

    def test_no_timeout_by_default(self):
        session = _session_returning(FakeHTTPResponse(text="x"))
        with patch.object(downloader, "_get_thread_request_session", return_value=session):
            downloader.fetch_text(TEST_BOOK_URL, TEST_USER_AGENT)
        self.assertIsNone(session.get.call_args.kwargs["timeout"])

    def test_missing_charset_uses_detected_encoding(self):
        response = FakeHTTPResponse(text="x", headers={"Content-Type": "text/html"})
        response.apparent_encoding = "windows-1252"
        session = _session_returning(response)
        with patch.object(downloader, "_get_thread_request_session", return_value=session):
            downloader.fetch_text(TEST_BOOK_URL, TEST_USER_AGENT)
        self.assertEqual(response.encoding, "windows-1252")

    def test_declared_charset_kept(self):
        response = FakeHTTPResponse(text="x")
        session = _session_returning(response)
        with patch.object(downloader, "_get_thread_request_session", return_value=session):
            downloader.fetch_text(TEST_BOOK_URL, TEST_USER_AGENT)
        self.assertIsNone(response.encoding)

    def test_non_200_status_raises(self):
        for status in (404, 301, 500, 204):
            with self.subTest(status=status):
                response = FakeHTTPResponse(status_code=status, reason="Nope")
                session = _session_returning(response)
                with patch.object(
                    downloader, "_get_thread_request_session", return_value=session
                ):
                    with self.assertRaises(FetchError) as cm:
                        downloader.fetch_text(TEST_BOOK_URL, TEST_USER_AGENT)
                self.assertEqual(cm.exception.status_code, status)
                self.assertEqual(cm.exception.url, TEST_BOOK_URL)
                self.assertIn(f"status code error: {status}", str(cm.exception))
                self.assertTrue(response.closed)

    def test_transport_failure_raises_without_retry(self):
        session = _session_returning(side_effect=requests.ConnectionError("refused"))
        with patch.object(downloader, "_get_thread_request_session", return_value=session):
            with self.assertRaises(FetchError) as cm:
                downloader.fetch_text(TEST_BOOK_URL, TEST_USER_AGENT)

        self.assertIsNone(cm.exception.status_code)
        self.assertIn("refused", str(cm.exception))
        self.assertEqual(session.get.call_count, 1)


class TestFetchJson(unittest.TestCase):
    def test_decodes_object(self):
        response = FakeHTTPResponse(
            text='{"title": {"rendered": "Chapitre 1"}}',
            headers={"Content-Type": "application/json; charset=UTF-8"},
        )
        with patch.object(
            downloader, "_get_thread_request_session", return_value=_session_returning(response)
        ):
            data = downloader.fetch_json(TEST_BOOK_URL, TEST_USER_AGENT)
        self.assertEqual(data, {"title": {"rendered": "Chapitre 1"}})

    def test_invalid_json_is_parse_error(self):
        response = FakeHTTPResponse(text="<html>not json</html>")
        with patch.object(
            downloader, "_get_thread_request_session", return_value=_session_returning(response)
        ):
            with self.assertRaises(ParseError) as cm:
                downloader.fetch_json(TEST_BOOK_URL, TEST_USER_AGENT)
        self.assertIn("invalid JSON", str(cm.exception))


class TestThreadSessions(unittest.TestCase):
    def test_adapters_never_retry(self):
        session = requests.Session()
        try:
            downloader._configure_http_session(session)
            for prefix in ("http://", "https://"):
                adapter = session.get_adapter(prefix + "audio.example.com")
                self.assertEqual(adapter.max_retries.total, 0)
        finally:
            session.close()

    def test_one_session_per_thread(self):
        sessions = {}

        def grab(name):
            sessions[name] = downloader._get_thread_request_session()

        threads = [threading.Thread(target=grab, args=(f"t{n}",)) for n in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertIsNot(sessions["t0"], sessions["t1"])
        self.assertIs(downloader._get_thread_request_session(), downloader._get_thread_request_session())


if __name__ == "__main__":
    unittest.main()
