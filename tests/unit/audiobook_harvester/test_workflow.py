#!/usr/bin/env python3
"""Tests for run orchestration and logging setup."""

import logging
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from audiobook_harvester import catalog, feed_builder, harvest, workflow
from audiobook_harvester.chapters import PageChapterExtractor
from audiobook_harvester.exceptions import FetchError
from audiobook_harvester.models import CatalogListing

# Add tests directory to path for conftest import
tests_dir = Path(__file__).parent.parent.parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from conftest import create_test_config, TEST_BASE_URL, TEST_LISTING_URL  # noqa: E402


def _addresses(count):
    return [f"{TEST_BASE_URL}/livre-{n}.html" for n in range(1, count + 1)]


class TestRunPipeline(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        import shutil

        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_harvests_every_listed_book(self):
        cfg = create_test_config(output_dir=self.temp_dir, workers=3, max_pages=2)
        listing = CatalogListing(addresses=_addresses(4))
        with patch.object(catalog, "list_books", return_value=listing) as mock_list, patch.object(
            harvest, "harvest", return_value=4
        ) as mock_harvest:
            count, summary = workflow.run_pipeline(cfg)

        self.assertEqual(count, 4)
        self.assertIn("books_processed=4", summary)
        self.assertIn(str(Path(self.temp_dir).resolve()), summary)
        mock_list.assert_called_once_with(TEST_LISTING_URL, 2, cfg.user_agent, None)
        addresses, build_fn, workers = mock_harvest.call_args[0]
        self.assertEqual(addresses, _addresses(4))
        self.assertEqual(workers, 3)
        self.assertIs(build_fn.func, feed_builder.create_feed)
        self.assertEqual(build_fn.keywords["cfg"].output_dir, str(Path(self.temp_dir).resolve()))

    def test_max_books_caps_addresses(self):
        cfg = create_test_config(output_dir=self.temp_dir, max_books=2)
        listing = CatalogListing(addresses=_addresses(5))
        with patch.object(catalog, "list_books", return_value=listing), patch.object(
            harvest, "harvest", return_value=2
        ) as mock_harvest:
            workflow.run_pipeline(cfg)
        self.assertEqual(mock_harvest.call_args[0][0], _addresses(2))

    def test_strategy_selects_extractor(self):
        cfg = create_test_config(output_dir=self.temp_dir, chapter_strategy="page")
        with patch.object(
            catalog, "list_books", return_value=CatalogListing(addresses=_addresses(1))
        ), patch.object(harvest, "harvest", return_value=1) as mock_harvest:
            workflow.run_pipeline(cfg)
        build_fn = mock_harvest.call_args[0][1]
        self.assertIsInstance(build_fn.keywords["extractor"], PageChapterExtractor)

    def test_catalog_failure_aborts_before_harvest(self):
        cfg = create_test_config(output_dir=self.temp_dir)
        error = FetchError(f"{TEST_LISTING_URL}/page/2", status_code=500, reason="Server Error")
        listing = CatalogListing(addresses=_addresses(3), error=error)
        with patch.object(catalog, "list_books", return_value=listing), patch.object(
            harvest, "harvest"
        ) as mock_harvest:
            with self.assertLogs("audiobook_harvester.workflow", level="ERROR"):
                with self.assertRaises(FetchError) as cm:
                    workflow.run_pipeline(cfg)

        self.assertIs(cm.exception, error)
        mock_harvest.assert_not_called()

    def test_creates_missing_output_directory(self):
        target = os.path.join(self.temp_dir, "nested", "feeds")
        cfg = create_test_config(output_dir=target)
        with patch.object(catalog, "list_books", return_value=CatalogListing()), patch.object(
            harvest, "harvest", return_value=0
        ):
            count, _ = workflow.run_pipeline(cfg)
        self.assertEqual(count, 0)
        self.assertTrue(os.path.isdir(target))

    def test_output_path_that_is_a_file(self):
        file_path = os.path.join(self.temp_dir, "feeds")
        Path(file_path).write_text("x", encoding="utf-8")
        with self.assertRaises(ValueError):
            workflow.run_pipeline(create_test_config(output_dir=file_path))


class TestApplyLogLevel(unittest.TestCase):
    def setUp(self):
        self.root = logging.getLogger()
        self.saved_level = self.root.level
        self.saved_handlers = list(self.root.handlers)
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        import shutil

        for handler in list(self.root.handlers):
            if handler not in self.saved_handlers:
                self.root.removeHandler(handler)
                handler.close()
        self.root.setLevel(self.saved_level)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_sets_root_level(self):
        workflow.apply_log_level("WARNING")
        self.assertEqual(self.root.level, logging.WARNING)

    def test_invalid_level(self):
        with self.assertRaises(ValueError):
            workflow.apply_log_level("LOUD")

    def test_log_file_handler_added_once(self):
        log_file = os.path.join(self.temp_dir, "logs", "harvest.log")
        workflow.apply_log_level("INFO", log_file)
        workflow.apply_log_level("INFO", log_file)

        file_handlers = [
            h
            for h in self.root.handlers
            if isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
        ]
        self.assertEqual(len(file_handlers), 1)
        self.assertTrue(os.path.exists(log_file))


if __name__ == "__main__":
    unittest.main()
