"""Configuration constants for audiobook_harvester.

All constants are re-exported from config.py for convenience.
"""

import os

# General defaults
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/119.0 Safari/537.36"
)
# One worker per available CPU
DEFAULT_WORKERS = max(1, os.cpu_count() or 1)
DEFAULT_OUTPUT_DIR = "."

# Catalog defaults
DEFAULT_LISTING_URL = (
    "https://www.litteratureaudio.com/classement-de-nos-livres-audio-gratuits-les-plus-apprecies"
)
DEFAULT_MAX_PAGES = 276
DEFAULT_API_BASE = "https://www.litteratureaudio.com/wp-json/wp/v2/station"
API_FIELDS = "title,meta.stream,media.download_url"

# Chapter extraction strategies
CHAPTER_STRATEGY_API = "api"
CHAPTER_STRATEGY_PAGE = "page"
CHAPTER_STRATEGIES = (CHAPTER_STRATEGY_API, CHAPTER_STRATEGY_PAGE)
DEFAULT_CHAPTER_STRATEGY = CHAPTER_STRATEGY_API

# Feed document defaults
FEED_LANGUAGE = "fr"
FEED_FILE_EXTENSION = ".rss"
ENCLOSURE_MEDIA_TYPE = "audio/mpeg"
ENCLOSURE_PLACEHOLDER_LENGTH = "1000000"
# Spacing between synthetic item timestamps, so players sorting by date keep chapter order
ITEM_TIMESTAMP_SPACING_HOURS = 24

MIN_WORKERS = 1
MIN_PAGES = 1
