"""Serialize ``Feed`` objects into RSS 2.0 documents."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET  # nosec B405 - only builds documents, never parses
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional

from .config_constants import ENCLOSURE_MEDIA_TYPE, ENCLOSURE_PLACEHOLDER_LENGTH
from .models import Feed, FeedItem

ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

ET.register_namespace("itunes", ITUNES_NS)

# Characters outside the XML 1.0 Char production
_XML_INVALID_CHARS = re.compile(
    r"[^\u0009\u000A\u000D\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]"
)


def _xml_safe(text: str) -> str:
    """Drop characters XML 1.0 cannot represent, such as C0 control codes."""
    return _XML_INVALID_CHARS.sub("", text)


def _sanitize_tree(root: ET.Element) -> None:
    for element in root.iter():
        if element.text:
            element.text = _xml_safe(element.text)
        for name, value in list(element.attrib.items()):
            element.set(name, _xml_safe(value))


def _itunes(tag: str) -> str:
    return f"{{{ITUNES_NS}}}{tag}"


def _sub_text(parent: ET.Element, tag: str, text: Optional[str]) -> Optional[ET.Element]:
    if not text:
        return None
    element = ET.SubElement(parent, tag)
    element.text = text
    return element


def format_rfc822(moment: datetime) -> str:
    """Format a datetime the way RSS ``pubDate`` expects."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def _build_item(channel: ET.Element, item: FeedItem) -> None:
    element = ET.SubElement(channel, "item")
    ET.SubElement(element, "title").text = item.title
    _sub_text(element, "link", item.media_url)
    ET.SubElement(element, "description").text = item.description
    if item.media_url:
        ET.SubElement(
            element,
            "enclosure",
            {
                "url": item.media_url,
                "length": ENCLOSURE_PLACEHOLDER_LENGTH,
                "type": ENCLOSURE_MEDIA_TYPE,
            },
        )
        guid = ET.SubElement(element, "guid", {"isPermaLink": "false"})
        guid.text = item.media_url
    ET.SubElement(element, "pubDate").text = format_rfc822(item.published)


def build_rss_tree(feed: Feed, built_at: Optional[datetime] = None) -> ET.Element:
    """Build the ``<rss>`` element tree for a feed."""
    rss = ET.Element("rss", {"version": "2.0"})
    channel = ET.SubElement(rss, "channel")
    ET.SubElement(channel, "title").text = feed.title
    ET.SubElement(channel, "link").text = feed.source_link
    ET.SubElement(channel, "description").text = feed.description
    ET.SubElement(channel, "language").text = feed.language
    _sub_text(channel, "managingEditor", feed.author_name)
    _sub_text(channel, _itunes("author"), feed.author_name)
    ET.SubElement(channel, "lastBuildDate").text = format_rfc822(
        built_at or datetime.now(timezone.utc)
    )

    if feed.cover_image_url:
        image = ET.SubElement(channel, "image")
        ET.SubElement(image, "url").text = feed.cover_image_url
        ET.SubElement(image, "title").text = feed.title
        ET.SubElement(image, "link").text = feed.source_link
        ET.SubElement(channel, _itunes("image"), {"href": feed.cover_image_url})

    for item in feed.items:
        _build_item(channel, item)
    _sanitize_tree(rss)
    return rss


def to_rss(feed: Feed, built_at: Optional[datetime] = None) -> str:
    """Serialize a feed to an RSS 2.0 document string."""
    root = build_rss_tree(feed, built_at)
    ET.indent(root)
    return XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"


__all__ = ["ITUNES_NS", "build_rss_tree", "format_rfc822", "to_rss"]
