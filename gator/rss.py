"""Fetching and parsing RSS feeds."""

from __future__ import annotations

import html
import urllib.request
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

USER_AGENT = "gator"
DEFAULT_TIMEOUT = 10.0


@dataclass
class RSSItem:
    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str = ""


@dataclass
class RSSFeed:
    title: str = ""
    link: str = ""
    description: str = ""
    items: list[RSSItem] = field(default_factory=list)


def _child_text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    if child is None:
        return ""
    return "".join(child.itertext())


def parse_feed(data: bytes | str) -> RSSFeed:
    """Parse an RSS document, unescaping HTML entities in titles and descriptions."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ValueError(f"invalid feed XML: {exc}") from exc
    channel = root.find("channel")
    if channel is None:
        return RSSFeed()
    items = [
        RSSItem(
            title=html.unescape(_child_text(item, "title")),
            link=_child_text(item, "link"),
            description=html.unescape(_child_text(item, "description")),
            pub_date=_child_text(item, "pubDate"),
        )
        for item in channel.findall("item")
    ]
    return RSSFeed(
        title=html.unescape(_child_text(channel, "title")),
        link=_child_text(channel, "link"),
        description=html.unescape(_child_text(channel, "description")),
        items=items,
    )


def fetch_feed(url: str, timeout: float = DEFAULT_TIMEOUT) -> RSSFeed:
    """Download the feed at ``url`` and parse it."""
    request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    with urllib.request.urlopen(request, timeout=timeout) as response:
        data = response.read()
    return parse_feed(data)