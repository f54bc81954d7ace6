"""Periodic collection of posts from the stored feeds."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from .commands import Command, CommandError, State
from .database import DatabaseError, DuplicateError, Queries
from .models import Feed
from .rss import RSSFeed, fetch_feed

log = logging.getLogger(__name__)

Fetcher = Callable[[str], RSSFeed]

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``1h30m`` or ``500ms``."""
    rest = text
    sign = 1
    if rest[:1] in "+-" and rest:
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")
    total = 0.0
    pos = 0
    while pos < len(rest):
        match = _PART.match(rest, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    return timedelta(seconds=sign * total)


def parse_pub_date(text: str) -> datetime | None:
    """Parse an RFC 1123 date with numeric zone; return None if it does not match."""
    try:
        return datetime.strptime(text, "%a, %d %b %Y %H:%M:%S %z")
    except ValueError:
        return None


def scrape_feed(db: Queries, feed: Feed, fetch: Fetcher = fetch_feed) -> int:
    """Fetch one feed and store its new posts; return how many were stored."""
    try:
        db.mark_feed_fetched(feed.id)
    except DatabaseError as exc:
        log.info("Couldn't mark feed %s fetched: %s", feed.name, exc)
        return 0
    try:
        data = fetch(feed.url)
    except Exception as exc:
        log.info("Couldn't collect feed %s: %s", feed.name, exc)
        return 0
    created = 0
    for item in data.items:
        now = datetime.now(timezone.utc)
        try:
            db.create_post(
                uuid4(), now, now, item.title, item.link, item.description,
                parse_pub_date(item.pub_date), feed.id,
            )
        except DuplicateError:
            continue
        except DatabaseError as exc:
            log.info("Couldn't create post: %s", exc)
            continue
        created += 1
    log.info("Feed %s collected, %d posts found", feed.name, len(data.items))
    return created


def scrape_feeds(state: State, fetch: Fetcher = fetch_feed) -> Feed | None:
    """Scrape the feed due next; return it, or None if there was none."""
    try:
        feed = state.db.get_next_feed_to_fetch()
    except DatabaseError as exc:
        log.info("Couldn't get next feeds to fetch %s", exc)
        return None
    log.info("Found a feed to fetch!")
    scrape_feed(state.db, feed, fetch)
    return feed


def handler_agg(state: State, cmd: Command) -> None:
    if not 1 <= len(cmd.args) <= 2:
        raise CommandError(f"usage: {cmd.name} <time_between_reqs>")
    try:
        interval = parse_duration(cmd.args[0])
    except ValueError as exc:
        raise CommandError(f"invalid duration: {exc}") from exc
    if interval <= timedelta(0):
        raise CommandError("invalid duration: must be positive")
    log.info("Collecting feeds every %s...", cmd.args[0])
    seconds = interval.total_seconds()
    next_run = time.monotonic()
    while True:
        scrape_feeds(state)
        next_run += seconds
        time.sleep(max(0.0, next_run - time.monotonic()))