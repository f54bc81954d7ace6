"""Commands that manage feeds, follows and browsing posts."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from .commands import Command, CommandError, State
from .database import DatabaseError
from .models import Feed, User

SEPARATOR = "====================================="
_ZERO_TIME = "0001-01-01 00:00:00 +0000 UTC"


def _format_time(value: datetime | None) -> str:
    if value is None:
        return _ZERO_TIME
    text = value.strftime("%Y-%m-%d %H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    offset = value.strftime("%z") or "+0000"
    zone = "UTC" if offset == "+0000" else offset
    return f"{text} {offset} {zone}"


def format_feed(feed: Feed, user: User) -> str:
    return "\n".join(
        [
            f"* ID:            {feed.id}",
            f"* Created:       {_format_time(feed.created_at)}",
            f"* Updated:       {_format_time(feed.updated_at)}",
            f"* Name:          {feed.name}",
            f"* URL:           {feed.url}",
            f"* User:          {user.name}",
            f"* LastFetchedAt: {_format_time(feed.last_fetched_at)}",
        ]
    )


def format_feed_follow(user_name: str, feed_name: str) -> str:
    return f"* User:          {user_name}\n* Feed:          {feed_name}"


def _follow(state: State, user: User, feed: Feed):
    now = datetime.now(timezone.utc)
    try:
        return state.db.create_feed_follow(uuid4(), now, now, user.id, feed.id)
    except DatabaseError as exc:
        raise CommandError(f"couldn't create feed follow: {exc}") from exc


def _feed_by_url(state: State, url: str) -> Feed:
    try:
        return state.db.get_feed_by_url(url)
    except DatabaseError as exc:
        raise CommandError(f"couldn't get feed: {exc}") from exc


def handler_add_feed(state: State, cmd: Command, user: User) -> None:
    if len(cmd.args) != 2:
        raise CommandError(f"usage: {cmd.name} <name> <url>")
    name, url = cmd.args
    now = datetime.now(timezone.utc)
    try:
        feed = state.db.create_feed(uuid4(), now, now, name, url, user.id)
    except DatabaseError as exc:
        raise CommandError(f"couldn't create feed: {exc}") from exc
    follow = _follow(state, user, feed)
    print("Feed created successfully:")
    print(format_feed(feed, user))
    print()
    print("Feed followed successfully:")
    print(format_feed_follow(follow.user_name, follow.feed_name))
    print(SEPARATOR)


def handler_list_feeds(state: State, cmd: Command) -> None:
    try:
        feeds = state.db.get_feeds()
    except DatabaseError as exc:
        raise CommandError(f"couldn't get feeds: {exc}") from exc
    if not feeds:
        print("No feeds found.")
        return
    print(f"Found {len(feeds)} feeds:")
    for feed in feeds:
        try:
            user = state.db.get_user_by_id(feed.user_id)
        except DatabaseError as exc:
            raise CommandError(f"couldn't get user: {exc}") from exc
        print(format_feed(feed, user))
        print(SEPARATOR)


def handler_follow(state: State, cmd: Command, user: User) -> None:
    if len(cmd.args) != 1:
        raise CommandError(f"usage: {cmd.name} <feed_url>")
    feed = _feed_by_url(state, cmd.args[0])
    follow = _follow(state, user, feed)
    print("Feed follow created:")
    print(format_feed_follow(follow.user_name, follow.feed_name))


def handler_list_feed_follows(state: State, cmd: Command, user: User) -> None:
    try:
        follows = state.db.get_feed_follows_for_user(user.id)
    except DatabaseError as exc:
        raise CommandError(f"couldn't get feed follows: {exc}") from exc
    if not follows:
        print("No feed follows found for this user.")
        return
    print(f"Feed follows for user {user.name}:")
    for follow in follows:
        print(f"* {follow.feed_name}")


def handler_unfollow(state: State, cmd: Command, user: User) -> None:
    if not cmd.args:
        raise CommandError(f"usage: {cmd.name} <feed_url>")
    feed = _feed_by_url(state, cmd.args[0])
    try:
        state.db.delete_feed_follow(feed.id, user.id)
    except DatabaseError as exc:
        raise CommandError(f"unable to unfollow: {exc}") from exc


def handler_browse(state: State, cmd: Command, user: User) -> None:
    limit = 2
    if len(cmd.args) == 1:
        try:
            limit = int(cmd.args[0])
        except ValueError as exc:
            raise CommandError(f"invalid limit: {exc}") from exc
    try:
        posts = state.db.get_posts_for_user(user.id, limit)
    except DatabaseError as exc:
        raise CommandError(f"couldn't get posts for user: {exc}") from exc
    print(f"Found {len(posts)} posts for user {user.name}:")
    for post in posts:
        if post.published_at is None:
            date = "Mon Jan 1"
        else:
            date = f"{post.published_at.strftime('%a %b')} {post.published_at.day}"
        print(f"{date} from {post.feed_name}")
        print(f"--- {post.title} ---")
        print(f"    {post.description or ''}")
        print(f"Link: {post.url}")
        print(SEPARATOR)