"""SQLite storage for users, feeds, feed follows and posts."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from uuid import UUID

from .models import Feed, FeedFollowRow, Post, PostWithFeed, User

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS feeds (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    name TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    user_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    last_fetched_at TEXT
);
CREATE TABLE IF NOT EXISTS feed_follows (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    user_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    feed_id TEXT NOT NULL REFERENCES feeds (id) ON DELETE CASCADE,
    UNIQUE (user_id, feed_id)
);
CREATE TABLE IF NOT EXISTS posts (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    title TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    description TEXT,
    published_at TEXT,
    feed_id TEXT NOT NULL REFERENCES feeds (id) ON DELETE CASCADE
);
"""

_USER_COLUMNS = "id, created_at, updated_at, name"
_FEED_COLUMNS = "id, created_at, updated_at, name, url, user_id, last_fetched_at"
_FOLLOW_SELECT = """
SELECT feed_follows.id, feed_follows.created_at, feed_follows.updated_at,
       feed_follows.user_id, feed_follows.feed_id,
       feeds.name AS feed_name, users.name AS user_name
FROM feed_follows
INNER JOIN feeds ON feed_follows.feed_id = feeds.id
INNER JOIN users ON feed_follows.user_id = users.id
"""
_POST_COLUMNS = "id, created_at, updated_at, title, url, description, published_at, feed_id"


class DatabaseError(Exception):
    """A query failed."""


class NotFoundError(DatabaseError):
    """A query that must return a row returned none."""


class DuplicateError(DatabaseError):
    """An insert violated a unique constraint."""


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except sqlite3.IntegrityError as exc:
        message = str(exc)
        if "UNIQUE constraint failed" in message:
            raise DuplicateError(f"duplicate key value violates unique constraint: {message}") from exc
        raise DatabaseError(message) from exc
    except sqlite3.Error as exc:
        raise DatabaseError(str(exc)) from exc


def _to_db_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db_time(value: str | None) -> datetime | None:
    return None if value is None else datetime.fromisoformat(value)


def _user(row: tuple) -> User:
    return User(UUID(row[0]), _from_db_time(row[1]), _from_db_time(row[2]), row[3])


def _feed(row: tuple) -> Feed:
    return Feed(
        id=UUID(row[0]),
        created_at=_from_db_time(row[1]),
        updated_at=_from_db_time(row[2]),
        name=row[3],
        url=row[4],
        user_id=UUID(row[5]),
        last_fetched_at=_from_db_time(row[6]),
    )


def _follow_row(row: tuple) -> FeedFollowRow:
    return FeedFollowRow(
        id=UUID(row[0]),
        created_at=_from_db_time(row[1]),
        updated_at=_from_db_time(row[2]),
        user_id=UUID(row[3]),
        feed_id=UUID(row[4]),
        feed_name=row[5],
        user_name=row[6],
    )


def _post_fields(row: tuple) -> dict:
    return {
        "id": UUID(row[0]),
        "created_at": _from_db_time(row[1]),
        "updated_at": _from_db_time(row[2]),
        "title": row[3],
        "url": row[4],
        "description": row[5],
        "published_at": _from_db_time(row[6]),
        "feed_id": UUID(row[7]),
    }


class Queries:
    """Typed queries over an SQLite connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._depth = 0
        conn.isolation_level = None
        with _translate_errors():
            conn.execute("PRAGMA foreign_keys = ON")

    def __enter__(self) -> Queries:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def create_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        with _translate_errors():
            self._conn.executescript(_SCHEMA)

    @contextmanager
    def transaction(self) -> Iterator[Queries]:
        """Run the enclosed queries atomically; roll back if an exception escapes."""
        name = f"gator_sp{self._depth}"
        with _translate_errors():
            self._conn.execute(f"SAVEPOINT {name}")
        self._depth += 1
        try:
            yield self
        except BaseException:
            with _translate_errors():
                self._conn.execute(f"ROLLBACK TO {name}")
                self._conn.execute(f"RELEASE {name}")
            raise
        else:
            with _translate_errors():
                self._conn.execute(f"RELEASE {name}")
        finally:
            self._depth -= 1

    def close(self) -> None:
        self._conn.close()

    def _fetch_one(self, sql: str, params: tuple, what: str) -> tuple:
        with _translate_errors():
            row = self._conn.execute(sql, params).fetchone()
        if row is None:
            raise NotFoundError(f"no {what} found")
        return row

    def _fetch_all(self, sql: str, params: tuple = ()) -> list[tuple]:
        with _translate_errors():
            return self._conn.execute(sql, params).fetchall()

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with _translate_errors():
            return self._conn.execute(sql, params)

    # users

    def create_user(self, id: UUID, created_at: datetime, updated_at: datetime, name: str) -> User:
        with self.transaction():
            self._execute(
                "INSERT INTO users (id, created_at, updated_at, name) VALUES (?, ?, ?, ?)",
                (str(id), _to_db_time(created_at), _to_db_time(updated_at), name),
            )
            return self.get_user_by_id(id)

    def get_user(self, name: str) -> User:
        row = self._fetch_one(f"SELECT {_USER_COLUMNS} FROM users WHERE name = ?", (name,), "user")
        return _user(row)

    def get_user_by_id(self, id: UUID) -> User:
        row = self._fetch_one(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (str(id),), "user")
        return _user(row)

    def get_users(self) -> list[User]:
        return [_user(row) for row in self._fetch_all(f"SELECT {_USER_COLUMNS} FROM users")]

    def delete_users(self) -> None:
        self._execute("DELETE FROM users")

    # feeds

    def create_feed(
        self,
        id: UUID,
        created_at: datetime,
        updated_at: datetime,
        name: str,
        url: str,
        user_id: UUID,
    ) -> Feed:
        with self.transaction():
            self._execute(
                "INSERT INTO feeds (id, created_at, updated_at, name, url, user_id) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (str(id), _to_db_time(created_at), _to_db_time(updated_at), name, url, str(user_id)),
            )
            return self._feed_by_id(id)

    def _feed_by_id(self, id: UUID) -> Feed:
        row = self._fetch_one(f"SELECT {_FEED_COLUMNS} FROM feeds WHERE id = ?", (str(id),), "feed")
        return _feed(row)

    def get_feed_by_url(self, url: str) -> Feed:
        row = self._fetch_one(f"SELECT {_FEED_COLUMNS} FROM feeds WHERE url = ?", (url,), "feed")
        return _feed(row)

    def get_feeds(self) -> list[Feed]:
        return [_feed(row) for row in self._fetch_all(f"SELECT {_FEED_COLUMNS} FROM feeds")]

    def get_next_feed_to_fetch(self) -> Feed:
        """Return the feed fetched longest ago, never-fetched feeds first."""
        row = self._fetch_one(
            f"SELECT {_FEED_COLUMNS} FROM feeds "
            "ORDER BY last_fetched_at IS NOT NULL, last_fetched_at ASC LIMIT 1",
            (),
            "feed",
        )
        return _feed(row)

    def mark_feed_fetched(self, id: UUID) -> Feed:
        """Set the feed's fetch and update times to now and return it."""
        now = _to_db_time(datetime.now(timezone.utc))
        with self.transaction():
            cursor = self._execute(
                "UPDATE feeds SET updated_at = ?, last_fetched_at = ? WHERE id = ?",
                (now, now, str(id)),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("no feed found")
            return self._feed_by_id(id)

    # feed follows

    def create_feed_follow(
        self,
        id: UUID,
        created_at: datetime,
        updated_at: datetime,
        user_id: UUID,
        feed_id: UUID,
    ) -> FeedFollowRow:
        with self.transaction():
            self._execute(
                "INSERT INTO feed_follows (id, created_at, updated_at, user_id, feed_id) "
                "VALUES (?, ?, ?, ?, ?)",
                (str(id), _to_db_time(created_at), _to_db_time(updated_at), str(user_id), str(feed_id)),
            )
            row = self._fetch_one(
                _FOLLOW_SELECT + "WHERE feed_follows.id = ?", (str(id),), "feed follow"
            )
            return _follow_row(row)

    def delete_feed_follow(self, feed_id: UUID, user_id: UUID) -> None:
        self._execute(
            "DELETE FROM feed_follows WHERE feed_id = ? AND user_id = ?",
            (str(feed_id), str(user_id)),
        )

    def get_feed_follows_for_user(self, user_id: UUID) -> list[FeedFollowRow]:
        rows = self._fetch_all(_FOLLOW_SELECT + "WHERE feed_follows.user_id = ?", (str(user_id),))
        return [_follow_row(row) for row in rows]

    # posts

    def create_post(
        self,
        id: UUID,
        created_at: datetime,
        updated_at: datetime,
        title: str,
        url: str,
        description: str | None,
        published_at: datetime | None,
        feed_id: UUID,
    ) -> Post:
        with self.transaction():
            self._execute(
                f"INSERT INTO posts ({_POST_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    str(id),
                    _to_db_time(created_at),
                    _to_db_time(updated_at),
                    title,
                    url,
                    description,
                    _to_db_time(published_at),
                    str(feed_id),
                ),
            )
            row = self._fetch_one(
                f"SELECT {_POST_COLUMNS} FROM posts WHERE id = ?", (str(id),), "post"
            )
            return Post(**_post_fields(row))

    def get_posts_for_user(self, user_id: UUID, limit: int) -> list[PostWithFeed]:
        """Return up to ``limit`` posts from followed feeds, newest first, undated first."""
        if limit < 0:
            raise DatabaseError("LIMIT must not be negative")
        rows = self._fetch_all(
            "SELECT posts.id, posts.created_at, posts.updated_at, posts.title, posts.url, "
            "posts.description, posts.published_at, posts.feed_id, feeds.name "
            "FROM posts "
            "JOIN feed_follows ON feed_follows.feed_id = posts.feed_id "
            "JOIN feeds ON posts.feed_id = feeds.id "
            "WHERE feed_follows.user_id = ? "
            "ORDER BY posts.published_at IS NULL DESC, posts.published_at DESC "
            "LIMIT ?",
            (str(user_id), limit),
        )
        return [PostWithFeed(**_post_fields(row), feed_name=row[8]) for row in rows]


def connect(url: str) -> Queries:
    """Open the database named by ``url`` (a path, ``:memory:`` or ``sqlite:///path``)."""
    path = url
    if "://" in url:
        scheme, rest = url.split("://", 1)
        if scheme != "sqlite":
            raise DatabaseError(f"unsupported database url scheme: {scheme}")
        path = rest[1:] if rest.startswith("/") else rest
    path = path or ":memory:"
    with _translate_errors():
        conn = sqlite3.connect(path)
    queries = Queries(conn)
    queries.create_schema()
    return queries