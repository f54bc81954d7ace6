from datetime import datetime, timezone
from uuid import uuid4

import pytest

from gator.commands import Command, CommandError, State
from gator.config import Config
from gator.database import connect
from gator.feeds import (
    format_feed,
    format_feed_follow,
    handler_add_feed,
    handler_browse,
    handler_follow,
    handler_list_feed_follows,
    handler_list_feeds,
    handler_unfollow,
)

URL = "https://blog.example.com/rss"


@pytest.fixture
def state(tmp_path):
    return State(connect(":memory:"), Config(path=tmp_path / "c.json"))


def _user(state, name):
    now = datetime.now(timezone.utc)
    return state.db.create_user(uuid4(), now, now, name)


def test_add_feed_follows_it(state, capsys):
    alice = _user(state, "alice")
    handler_add_feed(state, Command("addfeed", ("Blog", URL)), alice)
    follows = state.db.get_feed_follows_for_user(alice.id)
    assert [f.feed_name for f in follows] == ["Blog"]
    out = capsys.readouterr().out
    assert format_feed_follow("alice", "Blog") in out
    assert format_feed(state.db.get_feed_by_url(URL), alice) in out


def test_add_feed_usage(state):
    with pytest.raises(CommandError, match="usage: addfeed <name> <url>"):
        handler_add_feed(state, Command("addfeed", ("Blog",)), _user(state, "a"))


def test_list_feeds(state, capsys):
    handler_list_feeds(state, Command("feeds"))
    assert capsys.readouterr().out == "No feeds found.\n"
    alice = _user(state, "alice")
    handler_add_feed(state, Command("addfeed", ("Blog", URL)), alice)
    capsys.readouterr()
    handler_list_feeds(state, Command("feeds"))
    assert capsys.readouterr().out.startswith("Found 1 feeds:\n")


def test_follow_unfollow(state, capsys):
    alice = _user(state, "alice")
    bob = _user(state, "bob")
    handler_add_feed(state, Command("addfeed", ("Blog", URL)), alice)
    handler_follow(state, Command("follow", (URL,)), bob)
    capsys.readouterr()
    handler_list_feed_follows(state, Command("following"), bob)
    assert capsys.readouterr().out == "Feed follows for user bob:\n* Blog\n"
    handler_unfollow(state, Command("unfollow", (URL,)), bob)
    assert state.db.get_feed_follows_for_user(bob.id) == []


def test_follow_twice_fails(state):
    alice = _user(state, "alice")
    handler_add_feed(state, Command("addfeed", ("Blog", URL)), alice)
    with pytest.raises(CommandError, match="couldn't create feed follow"):
        handler_follow(state, Command("follow", (URL,)), alice)


def test_follow_unknown_feed(state):
    with pytest.raises(CommandError, match="couldn't get feed"):
        handler_follow(state, Command("follow", (URL,)), _user(state, "a"))


def test_browse(state, capsys):
    alice = _user(state, "alice")
    handler_add_feed(state, Command("addfeed", ("Blog", URL)), alice)
    feed = state.db.get_feed_by_url(URL)
    now = datetime.now(timezone.utc)
    for n in range(3):
        state.db.create_post(uuid4(), now, now, f"t{n}", f"{URL}/{n}", "d",
                             datetime(2006, 1, 2 + n, tzinfo=timezone.utc), feed.id)
    capsys.readouterr()
    handler_browse(state, Command("browse"), alice)
    out = capsys.readouterr().out
    assert out.startswith("Found 2 posts for user alice:\n")
    assert "Wed Jan 4 from Blog" in out
    handler_browse(state, Command("browse", ("5",)), alice)
    assert capsys.readouterr().out.count("--- t") == 3


def test_browse_invalid_limit(state):
    with pytest.raises(CommandError, match="invalid limit"):
        handler_browse(state, Command("browse", ("x",)), _user(state, "a"))