import json

import pytest

from gator.commands import Command, CommandError, State
from gator.config import Config
from gator.database import connect
from gator.users import (
    format_user,
    handler_list_users,
    handler_login,
    handler_register,
    handler_reset,
)


@pytest.fixture
def state(tmp_path):
    return State(connect(":memory:"), Config(path=tmp_path / "c.json"))


def test_register_sets_current_user(state, capsys):
    handler_register(state, Command("register", ("alice",)))
    assert state.cfg.current_user_name == "alice"
    data = json.loads(state.cfg.path.read_text())
    assert data["current_user_name"] == "alice"
    user = state.db.get_user("alice")
    out = capsys.readouterr().out
    assert out == "User created successfully:\n" + format_user(user) + "\n"


def test_register_usage(state):
    with pytest.raises(CommandError, match="usage: register <name>"):
        handler_register(state, Command("register"))


def test_register_duplicate(state):
    handler_register(state, Command("register", ("alice",)))
    with pytest.raises(CommandError, match="couldn't create user"):
        handler_register(state, Command("register", ("alice",)))


def test_login(state):
    handler_register(state, Command("register", ("alice",)))
    handler_register(state, Command("register", ("bob",)))
    handler_login(state, Command("login", ("alice",)))
    assert state.cfg.current_user_name == "alice"


def test_login_unknown(state):
    with pytest.raises(CommandError, match="couldn't find user"):
        handler_login(state, Command("login", ("ghost",)))


def test_list_and_reset(state, capsys):
    handler_register(state, Command("register", ("alice",)))
    handler_register(state, Command("register", ("bob",)))
    capsys.readouterr()
    handler_list_users(state, Command("users"))
    assert capsys.readouterr().out.splitlines() == ["* alice", "* bob (current)"]
    handler_reset(state, Command("reset"))
    assert state.db.get_users() == []