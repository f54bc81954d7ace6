import pytest

from gator.commands import Command, CommandError, Commands, State, logged_in
from gator.config import Config
from gator.database import NotFoundError, connect
from datetime import datetime, timezone
from uuid import uuid4


@pytest.fixture
def state(tmp_path):
    return State(connect(":memory:"), Config(path=tmp_path / "c.json"))


def test_run_dispatches(state):
    seen = []
    cmds = Commands()
    cmds.register("x", lambda s, c: seen.append(c.args))
    cmds.run(state, Command("x", ("a", "b")))
    assert seen == [("a", "b")]


def test_unknown_command(state):
    with pytest.raises(CommandError, match="command not found"):
        Commands().run(state, Command("nope"))


def test_logged_in_passes_user(state):
    now = datetime.now(timezone.utc)
    state.db.create_user(uuid4(), now, now, "alice")
    state.cfg.current_user_name = "alice"
    seen = []
    logged_in(lambda s, c, u: seen.append(u.name))(state, Command("x"))
    assert seen == ["alice"]


def test_logged_in_requires_user(state):
    state.cfg.current_user_name = "ghost"
    with pytest.raises(NotFoundError):
        logged_in(lambda s, c, u: None)(state, Command("x"))