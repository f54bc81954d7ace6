import json
from pathlib import Path

import pytest

from gator.cli import build_commands, main


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    (tmp_path / ".gatorconfig.json").write_text(
        json.dumps({"db_url": str(tmp_path / "gator.db"), "current_user_name": ""})
    )
    return tmp_path


def test_registered_names():
    assert set(build_commands().handlers) == {
        "register", "login", "reset", "users", "agg", "addfeed",
        "feeds", "follow", "following", "unfollow", "browse",
    }


def test_no_args(home):
    assert main([]) == 1


def test_missing_config(tmp_path, monkeypatch):
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    assert main(["users"]) == 1


def test_register_then_list(home, capsys):
    assert main(["register", "alice"]) == 0
    capsys.readouterr()
    assert main(["users"]) == 0
    assert capsys.readouterr().out == "* alice (current)\n"
    cfg = json.loads((home / ".gatorconfig.json").read_text())
    assert cfg["current_user_name"] == "alice"


def test_unknown_command(home):
    assert main(["dance"]) == 1


def test_logged_in_command_without_user(home):
    assert main(["following"]) == 1