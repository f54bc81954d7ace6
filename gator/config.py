"""Reading and writing the user's configuration file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILE_NAME = ".gatorconfig.json"

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@dataclass
class Config:
    """Connection URL and the name of the logged-in user."""

    db_url: str = ""
    current_user_name: str = ""
    path: Path | None = field(default=None, compare=False, repr=False)

    def set_user(self, user_name: str) -> None:
        """Make ``user_name`` the current user and save the configuration."""
        self.current_user_name = user_name
        write(self)


def config_file_path() -> Path:
    """Return the location of the configuration file in the home directory."""
    return Path.home() / CONFIG_FILE_NAME


def _string_field(data: dict, key: str) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"config field {key!r} must be a string")
    return value


def read(path: str | Path | None = None) -> Config:
    """Load the configuration from ``path`` (the home-directory file by default)."""
    config_path = Path(path) if path is not None else config_file_path()
    with config_path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError("config file must hold a JSON object")
    return Config(
        db_url=_string_field(data, "db_url"),
        current_user_name=_string_field(data, "current_user_name"),
        path=config_path,
    )


def _encode(cfg: Config) -> str:
    text = json.dumps(
        {"db_url": cfg.db_url, "current_user_name": cfg.current_user_name},
        separators=(",", ":"),
        ensure_ascii=False,
    )
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return text + "\n"


def write(cfg: Config, path: str | Path | None = None) -> None:
    """Save ``cfg`` to ``path``, to the file it was read from, or to the default file."""
    if path is not None:
        config_path = Path(path)
    elif cfg.path is not None:
        config_path = cfg.path
    else:
        config_path = config_file_path()
    config_path.write_text(_encode(cfg), encoding="utf-8")