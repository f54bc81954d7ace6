"""Command registry and shared program state."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from .config import Config
from .database import Queries
from .models import User


class CommandError(Exception):
    """A command could not be carried out."""


@dataclass
class State:
    db: Queries
    cfg: Config


@dataclass(frozen=True)
class Command:
    name: str
    args: tuple[str, ...] = ()


Handler = Callable[[State, Command], None]


@dataclass
class Commands:
    """Maps command names to their handlers."""

    handlers: dict[str, Handler] = field(default_factory=dict)

    def register(self, name: str, handler: Handler) -> None:
        self.handlers[name] = handler

    def run(self, state: State, cmd: Command) -> None:
        handler = self.handlers.get(cmd.name)
        if handler is None:
            raise CommandError("command not found")
        handler(state, cmd)


def logged_in(handler: Callable[[State, Command, User], None]) -> Handler:
    """Wrap a handler so it receives the current user."""

    def wrapper(state: State, cmd: Command) -> None:
        user = state.db.get_user(state.cfg.current_user_name)
        handler(state, cmd, user)

    return wrapper