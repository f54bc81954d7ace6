"""Commands that manage users."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from .commands import Command, CommandError, State
from .database import DatabaseError
from .models import User


def format_user(user: User) -> str:
    return f" * ID:      {user.id}\n * Name:    {user.name}"


def _set_current(state: State, name: str) -> None:
    try:
        state.cfg.set_user(name)
    except OSError as exc:
        raise CommandError(f"couldn't set current user: {exc}") from exc


def handler_register(state: State, cmd: Command) -> None:
    if len(cmd.args) != 1:
        raise CommandError(f"usage: {cmd.name} <name>")
    now = datetime.now(timezone.utc)
    try:
        user = state.db.create_user(uuid4(), now, now, cmd.args[0])
    except DatabaseError as exc:
        raise CommandError(f"couldn't create user: {exc}") from exc
    _set_current(state, user.name)
    print("User created successfully:")
    print(format_user(user))


def handler_login(state: State, cmd: Command) -> None:
    if len(cmd.args) != 1:
        raise CommandError(f"usage: {cmd.name} <name>")
    name = cmd.args[0]
    try:
        state.db.get_user(name)
    except DatabaseError as exc:
        raise CommandError(f"couldn't find user: {exc}") from exc
    _set_current(state, name)
    print("User switched successfully!")


def handler_list_users(state: State, cmd: Command) -> None:
    try:
        users = state.db.get_users()
    except DatabaseError as exc:
        raise CommandError(f"couldn't list users: {exc}") from exc
    for user in users:
        if user.name == state.cfg.current_user_name:
            print(f"* {user.name} (current)")
        else:
            print(f"* {user.name}")


def handler_reset(state: State, cmd: Command) -> None:
    try:
        state.db.delete_users()
    except DatabaseError as exc:
        raise CommandError(f"couldn't delete users: {exc}") from exc
    print("Database reset successfully!")