"""Command-line entry point."""

from __future__ import annotations

import logging
import sys

from . import config
from .aggregate import handler_agg
from .commands import Command, CommandError, Commands, State, logged_in
from .database import DatabaseError, connect
from .feeds import (
    handler_add_feed,
    handler_browse,
    handler_follow,
    handler_list_feed_follows,
    handler_list_feeds,
    handler_unfollow,
)
from .users import handler_list_users, handler_login, handler_register, handler_reset

log = logging.getLogger(__name__)


def build_commands() -> Commands:
    cmds = Commands()
    cmds.register("register", handler_register)
    cmds.register("login", handler_login)
    cmds.register("reset", handler_reset)
    cmds.register("users", handler_list_users)
    cmds.register("agg", handler_agg)
    cmds.register("addfeed", logged_in(handler_add_feed))
    cmds.register("feeds", handler_list_feeds)
    cmds.register("follow", logged_in(handler_follow))
    cmds.register("following", logged_in(handler_list_feed_follows))
    cmds.register("unfollow", logged_in(handler_unfollow))
    cmds.register("browse", logged_in(handler_browse))
    return cmds


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        cfg = config.read()
    except (OSError, ValueError) as exc:
        log.error("error reading config: %s", exc)
        return 1
    try:
        db = connect(cfg.db_url)
    except DatabaseError as exc:
        log.error("error connecting to db: %s", exc)
        return 1
    with db:
        if not args:
            log.error("Usage: cli <command> [args...]")
            return 1
        try:
            build_commands().run(State(db, cfg), Command(args[0], tuple(args[1:])))
        except (CommandError, DatabaseError) as exc:
            log.error("%s", exc)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())