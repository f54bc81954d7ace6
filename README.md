# gator

`gator` is a small command-line RSS aggregator. You register users and add
RSS feeds. Each user follows the feeds they care about. A long-running `agg`
command fetches the feeds on a fixed interval and stores their posts, and you
then browse the newest posts from the feeds you follow. Everything is kept in
a SQLite database.

## Installation

```
pip install .
```

This installs the `gator` command. It needs Python 3.10 or later and uses
only the standard library.

## Configuration

`gator` reads its settings from `.gatorconfig.json` in your home directory.
The file must exist before the first run:

```json
{"db_url": "gator.db", "current_user_name": ""}
```

- `db_url` names the SQLite database. It may be a file path, `:memory:`, or a
  URL of the form `sqlite:///path/to/gator.db`. An empty value means an
  in-memory database, which is lost when the command ends. Any other URL
  scheme is rejected. The tables are created on first use.
- `current_user_name` is the logged-in user. `gator register` and
  `gator login` update it and write the file back.

## Commands

```
gator register <name>            create a user and log in as them
gator login <name>               switch to an existing user
gator users                      list all users, marking the current one
gator reset                      delete all users and everything they own

gator addfeed <name> <url>       add a feed and follow it (logged in)
gator feeds                      list every feed with the user who added it
gator follow <feed_url>          follow an existing feed (logged in)
gator following                  list the feeds you follow (logged in)
gator unfollow <feed_url>        stop following a feed (logged in)

gator agg <time_between_reqs>    fetch feeds forever, one per interval
gator browse [limit]             show your newest posts (default 2)
```

User names and feed URLs are unique. A user can follow a feed only once.
Deleting users with `reset` also removes their feeds, follows and the posts
of those feeds.

The interval given to `agg` is a duration made of a number and a unit, for
example `30s`, `1m`, `1h30m` or `500ms`. The units are `ns`, `us` (or `µs`),
`ms`, `s`, `m` and `h`, and the interval must be greater than zero. Each
tick takes the feed that was fetched longest ago (never-fetched feeds first),
marks it fetched, downloads it with a 10-second timeout, and saves its items
as posts. Items whose link is already stored are skipped. Publication dates
in RFC 1123 form with a numeric zone, such as
`Mon, 02 Jan 2006 15:04:05 -0700`, are recorded; other dates are left empty.
HTML entities in titles and descriptions are unescaped. Progress is logged to
standard error. Stop the command with Ctrl-C.

`browse` lists posts from the feeds you follow. Posts without a publication
date come first, then the newest. A negative limit is an error.

## Example session

```
gator register alice
gator addfeed "Example News" https://example.com/rss.xml
gator agg 1m            # leave running; stop with Ctrl-C
gator browse 5
```

Errors are logged to standard error and `gator` exits with status 1. This
covers a missing or malformed configuration file, an unknown command, a
missing user, and wrong arguments.

## Using it as a library

The modules can also be used directly:

- `gator.config`: `Config`, `read()`, `write()` and `config_file_path()`.
- `gator.database`: `connect(url)` returns a `Queries` object with typed
  queries for users, feeds, follows and posts. It can be used as a context
  manager, and `Queries.transaction()` groups queries atomically. Errors are
  raised as `DatabaseError`, `NotFoundError` or `DuplicateError`.
- `gator.rss`: `parse_feed(data)` and `fetch_feed(url, timeout)` return an
  `RSSFeed` of `RSSItem`s.
- `gator.aggregate`: `parse_duration`, `parse_pub_date`, `scrape_feed` and
  `scrape_feeds`. The scrape functions accept a `fetch` callable, so feeds
  can be supplied without network access.
- `gator.commands`: `Commands`, `Command`, `State`, `CommandError` and the
  `logged_in` wrapper. `gator.cli.build_commands()` returns the full command
  set.

## Limitations

- Storage is SQLite only. There is no support for a database server.
- Only RSS documents with a `<channel>` element are read. Atom feeds yield no
  items.
- `agg` runs in the foreground. It fetches one feed per tick and has no
  daemon mode or parallel fetching.

## Running the tests

```
pip install ".[test]"
pytest
```