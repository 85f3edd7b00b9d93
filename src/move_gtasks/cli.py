"""CLI for move-gtasks.

Usage:
    move-gtasks                                  # today's tasks -> tomorrow
    move-gtasks --from 2022-04-05 --to 2023-04-05
    move-gtasks --from yesterday --to today
    move-gtasks --clear-token                    # forget the token, re-run OAuth
    move-gtasks --dry-run                        # show what would move
"""

from __future__ import annotations

import argparse
import sys
import webbrowser
from functools import partial

from move_gtasks import __version__
from move_gtasks.config import AppConfig, ConfigError, ensure_config_dir, load_config
from move_gtasks.dates import DateParseError, resolve_dates
from move_gtasks.google import GoogleAuthError, GoogleOAuth, clear_token
from move_gtasks.logging_config import configure_logging
from move_gtasks.tasks import TasksClient, TasksError, migrate

DESCRIPTION = "Move incomplete Google tasks --from a given day --to a given day."

LONG_HELP = """\
Move due-dated, incomplete Google Tasks to another day.
Adding a due date to a Google Task allows it to show up in your
Google Calendar, but moving Google Tasks to different days
is tedious. You are unable to move groups of tasks by multi-
selecting them and dragging them to a new day.

This tool will move all incomplete Google Tasks in a
given day to a new day to help manage your daily work.

You will need to enable a Google Cloud Platform project
with the Google Tasks API in order for this to work.

See https://developers.google.com/tasks/quickstart/python for
more information on how to set up a project and download
OAuth credentials.

Things to note:

- It is not possible to move a task to a specific time.
- It is not possible to differentiate between recurring tasks
  and normal, dated tasks.

Example, if you wanted to move tasks from today to next year
(wow!), you might run it like this.

  move-gtasks --from 2022-04-05 --to 2023-04-05

If you don't provide --to and --from, we assume you want to move
today's tasks to tomorrow.

Store your Client OAuth creds at {credentials_path}
"""

AUTH_PROMPT = """\
Go to the following link in your browser. This will kick off the OAuth workflow for {prog}.

{url}

A callback web server is running waiting to receive the response from Google \
indicating you've completed the workflow.
"""


def build_parser(config: AppConfig) -> argparse.ArgumentParser:
    """Create the argument parser; the epilog names the config location."""
    parser = argparse.ArgumentParser(
        prog="move-gtasks",
        description=DESCRIPTION,
        epilog=LONG_HELP.format(credentials_path=config.credentials_path),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-t",
        "--to",
        default="tomorrow",
        help="Date that should receive tasks. Must be formatted as YYYY-MM-DD, "
        "or be one of [yesterday, today, tomorrow]. (default: tomorrow)",
    )
    parser.add_argument(
        "-f",
        "--from",
        dest="from_",
        default="today",
        help="Date from which tasks should be pulled. Must be formatted as YYYY-MM-DD, "
        "or be one of [yesterday, today, tomorrow]. (default: today)",
    )
    parser.add_argument(
        "-c",
        "--clear-token",
        action="store_true",
        help="Clears your existing token from the filesystem before running the tool. "
        "Do this if you want to re-run OAuth workflows.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the tasks that would move without updating them",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't open the authorization link in a browser automatically",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (overrides LOG_LEVEL env var)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def show_authorization_url(url: str, open_browser: bool = True) -> None:
    """Print the consent link and optionally open it."""
    print(AUTH_PROMPT.format(prog="move-gtasks", url=url))
    if open_browser:
        webbrowser.open(url)


def run(args: argparse.Namespace, config: AppConfig) -> int:
    """Resolve dates, make sure we're authorized, move the tasks."""
    # Dates first so a typo fails before anything touches the network
    targets = resolve_dates(args.to, args.from_)
    ensure_config_dir(config.config_dir)

    if args.clear_token:
        clear_token(config.token_path)

    auth = GoogleOAuth.from_config(config)
    if not auth.is_authorized():
        auth.authorize(on_url=partial(show_authorization_url, open_browser=not args.no_browser))
        print(f"Saved credential file to: {config.token_path}")

    client = TasksClient(auth=auth)
    report = migrate(client, config.task_list_name, targets, dry_run=args.dry_run)

    lines = report.lines()
    if not lines:
        print(f"No incomplete tasks due {targets.from_.isoformat()} in {report.task_list.title}.")
    for line in lines:
        print(line)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    try:
        config = load_config(create=False)
    except RuntimeError as e:
        print(f"Error: unable to locate config directory: {e}", file=sys.stderr)
        return 1

    parser = build_parser(config)
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(level_override=args.log_level)

    try:
        return run(args, config)
    except (ConfigError, DateParseError, GoogleAuthError, TasksError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
