"""
bendsync CLI - inspect and drive an activity store from a terminal.

Usage:
    bendsync history list [--grouped] [--recent] [--json]
    bendsync history add ROUTINE_ID NAME --duration N [--exercises N]
    bendsync favorites toggle ROUTINE_ID NAME --duration N
    bendsync routines create NAME --exercise "Cat cow:60"...
    bendsync streak complete ROUTINE_ID NAME --duration N
    bendsync streak show [--json]
    bendsync --user-id USER sync migrate
"""

import argparse
import logging
import sys
from pathlib import Path

from bendsync import ActivityStore, Identity, ManualIdentityProvider
from bendsync.cli.commands import (
    cmd_favorites,
    cmd_history,
    cmd_routines,
    cmd_streak,
    cmd_sync,
)
from bendsync.config import get_settings

# Set up logging
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)

COMMANDS = {
    "history": cmd_history,
    "favorites": cmd_favorites,
    "routines": cmd_routines,
    "streak": cmd_streak,
    "sync": cmd_sync,
}


def _add_routine_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("routine_id", help="Routine ID")
    parser.add_argument("name", help="Routine name")
    parser.add_argument("--duration", "-d", type=int, required=True, help="Duration in minutes")
    parser.add_argument("--exercises", "-e", type=int, default=0, help="Number of exercises")
    parser.add_argument("--slug", help="Routine slug (defaults to the ID)")
    parser.add_argument("--image-url", dest="image_url", help="Routine image URL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bendsync",
        description="Activity history, favorites, routines and streaks",
    )
    parser.add_argument("--db", type=Path, help="Local database path")
    parser.add_argument("--user-id", "-u", dest="user_id", help="Act as this signed-in user")
    parser.add_argument("--email", help="Email of the signed-in user")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # history
    p_history = subparsers.add_parser("history", help="Completed routines")
    h_sub = p_history.add_subparsers(dest="history_action", required=True)

    h_list = h_sub.add_parser("list", help="List completed routines")
    h_list.add_argument("--limit", "-n", type=int, default=20)
    h_list.add_argument("--grouped", "-g", action="store_true", help="Group by day")
    h_list.add_argument("--recent", "-r", action="store_true", help="Only the last --days days")
    h_list.add_argument("--days", type=int, default=30)
    h_list.add_argument("--json", "-j", action="store_true")

    h_add = h_sub.add_parser("add", help="Log a completion without touching the streak")
    _add_routine_args(h_add)

    h_remove = h_sub.add_parser("remove", help="Remove a history entry")
    h_remove.add_argument("entry_id", help="History entry ID")

    h_month = h_sub.add_parser("month", help="Active days in a month")
    h_month.add_argument("year", type=int)
    h_month.add_argument("month", type=int, choices=range(1, 13))
    h_month.add_argument("--json", "-j", action="store_true")

    h_sub.add_parser("clear", help="Clear local history")

    # favorites
    p_favorites = subparsers.add_parser("favorites", help="Favorite routines")
    f_sub = p_favorites.add_subparsers(dest="favorites_action", required=True)

    f_list = f_sub.add_parser("list", help="List favorites")
    f_list.add_argument("--json", "-j", action="store_true")

    for action, help_text in (("add", "Save a favorite"), ("toggle", "Toggle a favorite")):
        f_save = f_sub.add_parser(action, help=help_text)
        f_save.add_argument("routine_id", help="Routine ID")
        f_save.add_argument("name", help="Routine name")
        f_save.add_argument("--duration", "-d", type=int, required=True, help="Duration in minutes")
        f_save.add_argument("--description", help="Routine description")
        f_save.add_argument("--body-part", dest="body_part", default="", help="Body part ID")
        f_save.add_argument("--slug", help="Routine slug (defaults to the ID)")
        f_save.add_argument("--image-url", dest="image_url", help="Routine image URL")

    f_remove = f_sub.add_parser("remove", help="Remove a favorite")
    f_remove.add_argument("routine_id", help="Routine ID")

    f_check = f_sub.add_parser("check", help="Is a routine a favorite?")
    f_check.add_argument("routine_id", help="Routine ID")

    f_sub.add_parser("clear", help="Clear local favorites")

    # routines
    p_routines = subparsers.add_parser("routines", help="Your own routines")
    r_sub = p_routines.add_subparsers(dest="routines_action", required=True)

    r_list = r_sub.add_parser("list", help="List routines")
    r_list.add_argument("--json", "-j", action="store_true")

    r_create = r_sub.add_parser("create", help="Create a routine")
    r_create.add_argument("name", help="Routine name")
    r_create.add_argument(
        "--exercise", "-x", action="append", help="Exercise as NAME:SECONDS (repeatable)"
    )
    r_create.add_argument("--rest", type=int, default=0, help="Rest after each exercise (seconds)")
    r_create.add_argument("--cover-image", dest="cover_image", default="", help="Cover image URL")

    r_show = r_sub.add_parser("show", help="Show a routine by slug")
    r_show.add_argument("slug")
    r_show.add_argument("--json", "-j", action="store_true")

    r_rename = r_sub.add_parser("rename", help="Rename a routine")
    r_rename.add_argument("routine_id", help="Routine ID")
    r_rename.add_argument("name", help="New name")

    r_delete = r_sub.add_parser("delete", help="Delete a routine")
    r_delete.add_argument("routine_id", help="Routine ID")

    r_sub.add_parser("clear", help="Delete all routines")

    # streak
    p_streak = subparsers.add_parser("streak", help="Daily streak")
    s_sub = p_streak.add_subparsers(dest="streak_action", required=True)

    s_show = s_sub.add_parser("show", help="Show streak and weekly progress")
    s_show.add_argument("--json", "-j", action="store_true")

    s_complete = s_sub.add_parser("complete", help="Record a completed routine")
    _add_routine_args(s_complete)

    s_sub.add_parser("restore", help="Spend a streak restore on yesterday")
    s_sub.add_parser("reset", help="Reset the running streak")

    # sync
    p_sync = subparsers.add_parser("sync", help="Local and remote store status")
    y_sub = p_sync.add_subparsers(dest="sync_action", required=True)

    y_status = y_sub.add_parser("status", help="Where each collection is served from")
    y_status.add_argument("--json", "-j", action="store_true")

    y_migrate = y_sub.add_parser("migrate", help="Copy local records to the remote store")
    y_migrate.add_argument("--json", "-j", action="store_true")

    return parser


def create_store(args) -> ActivityStore:
    settings = get_settings()
    if args.db:
        settings = settings.model_copy(update={"db_path": args.db})

    identity_provider = None
    if args.user_id:
        identity_provider = ManualIdentityProvider(Identity(id=args.user_id, email=args.email))
        if not settings.remote_configured:
            logger.warning("No remote store configured; --user-id has no effect")

    return ActivityStore.from_settings(settings, identity_provider=identity_provider)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        store = create_store(args)
    except (ValueError, TypeError) as e:
        logger.error(f"Failed to open activity store: {e}")
        sys.exit(1)

    try:
        COMMANDS[args.command](args, store)
    except (ValueError, TypeError) as e:
        logger.error(f"Input validation error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)
    finally:
        store.dispose(wait=True)


if __name__ == "__main__":
    main()
