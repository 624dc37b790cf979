"""Streak commands for bendsync CLI."""

from typing import TYPE_CHECKING

from bendsync.cli.commands.helpers import print_json
from bendsync.cli.commands.history import routine_from_args

if TYPE_CHECKING:
    from bendsync import ActivityStore

WEEKDAY_MARKS = {True: "●", False: "○"}


def format_week(weekly) -> str:
    """Oldest day on the left, today on the right."""
    return "".join(WEEKDAY_MARKS[bool(day)] for day in reversed(weekly))


def cmd_streak(args, store: "ActivityStore"):
    """Handle streak subcommands."""
    if args.streak_action == "show":
        stats = store.dashboard_stats()
        if args.json:
            print_json(stats)
            return
        print(f"Streak:  {stats.active_streak} days (longest {stats.longest_streak})")
        print(f"Week:    {format_week(stats.weekly_progress)}")
        print(f"Total:   {stats.days_completed} days")
        screen = store.streak_screen_data()
        print(f"Restores available: {screen.streak_restores_available}")

    elif args.streak_action == "complete":
        celebrate = store.should_celebrate()
        state = store.record_completion(routine_from_args(args))
        print(f"✓ {args.name} complete. Streak: {state.current_streak}")
        if celebrate and state.current_streak > 0:
            print("New streak started!")

    elif args.streak_action == "restore":
        state = store.use_streak_restore()
        if state is None:
            print("No streak restores available.")
        else:
            print(f"✓ Streak restored: {state.current_streak} days")

    elif args.streak_action == "reset":
        store.reset_streak()
        print("✓ Streak reset")
