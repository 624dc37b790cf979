"""History commands for bendsync CLI."""

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from bendsync.cli.commands.helpers import format_minutes, print_json
from bendsync.types import RoutineSummary

if TYPE_CHECKING:
    from bendsync import ActivityStore

logger = logging.getLogger(__name__)


def routine_from_args(args) -> RoutineSummary:
    """Build the routine summary shared by `history add` and `streak complete`."""
    return RoutineSummary(
        id=args.routine_id,
        name=args.name,
        slug=args.slug or args.routine_id,
        duration_minutes=args.duration,
        exercise_count=args.exercises,
        image_url=getattr(args, "image_url", None),
    )


def cmd_history(args, store: "ActivityStore"):
    """Handle history subcommands."""
    if args.history_action == "list":
        if args.grouped:
            grouped = store.grouped_history()
            if args.json:
                print_json(grouped)
                return
            if not grouped:
                print("No completed routines yet.")
                return
            for day, records in grouped.items():
                print(f"{day}  ({len(records)})")
                for record in records:
                    print(f"  - {record.routine_name} [{format_minutes(record.duration_minutes)}]")
            return

        records = store.recent_history(limit=args.limit, days=args.days) if args.recent else (
            store.list_history()[: args.limit]
        )
        if args.json:
            print_json(records)
            return
        if not records:
            print("No completed routines yet.")
            return
        for record in records:
            when = datetime.fromtimestamp(record.completed_at_ms / 1000).strftime("%Y-%m-%d %H:%M")
            print(
                f"{when}  {record.routine_name} "
                f"[{format_minutes(record.duration_minutes)}, {record.exercise_count} exercises]  "
                f"{record.entry_id[:8]}"
            )

    elif args.history_action == "add":
        if store.add_history(routine_from_args(args)):
            print(f"✓ Logged {args.name}")
        else:
            print("✗ Could not save history entry")

    elif args.history_action == "remove":
        if store.remove_history(args.entry_id):
            print(f"✓ Removed {args.entry_id}")
        else:
            print(f"✗ Could not remove {args.entry_id}")

    elif args.history_action == "month":
        progress = store.monthly_progress(args.year, args.month)
        if args.json:
            print_json(progress)
            return
        days = sorted(progress)
        print(f"{args.year}-{args.month:02d}: {len(days)} active days")
        if days:
            print("  " + " ".join(str(d) for d in days))

    elif args.history_action == "clear":
        if store.clear_history():
            print("✓ Local history cleared")
        else:
            print("✗ Could not clear history")
