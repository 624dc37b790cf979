"""Authored routine commands for bendsync CLI."""

import logging
import sys
from typing import TYPE_CHECKING, List, Optional

from bendsync.cli.commands.helpers import print_json
from bendsync.types import AuthoredRoutineDraft, RoutineExercise

if TYPE_CHECKING:
    from bendsync import ActivityStore

logger = logging.getLogger(__name__)


def parse_exercises(values: Optional[List[str]], rest_seconds: int = 0) -> List[RoutineExercise]:
    """Parse ``NAME:SECONDS`` exercise arguments, in order.

    Raises:
        ValueError: If an argument has no duration or the duration is not a
            positive integer.
    """
    exercises = []
    for sequence, arg in enumerate(values or []):
        name, sep, seconds = arg.rpartition(":")
        if not sep or not name.strip():
            raise ValueError(f"Exercise must be NAME:SECONDS, got {arg!r}")
        try:
            duration = int(seconds)
        except ValueError:
            raise ValueError(f"Exercise duration must be an integer, got {seconds!r}") from None
        if duration <= 0:
            raise ValueError(f"Exercise duration must be positive, got {duration}")
        exercises.append(
            RoutineExercise(
                id=f"ex-{sequence + 1}",
                name=name.strip(),
                description="",
                image_url="",
                duration_seconds=duration,
                sequence=sequence,
                rest_seconds=rest_seconds,
            )
        )
    return exercises


def total_seconds(exercises: List[RoutineExercise]) -> int:
    return sum(e.duration_seconds + (e.rest_seconds or 0) for e in exercises)


def cmd_routines(args, store: "ActivityStore"):
    """Handle authored routine subcommands."""
    if args.routines_action == "list":
        routines = store.list_routines()
        if args.json:
            print_json(routines)
            return
        if not routines:
            print("No routines created yet.")
            return
        for routine in routines:
            print(
                f"{routine.name}  /{routine.slug}  "
                f"({len(routine.exercises)} exercises, {routine.total_duration_seconds}s)"
            )

    elif args.routines_action == "create":
        exercises = parse_exercises(args.exercise, args.rest)
        draft = AuthoredRoutineDraft(
            name=args.name,
            cover_image=args.cover_image,
            exercises=exercises,
            total_duration_seconds=total_seconds(exercises),
        )
        if store.create_routine(draft):
            print(f"✓ Created {args.name}")
        else:
            print(f"✗ Could not create {args.name}")
            sys.exit(1)

    elif args.routines_action == "show":
        routine = store.get_routine_by_slug(args.slug)
        if routine is None:
            print(f"No routine with slug {args.slug}")
            sys.exit(1)
        if args.json:
            print_json(routine)
            return
        print(f"{routine.name}  /{routine.slug}  id={routine.id}")
        for exercise in routine.exercises:
            print(f"  {exercise.sequence + 1}. {exercise.name} ({exercise.duration_seconds}s)")

    elif args.routines_action == "rename":
        if store.update_routine(args.routine_id, name=args.name):
            print(f"✓ Renamed to {args.name}")
        else:
            print(f"✗ Could not rename {args.routine_id}")
            sys.exit(1)

    elif args.routines_action == "delete":
        if store.delete_routine(args.routine_id):
            print(f"✓ Deleted {args.routine_id}")
        else:
            print(f"✗ Could not delete {args.routine_id}")

    elif args.routines_action == "clear":
        if store.clear_routines():
            print("✓ Routines cleared")
        else:
            print("✗ Could not clear routines")
