"""Favorites commands for bendsync CLI."""

from typing import TYPE_CHECKING

from bendsync.cli.commands.helpers import format_minutes, print_json
from bendsync.types import FavoriteRecord

if TYPE_CHECKING:
    from bendsync import ActivityStore


def cmd_favorites(args, store: "ActivityStore"):
    """Handle favorites subcommands."""
    if args.favorites_action == "list":
        favorites = store.list_favorites()
        if args.json:
            print_json(favorites)
            return
        if not favorites:
            print("No favorites saved.")
            return
        for favorite in favorites:
            print(
                f"★ {favorite.routine_name} [{format_minutes(favorite.duration_minutes)}]  "
                f"{favorite.routine_id}"
            )

    elif args.favorites_action in ("add", "toggle"):
        favorite = FavoriteRecord(
            routine_id=args.routine_id,
            routine_name=args.name,
            description=args.description or "",
            duration_minutes=args.duration,
            body_part_id=args.body_part,
            slug=args.slug or args.routine_id,
            image_url=args.image_url,
        )
        if args.favorites_action == "toggle":
            state = store.toggle_favorite(favorite)
            print(f"{args.name} is {'now' if state else 'not'} a favorite")
        elif store.save_favorite(favorite):
            print(f"✓ Saved {args.name}")
        else:
            print(f"✗ Could not save {args.name}")

    elif args.favorites_action == "remove":
        if store.remove_favorite(args.routine_id):
            print(f"✓ Removed {args.routine_id}")
        else:
            print(f"✗ Could not remove {args.routine_id}")

    elif args.favorites_action == "check":
        saved = store.is_favorite(args.routine_id)
        print("saved" if saved else "not saved")

    elif args.favorites_action == "clear":
        if store.clear_favorites():
            print("✓ Local favorites cleared")
        else:
            print("✗ Could not clear favorites")
