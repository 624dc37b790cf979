"""Sync commands for bendsync CLI: local-to-remote migration."""

import logging
from typing import TYPE_CHECKING

from bendsync.cli.commands.helpers import print_json
from bendsync.types import COLLECTIONS

if TYPE_CHECKING:
    from bendsync import ActivityStore

logger = logging.getLogger(__name__)


def cmd_sync(args, store: "ActivityStore"):
    """Handle sync subcommands."""
    identity = store.engine.current_identity()

    if args.sync_action == "status":
        status = {
            "remote_configured": store.engine.remote is not None,
            "identity": identity.id if identity else None,
            "collections": {},
        }
        for collection in COLLECTIONS:
            result = store.engine.list(collection)
            status["collections"][collection] = {
                "records": len(result.records),
                "source": result.source,
            }
        store.wait_for_migrations()

        if args.json:
            print_json(status)
            return
        print(f"Remote: {'configured' if status['remote_configured'] else 'not configured'}")
        print(f"Identity: {status['identity'] or 'anonymous'}")
        for collection, info in status["collections"].items():
            print(f"  {collection:<20} {info['records']:>4} records ({info['source']})")

    elif args.sync_action == "migrate":
        if identity is None:
            print("Not signed in; nothing to migrate.")
            return
        results = store.migrate_now()
        if args.json:
            print_json(results)
            return
        for result in results:
            line = f"  {result.collection:<20} {result.status}"
            if result.copied:
                line += f" ({result.copied} copied)"
            if result.error:
                line += f": {result.error}"
            print(line)
