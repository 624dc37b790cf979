"""CLI command modules for bendsync.

Each module contains the handlers for one command group.
"""

from bendsync.cli.commands.favorites import cmd_favorites
from bendsync.cli.commands.history import cmd_history
from bendsync.cli.commands.routines import cmd_routines
from bendsync.cli.commands.streak import cmd_streak
from bendsync.cli.commands.sync import cmd_sync

__all__ = [
    "cmd_favorites",
    "cmd_history",
    "cmd_routines",
    "cmd_streak",
    "cmd_sync",
]
