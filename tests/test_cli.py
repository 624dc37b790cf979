"""Tests for the bendsync CLI."""

import json
from argparse import Namespace
from unittest.mock import patch

import pytest
from conftest import make_favorite

from bendsync.cli.__main__ import build_parser, main
from bendsync.cli.commands import cmd_favorites
from bendsync.cli.commands.routines import parse_exercises, total_seconds
from bendsync.cli.commands.streak import format_week
from bendsync.config import Settings


@pytest.fixture
def run(tmp_path, capsys):
    """Run the CLI against a throwaway database and return its stdout."""
    settings = Settings(_env_file=None, home=tmp_path)

    def _run(*argv):
        with patch("bendsync.cli.__main__.get_settings", return_value=settings):
            main(list(argv))
        return capsys.readouterr().out

    return _run


class TestParser:
    def test_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_global_options(self, tmp_path):
        args = build_parser().parse_args(
            ["--db", str(tmp_path / "x.db"), "-u", "user-1", "streak", "show"]
        )
        assert args.user_id == "user-1"
        assert args.command == "streak"
        assert args.streak_action == "show"


class TestStreakCommands:
    def test_complete_and_show(self, run):
        out = run("streak", "complete", "morning-flow", "Morning Flow", "-d", "15")
        assert "Streak: 1" in out
        assert "New streak started!" in out
        assert "New streak started!" not in run(
            "streak", "complete", "evening-flow", "Evening Flow", "-d", "10"
        )
        assert "Restores available: 0" in run("streak", "show")

        stats = json.loads(run("streak", "show", "--json"))
        assert stats["active_streak"] == 1
        assert stats["days_completed"] == 1
        assert stats["weekly_progress"][0] is True

    def test_restore_without_restores(self, run):
        assert "No streak restores" in run("streak", "restore")

    def test_format_week(self):
        assert format_week([True, False, False, False, False, False, True]) == "●○○○○○●"


class TestHistoryCommands:
    def test_add_and_list(self, run):
        run("history", "add", "neck", "Neck Release", "-d", "5", "-e", "4")
        records = json.loads(run("history", "list", "--json"))
        assert [r["routine_name"] for r in records] == ["Neck Release"]

    def test_empty_list(self, run):
        assert "No completed routines yet." in run("history", "list")


class TestFavoritesCommands:
    def test_toggle(self, run):
        assert "now a favorite" in run("favorites", "toggle", "hips", "Hip Opener", "-d", "12")
        assert run("favorites", "check", "hips").strip() == "saved"
        assert "not a favorite" in run("favorites", "toggle", "hips", "Hip Opener", "-d", "12")

    def test_handler_with_namespace(self, store, capsys):
        store.save_favorite(make_favorite())
        cmd_favorites(Namespace(favorites_action="list", json=False), store)
        assert "Morning Stretch" in capsys.readouterr().out


class TestRoutineCommands:
    def test_create_same_name_twice(self, run):
        run("routines", "create", "Core", "-x", "Plank:60", "-x", "Dead bug:45")
        run("routines", "create", "Core", "-x", "Plank:60")
        out = run("routines", "list")
        assert "/core " in out
        assert "/core-1 " in out

    def test_show(self, run):
        run("routines", "create", "Core", "-x", "Plank:60", "--rest", "10")
        routine = json.loads(run("routines", "show", "core", "--json"))
        assert routine["total_duration_seconds"] == 70
        assert routine["exercises"][0]["name"] == "Plank"

    def test_bad_exercise_exits(self, run):
        with pytest.raises(SystemExit) as exc_info:
            run("routines", "create", "Core", "-x", "Plank")
        assert exc_info.value.code == 1

    def test_parse_exercises(self):
        exercises = parse_exercises(["Cat: cow:30", "Child pose:90"], rest_seconds=5)
        assert [e.name for e in exercises] == ["Cat: cow", "Child pose"]
        assert [e.sequence for e in exercises] == [0, 1]
        assert total_seconds(exercises) == 130

    @pytest.mark.parametrize("arg", ["Plank", ":30", "Plank:abc", "Plank:0"])
    def test_parse_exercises_rejects(self, arg):
        with pytest.raises(ValueError):
            parse_exercises([arg])


class TestSyncCommands:
    def test_migrate_anonymous(self, run):
        assert "Not signed in" in run("sync", "migrate")

    def test_status(self, run):
        run("favorites", "add", "hips", "Hip Opener", "-d", "12")
        status = json.loads(run("sync", "status", "--json"))
        assert status["remote_configured"] is False
        assert status["identity"] is None
        assert status["collections"]["favorites"] == {"records": 1, "source": "local"}
