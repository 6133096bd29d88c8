"""Tests for the command-line flow with a fake Notion client."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from notion_to_obsidian.cli import build_arg_parser, run_cli, search_condition_from_args
from notion_to_obsidian.config import API_KEY_VAR

from conftest import make_page, multi_select_prop, title_prop


def scripted(*answers):
    remaining = list(answers)
    return lambda message: remaining.pop(0)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(API_KEY_VAR, "secret_test")
    (tmp_path / "config.json").write_text(json.dumps({"databases": [
        {"name": "notes", "databaseId": "db-notes", "outputDir": "vault/notes"},
        {"name": "books", "databaseId": "db-books", "outputDir": "vault/books"},
    ]}), encoding="utf-8")
    return tmp_path


@pytest.fixture
def client():
    fake = MagicMock()
    fake.get_all_pages.return_value = [
        make_page({"Name": title_prop("Trip Report"), "Tags": multi_select_prop("A")}, "p1"),
        make_page({"Name": title_prop("Groceries")}, "p2"),
    ]
    return fake


class TestArguments:
    def test_search_condition_priority(self):
        args = build_arg_parser().parse_args(["--title", "A", "--contains", "B", "--all"])
        condition = search_condition_from_args(args)
        assert (condition.mode, condition.keyword) == ("title", "A")

    def test_no_search_flags(self):
        assert search_condition_from_args(build_arg_parser().parse_args([])) is None


class TestRunCli:
    def test_export_all(self, workspace, client, capsys):
        assert run_cli(["--db", "notes", "--all"], client=client) == 0

        client.get_all_pages.assert_called_once_with("db-notes")
        assert (workspace / "vault/notes/Trip Report.md").exists()
        assert (workspace / "vault/notes/Groceries.md").exists()
        out = capsys.readouterr().out
        assert "Found 2 page(s)" in out
        assert "[1/2] Writing Trip Report.md" in out
        assert "Done: 2 file(s) written" in out
        assert (workspace / "notion2obsidian.log").exists()

    def test_downloads_share_one_closed_session(self, workspace, client):
        with patch("notion_to_obsidian.cli.requests.Session") as session_class:
            assert run_cli(["--db", "notes", "--all"], client=client) == 0

        session_class.assert_called_once_with()
        session_class.return_value.__exit__.assert_called_once()

    def test_contains(self, workspace, client):
        assert run_cli(["--db", "books", "--contains", "trip"], client=client) == 0
        assert [path.name for path in (workspace / "vault/books").iterdir()] == ["Trip Report.md"]

    def test_verbose_lists_files(self, workspace, client, capsys):
        run_cli(["--db", "notes", "--title", "Groceries", "--verbose"], client=client)
        out = capsys.readouterr().out
        assert "Written files:" in out
        assert "Groceries.md" in out
        assert "[DEBUG]" in out

    def test_no_match(self, workspace, client, capsys):
        assert run_cli(["--db", "notes", "--title", "Nothing"], client=client) == 0
        assert "No matching pages" in capsys.readouterr().out
        assert not (workspace / "vault").exists()

    def test_unknown_database(self, workspace, client, capsys):
        assert run_cli(["--db", "music", "--all"], client=client) == 1
        assert "Database 'music' not found" in capsys.readouterr().out
        client.get_all_pages.assert_not_called()

    def test_missing_config(self, workspace, client):
        (workspace / "config.json").unlink()
        assert run_cli(["--all"], client=client) == 1

    def test_missing_api_key(self, workspace, client, monkeypatch):
        monkeypatch.delenv(API_KEY_VAR)
        assert run_cli(["--db", "notes", "--all"], client=client) == 1

    def test_query_failure_is_fatal(self, workspace, client):
        client.get_all_pages.side_effect = requests.HTTPError("401 Unauthorized")
        assert run_cli(["--db", "notes", "--all"], client=client) == 1

    def test_interactive_flow(self, workspace, client, capsys):
        code = run_cli([], client=client, input_func=scripted("2", "2", "grocer", "y"))

        assert code == 0
        client.get_all_pages.assert_called_once_with("db-books")
        assert (workspace / "vault/books/Groceries.md").exists()
        assert "1. Groceries" in capsys.readouterr().out

    def test_interactive_decline(self, workspace, client, capsys):
        code = run_cli(["--db", "notes"], client=client, input_func=scripted("3", "n"))

        assert code == 0
        assert "Cancelled." in capsys.readouterr().out
        assert not (workspace / "vault").exists()
