"""Unit tests for the interactive prompts, driven by scripted answers."""

from pathlib import Path

from notion_to_obsidian.config import DatabaseConfig
from notion_to_obsidian.prompt import (
    confirm_pages,
    get_search_condition_interactive,
    input_keyword,
    select_database,
)
from notion_to_obsidian.search import PageSummary


def scripted(*answers):
    remaining = list(answers)

    def fake_input(message):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return fake_input


def database(name):
    return DatabaseConfig(name=name, database_id=name, output_dir=Path(name), image_dir=Path(name) / "images")


class TestSelectDatabase:
    def test_single_database_is_not_prompted(self):
        only = database("notes")
        assert select_database([only], scripted()) is only

    def test_pick_by_number_after_bad_input(self, capsys):
        databases = [database("notes"), database("books")]
        assert select_database(databases, scripted("9", "x", "2")) is databases[1]
        assert "Enter a number" in capsys.readouterr().out

    def test_eof_cancels(self):
        assert select_database([database("a"), database("b")], scripted()) is None


class TestSearchCondition:
    def test_all(self):
        condition = get_search_condition_interactive(scripted("3"))
        assert (condition.mode, condition.keyword) == ("all", None)

    def test_contains_with_keyword(self):
        condition = get_search_condition_interactive(scripted("2", "  trip "))
        assert (condition.mode, condition.keyword) == ("contains", "trip")

    def test_blank_keyword_reprompts(self):
        assert input_keyword("title", scripted("", "   ", "Trip Report")) == "Trip Report"

    def test_cancel_during_keyword(self):
        assert get_search_condition_interactive(scripted("1")) is None


class TestConfirmPages:
    def test_default_yes(self, capsys):
        assert confirm_pages([PageSummary(id="p1", title="Trip Report")], scripted("")) is True
        assert "1. Trip Report" in capsys.readouterr().out

    def test_no(self):
        assert confirm_pages([PageSummary(id="p1", title="A")], scripted("n")) is False

    def test_empty_list(self):
        assert confirm_pages([], scripted()) is False
