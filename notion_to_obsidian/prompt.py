"""Interactive selection used when no search flag is given on the command line."""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from .config import DatabaseConfig
from .search import PageSummary, SearchCondition


InputFunc = Callable[[str], str]

SEARCH_MODE_CHOICES: List[Tuple[str, str]] = [
    ("Exact title match", "title")
    ,("Title contains keyword", "contains")
    ,("Export all pages", "all")
]


def _ask(input_func: InputFunc, message: str) -> Optional[str]:
    try:
        return input_func(message)
    except (EOFError, KeyboardInterrupt):
        print()
        return None


def choose(options: Sequence[str], message: str, input_func: InputFunc = input) -> Optional[int]:
    """Print a numbered menu and return the zero-based index picked, or None on cancel."""

    print(message)
    for number, option in enumerate(options, start=1):
        print(f"  {number}. {option}")

    while True:
        answer = _ask(input_func, f"Select [1-{len(options)}]: ")
        if answer is None:
            return None
        answer = answer.strip()
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return int(answer) - 1
        print(f"[warn] Enter a number between 1 and {len(options)}.")


def select_database(databases: Sequence[DatabaseConfig], input_func: InputFunc = input) -> Optional[DatabaseConfig]:
    if len(databases) == 1:
        return databases[0]

    index = choose([database.name for database in databases], "Select the database to export:", input_func)
    return databases[index] if index is not None else None


def select_search_mode(input_func: InputFunc = input) -> Optional[str]:
    index = choose([label for label, _ in SEARCH_MODE_CHOICES], "How should pages be selected?", input_func)
    return SEARCH_MODE_CHOICES[index][1] if index is not None else None


def input_keyword(mode: str, input_func: InputFunc = input) -> Optional[str]:
    message = "Title: " if mode == "title" else "Keyword: "
    while True:
        answer = _ask(input_func, message)
        if answer is None:
            return None
        if answer.strip():
            return answer.strip()
        print("[warn] Please enter a value.")


def confirm_pages(pages: Sequence[PageSummary], input_func: InputFunc = input) -> bool:
    """List the matched pages and ask whether to export them."""

    if not pages:
        print("\nNo matching pages found.\n")
        return False

    print(f"\nFound {len(pages)} page(s):")
    for number, page in enumerate(pages, start=1):
        print(f"  {number}. {page.title}")
    print()

    answer = _ask(input_func, "Export these pages? [Y/n]: ")
    if answer is None:
        return False
    return answer.strip().lower() in ("", "y", "yes")


def get_search_condition_interactive(input_func: InputFunc = input) -> Optional[SearchCondition]:
    mode = select_search_mode(input_func)
    if mode is None:
        return None
    if mode == "all":
        return SearchCondition(mode="all")

    keyword = input_keyword(mode, input_func)
    if keyword is None:
        return None
    return SearchCondition(mode=mode, keyword=keyword)
