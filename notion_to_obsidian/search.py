from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .converter import get_page_title
from .notion_client import NotionClient


SEARCH_MODES = ("title", "contains", "all")


class SearchError(ValueError):
    """Raised for an unknown search mode or a missing keyword."""


@dataclass
class SearchCondition:
    mode: str
    keyword: Optional[str] = None


@dataclass
class PageSummary:
    id: str
    title: str


def filter_by_exact_title(pages: Sequence[Dict], title: str) -> List[Dict]:
    return [page for page in pages if get_page_title(page) == title]


def filter_by_title_contains(pages: Sequence[Dict], keyword: str) -> List[Dict]:
    lowered = keyword.lower()
    return [page for page in pages if lowered in get_page_title(page).lower()]


def select_pages(pages: Sequence[Dict], condition: SearchCondition) -> List[Dict]:
    """Apply a search condition to an already fetched list of pages."""

    if condition.mode == "all":
        return list(pages)
    if condition.mode not in SEARCH_MODES:
        raise SearchError(f"Unknown search mode: {condition.mode}")
    if not condition.keyword:
        raise SearchError(f"Search mode '{condition.mode}' requires a keyword.")
    if condition.mode == "title":
        return filter_by_exact_title(pages, condition.keyword)
    return filter_by_title_contains(pages, condition.keyword)


def get_pages(client: NotionClient, database_id: str, condition: SearchCondition) -> List[Dict]:
    """Fetch every page of the database and keep the ones matching condition."""

    if condition.mode not in SEARCH_MODES:
        raise SearchError(f"Unknown search mode: {condition.mode}")
    return select_pages(client.get_all_pages(database_id), condition)


def get_page_summaries(pages: Sequence[Dict]) -> List[PageSummary]:
    return [PageSummary(id=page.get("id", ""), title=get_page_title(page)) for page in pages]
