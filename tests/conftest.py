"""Shared fixtures and Notion payload builders."""

from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from notion_to_obsidian.config import DatabaseConfig


def rich_text(text: str) -> List[Dict]:
    return [{"type": "text", "plain_text": text}] if text else []


def title_prop(text: str) -> Dict:
    return {"id": "title", "type": "title", "title": rich_text(text)}


def multi_select_prop(*names: str) -> Dict:
    return {"type": "multi_select", "multi_select": [{"name": name} for name in names]}


def select_prop(name: Optional[str]) -> Dict:
    return {"type": "select", "select": {"name": name} if name else None}


def number_prop(value) -> Dict:
    return {"type": "number", "number": value}


def files_prop(*urls: str, hosted: bool = True) -> Dict:
    kind = "file" if hosted else "external"
    return {
        "type": "files",
        "files": [
            {"name": f"photo{index}", "type": kind, kind: {"url": url}}
            for index, url in enumerate(urls, start=1)
        ],
    }


def make_page(properties: Dict, page_id: str = "page-1") -> Dict:
    return {"object": "page", "id": page_id, "properties": properties}


def make_response(status_code: int = 200, body: bytes = b"", headers: Optional[Dict] = None) -> MagicMock:
    """Stand-in for a streamed requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.iter_content.return_value = [body] if body else []
    return response


@pytest.fixture
def database(tmp_path) -> DatabaseConfig:
    output_dir = tmp_path / "vault" / "notes"
    return DatabaseConfig(
        name="notes",
        database_id="db-123",
        output_dir=output_dir,
        image_dir=output_dir / "images",
    )
