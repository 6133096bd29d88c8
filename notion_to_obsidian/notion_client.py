from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

import requests


NOTION_VERSION = "2022-06-28"
API_ROOT = "https://api.notion.com/v1"

logger = logging.getLogger(__name__)


@dataclass
class PropertySchema:
    name: str
    type: str


class NotionClient:
    def __init__(self, token: str, session: Optional[requests.Session] = None) -> None:
        """Initialize a session configured with the integration token."""

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}"
                ,"Notion-Version": NOTION_VERSION
                ,"Content-Type": "application/json"
            }
        )

    def query_database(self, database_id: str, start_cursor: Optional[str] = None) -> Dict:
        """Fetch one page of query results from a database."""

        url = f"{API_ROOT}/databases/{database_id}/query"
        payload: Dict = {"page_size": 100}
        if start_cursor:
            payload["start_cursor"] = start_cursor
        response = self.session.post(url, data=json.dumps(payload))
        try:
            response.raise_for_status()
        except requests.HTTPError as err:
            print(f"[error] Notion query failed: {response.text}")
            raise err
        return response.json()

    def iter_database_pages(self, database_id: str) -> Iterator[Dict]:
        """Yield every page of a database, following the continuation cursor."""

        cursor: Optional[str] = None
        while True:
            data = self.query_database(database_id, start_cursor=cursor)
            for page in data.get("results", []):
                if "properties" in page:
                    yield page
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break

    def get_all_pages(self, database_id: str) -> List[Dict]:
        logger.debug("Fetching pages from database %s", database_id)
        pages = list(self.iter_database_pages(database_id))
        logger.debug("Fetched %d page(s)", len(pages))
        return pages

    def fetch_database(self, database_id: str) -> Dict:
        """Fetch the schema for a Notion database."""

        url = f"{API_ROOT}/databases/{database_id}"
        response = self.session.get(url)
        try:
            response.raise_for_status()
        except requests.HTTPError as err:
            print(f"[error] Notion fetch database failed: {response.text}")
            raise err
        return response.json()

    def get_database_schema(self, database_id: str) -> List[PropertySchema]:
        """Return the name and type of every property defined on a database."""

        logger.debug("Fetching schema for database %s", database_id)
        data = self.fetch_database(database_id)
        schema = [
            PropertySchema(name=name, type=prop.get("type", ""))
            for name, prop in data.get("properties", {}).items()
        ]
        logger.debug("Database %s defines %d properties", database_id, len(schema))
        return schema
