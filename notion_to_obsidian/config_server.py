"""Local web UI for editing the per-database export rules in config.json."""
from __future__ import annotations

import logging
import threading
import webbrowser
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import uvicorn
from fastapi import FastAPI
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from .config import (
    CONFIG_PATH
    ,ENV_PATH
    ,ConfigurationError
    ,get_database_by_name
    ,load_api_key
    ,load_config
    ,read_raw_config
    ,write_raw_config
)
from .notion_client import NotionClient


HOST = "127.0.0.1"
PORT = 3456
STATIC_DIR = Path(__file__).resolve().parent / "static"

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], NotionClient]


class PropertyInfo(BaseModel):
    name: str
    type: str = ""
    enabled: bool = True
    outputName: str = ""


class CustomPropertyInfo(BaseModel):
    name: str
    value: Union[bool, int, float, str, List[str]] = ""


class ConfigUpdate(BaseModel):
    database: Optional[str] = None
    properties: List[PropertyInfo] = Field(default_factory=list)
    customProperties: List[CustomPropertyInfo] = Field(default_factory=list)


def _find_record(raw: Dict[str, Any], name: Optional[str]) -> Dict[str, Any]:
    """Return the JSON object holding the rule set for name (the top level for legacy files)."""

    records = raw.get("databases")
    if records is None:
        return raw
    if name is None and len(records) == 1:
        return records[0]
    for index, record in enumerate(records, start=1):
        if (record.get("name") or f"database{index}") == name:
            return record
    raise ConfigurationError(f"Database '{name}' not found in config.")


def create_app(
    config_path: Path = CONFIG_PATH
    ,env_path: Path = ENV_PATH
    ,client_factory: ClientFactory = NotionClient
) -> FastAPI:
    app = FastAPI(title="notion2obsidian settings")

    @app.get("/", include_in_schema=False)
    async def index() -> FileResponse:
        return FileResponse(STATIC_DIR / "index.html")

    @app.get("/api/databases")
    def list_databases() -> Dict[str, Any]:
        try:
            config = load_config(config_path)
        except ConfigurationError as exc:
            return {"error": str(exc)}
        return {
            "databases": [
                {"name": database.name, "databaseId": database.database_id}
                for database in config.databases
            ]
        }

    @app.get("/api/properties")
    def list_properties(db: Optional[str] = None) -> Dict[str, Any]:
        try:
            config = load_config(config_path)
            database = get_database_by_name(config, db) if db else config.databases[0]
            if database is None:
                raise ConfigurationError(f"Database '{db}' not found in config.")
            client = client_factory(load_api_key(env_path))
            schema = client.get_database_schema(database.database_id)
        except Exception as exc:
            logger.error("Failed to load properties: %s", exc)
            return {"error": str(exc)}

        if not schema:
            return {"error": "The database has no properties."}

        properties = {
            prop.name: {
                "name": prop.name
                ,"type": prop.type
                ,"enabled": prop.name not in database.exclude_properties
                ,"outputName": database.property_name_map.get(prop.name, "")
            }
            for prop in schema
        }
        ordered = [properties[name] for name in database.property_order if name in properties]
        ordered.extend(info for name, info in properties.items() if name not in database.property_order)

        return {
            "properties": ordered
            ,"customProperties": [
                {"name": custom.name, "value": custom.value} for custom in database.custom_properties
            ]
        }

    @app.post("/api/config")
    def save_config(update: ConfigUpdate) -> Dict[str, Any]:
        try:
            raw = read_raw_config(config_path)
            record = _find_record(raw, update.database)

            record["propertyOrder"] = [prop.name for prop in update.properties] + [
                custom.name for custom in update.customProperties
            ]
            record["excludeProperties"] = [prop.name for prop in update.properties if not prop.enabled]
            record["propertyNameMap"] = {
                prop.name: prop.outputName.strip()
                for prop in update.properties
                if prop.outputName and prop.outputName.strip()
            }
            record["customProperties"] = [
                {"name": custom.name, "value": custom.value} for custom in update.customProperties
            ]
            write_raw_config(config_path, raw)
        except Exception as exc:
            logger.error("Failed to save config: %s", exc)
            return {"success": False, "error": str(exc)}

        logger.info("Saved settings to %s", config_path)
        return {"success": True}

    return app


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    url = f"http://localhost:{PORT}"
    print(f"[info] Opening settings page at {url}")
    print("[info] Press Ctrl+C to stop.")
    threading.Timer(1.0, webbrowser.open, args=(url,)).start()
    uvicorn.run(create_app(), host=HOST, port=PORT, log_level="warning")


if __name__ == "__main__":
    main()
