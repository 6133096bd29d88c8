from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


CONFIG_PATH = Path("config.json")
ENV_PATH = Path(".env")
API_KEY_VAR = "NOTION_API_KEY"
LEGACY_DATABASE_NAME = "default"

DOWNLOAD_TIMEOUT_SECONDS = 30
MAX_REDIRECTS = 5

PropertyLiteral = Union[str, List[str], int, float, bool]


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or malformed."""


@dataclass
class CustomProperty:
    '''Static front matter field added to every exported page'''

    name: str
    value: PropertyLiteral


@dataclass
class DatabaseConfig:
    '''Rule set for one exported Notion database'''

    name: str
    database_id: str
    output_dir: Path
    image_dir: Path
    exclude_properties: List[str] = field(default_factory=list)
    property_order: List[str] = field(default_factory=list)
    custom_properties: List[CustomProperty] = field(default_factory=list)
    property_name_map: Dict[str, str] = field(default_factory=dict)
    property_value_additions: Dict[str, PropertyLiteral] = field(default_factory=dict)
    download_workers: int = 1


@dataclass
class AppConfig:
    '''Everything read from config.json'''

    databases: List[DatabaseConfig]
    path: Path
    legacy: bool = False

    @property
    def database_names(self) -> List[str]:
        return [database.name for database in self.databases]


def read_raw_config(path: Path) -> Dict[str, Any]:
    """Return the JSON document stored at path."""

    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}. Create config.json first.")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Could not parse config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object.")
    return data


def write_raw_config(path: Path, data: Dict[str, Any]) -> None:
    """Overwrite the config file with data, pretty-printed."""

    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def _parse_database(raw: Dict[str, Any], name: str) -> DatabaseConfig:
    database_id = raw.get("databaseId")
    output_dir = raw.get("outputDir")
    if not database_id:
        raise ConfigurationError(f"databaseId is missing for database '{name}'.")
    if not output_dir:
        raise ConfigurationError(f"outputDir is missing for database '{name}'.")

    image_dir = raw.get("imageDir")
    custom_properties = [
        CustomProperty(name=item["name"], value=item.get("value", ""))
        for item in raw.get("customProperties") or []
        if isinstance(item, dict) and item.get("name")
    ]

    try:
        download_workers = max(1, int(raw.get("downloadWorkers") or 1))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"downloadWorkers must be an integer for database '{name}'.") from exc

    return DatabaseConfig(
        name=name
        ,database_id=database_id
        ,output_dir=Path(output_dir)
        ,image_dir=Path(image_dir) if image_dir else Path(output_dir) / "images"
        ,exclude_properties=list(raw.get("excludeProperties") or [])
        ,property_order=list(raw.get("propertyOrder") or [])
        ,custom_properties=custom_properties
        ,property_name_map=dict(raw.get("propertyNameMap") or {})
        ,property_value_additions=dict(raw.get("propertyValueAdditions") or {})
        ,download_workers=download_workers
    )


def load_config(path: Path = CONFIG_PATH) -> AppConfig:
    """Load config.json, upgrading the single-database legacy layout in memory."""

    raw = read_raw_config(path)

    if "databases" not in raw:
        database = _parse_database(raw, raw.get("name") or LEGACY_DATABASE_NAME)
        return AppConfig(databases=[database], path=path, legacy=True)

    records = raw.get("databases")
    if not isinstance(records, list) or not records:
        raise ConfigurationError(f"'databases' in {path} must be a non-empty list.")

    databases: List[DatabaseConfig] = []
    for index, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            raise ConfigurationError(f"Database entry #{index} in {path} must be an object.")
        databases.append(_parse_database(record, record.get("name") or f"database{index}"))
    return AppConfig(databases=databases, path=path)


def get_database_by_name(config: AppConfig, name: str) -> Optional[DatabaseConfig]:
    for database in config.databases:
        if database.name == name:
            return database
    return None


def load_env_file(path: Path) -> Dict[str, str]:
    """Parse the provided .env file into a plain mapping."""

    raw: Dict[str, str] = {}
    if not path.exists():
        return raw
    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        raw[key.strip()] = value.strip().strip('"').strip("'")
    return raw


def load_api_key(path: Path = ENV_PATH) -> str:
    """Return the Notion API key from the environment, falling back to the .env file."""

    api_key = os.environ.get(API_KEY_VAR) or load_env_file(path).get(API_KEY_VAR)
    if not api_key:
        raise ConfigurationError(
            f"{API_KEY_VAR} is not set. Export it or add it to {path}."
        )
    return api_key
