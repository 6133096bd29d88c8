from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .config import PropertyLiteral


PropertyValue = Union[str, int, float, bool, List[str], None]
ConvertedProperties = Dict[str, PropertyValue]

ROLLUP_ARRAY_PLACEHOLDER = "(rollup array)"
UNTITLED = "Untitled"
FORBIDDEN_FILENAME_CHARS = '/\\:*?"<>|'

logger = logging.getLogger(__name__)


@dataclass
class FileReference:
    '''File entry found in a files property'''

    url: str
    name: str
    property_name: str = ""
    output_name: str = ""


def sanitize_file_name(name: str) -> str:
    """Replace characters that are not allowed in file names with '-'."""

    return "".join("-" if char in FORBIDDEN_FILENAME_CHARS else char for char in name)


def _plain_text(runs: Optional[List[Dict]]) -> str:
    return "".join(run.get("plain_text", "") for run in runs or [])


def _option_name(option: Optional[Dict]) -> Optional[str]:
    return option.get("name") if option else None


def _user_label(user: Optional[Dict]) -> Optional[str]:
    if not user:
        return None
    return user.get("name") or user.get("id")


def _date_start(date: Optional[Dict]) -> Optional[str]:
    return date.get("start") if date else None


def _date_text(date: Optional[Dict]) -> Optional[str]:
    if not date:
        return None
    if date.get("end"):
        return f"{date['start']} ~ {date['end']}"
    return date.get("start")


def _timestamp_date(timestamp: Optional[str]) -> Optional[str]:
    if not timestamp:
        return None
    return timestamp.split("T")[0]


def _formula_value(formula: Optional[Dict]) -> PropertyValue:
    if not formula:
        return None
    kind = formula.get("type")
    if kind in ("string", "number", "boolean"):
        return formula.get(kind)
    if kind == "date":
        return _date_start(formula.get("date"))
    return None


def _rollup_value(rollup: Optional[Dict]) -> PropertyValue:
    if not rollup:
        return None
    kind = rollup.get("type")
    if kind == "number":
        return rollup.get("number")
    if kind == "date":
        return _date_start(rollup.get("date"))
    if kind == "array":
        return ROLLUP_ARRAY_PLACEHOLDER
    return None


def _unique_id_value(unique_id: Optional[Dict]) -> PropertyValue:
    if not unique_id:
        return None
    prefix = unique_id.get("prefix")
    number = unique_id.get("number")
    if prefix:
        return f"{prefix}-{number}"
    return number


def extract_files(prop: Dict) -> List[FileReference]:
    """Return the hosted and external files listed in a files property."""

    files: List[FileReference] = []
    for entry in prop.get("files") or []:
        if not isinstance(entry, dict):
            continue
        kind = entry.get("type")
        source = entry.get(kind) if kind in ("file", "external") else None
        if not source or not source.get("url"):
            continue
        files.append(FileReference(url=source["url"], name=entry.get("name") or "unnamed"))
    return files


_EXTRACTORS: Dict[str, Callable[[Any], PropertyValue]] = {
    "title": _plain_text
    ,"rich_text": _plain_text
    ,"number": lambda value: value
    ,"select": _option_name
    ,"status": _option_name
    ,"multi_select": lambda options: [option["name"] for option in options or []]
    ,"date": _date_text
    ,"checkbox": bool
    ,"url": lambda value: value
    ,"email": lambda value: value
    ,"phone_number": lambda value: value
    ,"created_time": _timestamp_date
    ,"last_edited_time": _timestamp_date
    ,"created_by": _user_label
    ,"last_edited_by": _user_label
    ,"people": lambda users: [_user_label(user) for user in users or [] if _user_label(user)]
    ,"relation": lambda related: [item["id"] for item in related or []]
    ,"formula": _formula_value
    ,"rollup": _rollup_value
    ,"unique_id": _unique_id_value
}


def convert_property(name: str, prop: Any) -> Tuple[PropertyValue, List[FileReference]]:
    """Convert one Notion property into a plain value plus any file references."""

    if not isinstance(prop, dict):
        return None, []

    prop_type = prop.get("type", "")
    logger.debug("  property '%s' (%s)", name, prop_type)

    if prop_type == "files":
        files = extract_files(prop)
        return [file.url for file in files], files

    extractor = _EXTRACTORS.get(prop_type)
    if extractor is None:
        logger.debug("    unsupported property type: %s", prop_type)
        return None, []
    return extractor(prop.get(prop_type)), []


def merge_addition(current: PropertyValue, addition: PropertyLiteral) -> PropertyValue:
    """Merge a configured literal into an already converted value."""

    if isinstance(current, list):
        extra = addition if isinstance(addition, list) else [addition]
        merged = list(current)
        for item in extra:
            if item not in merged:
                merged.append(item)
        return merged
    if isinstance(current, str) and isinstance(addition, str):
        return current + addition
    return addition


def apply_property_order(
    properties: ConvertedProperties
    ,property_order: Sequence[str]
    ,property_name_map: Dict[str, str]
) -> ConvertedProperties:
    """Put ordered properties first; the rest keep their extraction order."""

    ordered: ConvertedProperties = {}
    for name in property_order:
        output_name = property_name_map.get(name) or name
        if output_name in properties and output_name not in ordered:
            ordered[output_name] = properties[output_name]
    for name, value in properties.items():
        if name not in ordered:
            ordered[name] = value
    return ordered


def convert_page_properties(
    page: Dict
    ,exclude_properties: Sequence[str] = ()
    ,property_order: Sequence[str] = ()
    ,property_name_map: Optional[Dict[str, str]] = None
    ,property_value_additions: Optional[Dict[str, PropertyLiteral]] = None
) -> Tuple[ConvertedProperties, List[FileReference]]:
    """Flatten a page's properties according to a database rule set."""

    name_map = property_name_map or {}
    excluded = set(exclude_properties)
    converted: ConvertedProperties = {}
    all_files: List[FileReference] = []

    logger.debug("Converting page properties...")

    for name, prop in (page.get("properties") or {}).items():
        if name in excluded:
            continue

        value, files = convert_property(name, prop)
        output_name = name_map.get(name) or name
        if value is not None:
            converted[output_name] = value

        for file in files:
            file.property_name = name
            file.output_name = output_name
        all_files.extend(files)

    for name, addition in (property_value_additions or {}).items():
        output_name = name_map.get(name) or name
        if output_name in converted:
            converted[output_name] = merge_addition(converted[output_name], addition)

    return apply_property_order(converted, property_order, name_map), all_files


def get_page_title(page: Dict) -> str:
    """Return the text of the page's title property, or 'Untitled'."""

    for prop in (page.get("properties") or {}).values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            title = _plain_text(prop.get("title"))
            if title:
                return title
    return UNTITLED
