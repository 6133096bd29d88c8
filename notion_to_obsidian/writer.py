from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import yaml

from .config import CustomProperty
from .converter import ConvertedProperties, sanitize_file_name
from .images import ImageDescriptor, relative_image_path, unique_file_path


FRONT_MATTER_DELIMITER = "---"

logger = logging.getLogger(__name__)


class _QuotedString(str):
    pass


class _FrontMatterDumper(yaml.SafeDumper):
    pass


def _represent_quoted(dumper: yaml.SafeDumper, data: _QuotedString) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(data), style='"')


_FrontMatterDumper.add_representer(_QuotedString, _represent_quoted)


@dataclass
class OutputResult:
    file_path: Path
    title: str
    image_count: int


def _quote_values(value: Any) -> Any:
    if isinstance(value, str):
        return _QuotedString(value)
    if isinstance(value, list):
        return [_quote_values(item) for item in value]
    return value


def find_url_list_keys(properties: Dict[str, Any]) -> List[str]:
    """Keys whose value is a list holding at least one http(s) string."""

    return [
        key
        for key, value in properties.items()
        if isinstance(value, list) and any(isinstance(item, str) and item.startswith("http") for item in value)
    ]


def image_paths_by_property(
    images: Sequence[ImageDescriptor]
    ,output_dir: Path
    ,image_dir: Path
) -> Dict[str, List[str]]:
    """Group the relative paths of downloaded images by the property they came from."""

    grouped: Dict[str, List[str]] = {}
    for image in images:
        grouped.setdefault(image.property_name, []).append(
            relative_image_path(image.local_path, output_dir, image_dir)
        )
    return grouped


def build_front_matter(
    properties: ConvertedProperties
    ,images: Sequence[ImageDescriptor]
    ,output_dir: Path
    ,image_dir: Path
    ,custom_properties: Sequence[CustomProperty] = ()
) -> Dict[str, Any]:
    """Swap downloaded file URLs for local paths and merge the custom properties."""

    front_matter: Dict[str, Any] = dict(properties)

    for key, paths in image_paths_by_property(images, output_dir, image_dir).items():
        if key in front_matter:
            front_matter[key] = paths

    for custom in custom_properties:
        front_matter[custom.name] = custom.value

    return front_matter


def render_front_matter(front_matter: Dict[str, Any]) -> str:
    body = yaml.dump(
        {key: _quote_values(value) for key, value in front_matter.items()}
        ,Dumper=_FrontMatterDumper
        ,sort_keys=False
        ,allow_unicode=True
        ,default_flow_style=False
        ,width=float("inf")
    )
    return f"{FRONT_MATTER_DELIMITER}\n{body}{FRONT_MATTER_DELIMITER}"


def render_image_section(images: Sequence[ImageDescriptor], output_dir: Path, image_dir: Path) -> str:
    if not images:
        return ""

    lines = [
        f"![{image.display_name}_{index}](<{relative_image_path(image.local_path, output_dir, image_dir)}>)"
        for index, image in enumerate(images, start=1)
    ]
    return "\n" + "\n\n".join(lines)


def render_markdown(
    properties: ConvertedProperties
    ,images: Sequence[ImageDescriptor]
    ,output_dir: Path
    ,image_dir: Path
    ,custom_properties: Sequence[CustomProperty] = ()
) -> str:
    """Build the full document: front matter block, then image embeds."""

    front_matter = build_front_matter(properties, images, output_dir, image_dir, custom_properties)
    return render_front_matter(front_matter) + render_image_section(images, output_dir, image_dir) + "\n"


def parse_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split a document into its front matter mapping and the remaining body."""

    if not text.startswith(FRONT_MATTER_DELIMITER + "\n"):
        return {}, text

    closing_idx = text.find("\n" + FRONT_MATTER_DELIMITER, len(FRONT_MATTER_DELIMITER))
    if closing_idx == -1:
        return {}, text

    chunk = text[len(FRONT_MATTER_DELIMITER) + 1 : closing_idx + 1]
    remainder = text[closing_idx + len(FRONT_MATTER_DELIMITER) + 1 :].lstrip("\r\n")
    data = yaml.safe_load(chunk) or {}
    return data, remainder


def write_markdown_file(title: str, content: str, output_dir: Path) -> Path:
    """Write content to <title>.md in output_dir without overwriting anything."""

    output_dir = Path(output_dir)
    if not output_dir.exists():
        output_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Created directory %s", output_dir)

    file_path = unique_file_path(output_dir / f"{sanitize_file_name(title)}.md")
    with open(file_path, "x", encoding="utf-8") as handle:
        handle.write(content)
    return file_path


def output_page(
    title: str
    ,properties: ConvertedProperties
    ,images: Sequence[ImageDescriptor]
    ,output_dir: Path
    ,image_dir: Path
    ,custom_properties: Sequence[CustomProperty] = ()
) -> Path:
    markdown = render_markdown(properties, images, output_dir, image_dir, custom_properties)
    return write_markdown_file(title, markdown, output_dir)
