from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence
from urllib.parse import urlparse

from .converter import FileReference, sanitize_file_name


IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".pdf")
DEFAULT_EXTENSION = ".png"


@dataclass
class ImageDescriptor:
    '''File reference with the local path it will be saved to'''

    url: str
    local_path: Path
    display_name: str
    property_name: str = ""


def is_image_url(url: str) -> bool:
    lowered = url.lower()
    return any(extension in lowered for extension in IMAGE_EXTENSIONS)


def infer_extension(url: str) -> str:
    """Guess a file extension from the URL path, defaulting to .png."""

    try:
        path = urlparse(url).path.lower()
    except ValueError:
        lowered = url.lower()
        for extension in IMAGE_EXTENSIONS:
            if extension in lowered:
                return extension
        return DEFAULT_EXTENSION

    for extension in IMAGE_EXTENSIONS:
        if path.endswith(extension):
            return extension
    return DEFAULT_EXTENSION


def resolve_images(files: Sequence[FileReference], page_title: str, image_dir: Path) -> List[ImageDescriptor]:
    """Assign local file names to the image-like file references of one page."""

    sanitized_title = sanitize_file_name(page_title)
    candidates = [file for file in files if is_image_url(file.url)]
    return [
        ImageDescriptor(
            url=file.url
            ,local_path=Path(image_dir) / f"{sanitized_title}_{index}{infer_extension(file.url)}"
            ,display_name=file.name
            ,property_name=file.output_name or file.property_name
        )
        for index, file in enumerate(candidates, start=1)
    ]


def relative_image_path(local_path: Path, output_dir: Path, image_dir: Path) -> str:
    """Path of an image as seen from a markdown file in output_dir, with forward slashes."""

    relative_dir = os.path.relpath(Path(image_dir).resolve(), Path(output_dir).resolve())
    file_name = Path(local_path).name
    if relative_dir == os.curdir:
        return file_name
    return f"{relative_dir}/{file_name}".replace("\\", "/")


def unique_file_path(base_path: Path) -> Path:
    """Return base_path, or base_2, base_3, ... when the name is taken."""

    if not base_path.exists():
        return base_path

    counter = 2
    candidate = base_path.with_name(f"{base_path.stem}_{counter}{base_path.suffix}")
    while candidate.exists():
        counter += 1
        candidate = base_path.with_name(f"{base_path.stem}_{counter}{base_path.suffix}")
    return candidate
