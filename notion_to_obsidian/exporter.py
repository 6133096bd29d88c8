from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from .config import DatabaseConfig
from .converter import convert_page_properties, get_page_title
from .downloader import download_images
from .images import resolve_images
from .writer import OutputResult, output_page


logger = logging.getLogger(__name__)


@dataclass
class ExportReport:
    results: List[OutputResult] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def files_written(self) -> int:
        return len(self.results)


def process_page(
    page: Dict
    ,database: DatabaseConfig
    ,current: int
    ,total: int
    ,*
    ,session: Optional[requests.Session] = None
) -> OutputResult:
    """Convert one page, fetch its images and write the markdown file."""

    title = get_page_title(page)
    print(f"[{current}/{total}] Writing {title}.md ...")

    properties, files = convert_page_properties(
        page
        ,database.exclude_properties
        ,database.property_order
        ,database.property_name_map
        ,database.property_value_additions
    )

    images = resolve_images(files, title, database.image_dir)
    downloaded = download_images(
        images
        ,database.image_dir
        ,session=session
        ,max_workers=database.download_workers
    )

    file_path = output_page(
        title
        ,properties
        ,downloaded
        ,database.output_dir
        ,database.image_dir
        ,database.custom_properties
    )
    logger.info("Wrote %s (%d image(s))", file_path, len(downloaded))

    return OutputResult(file_path=file_path, title=title, image_count=len(downloaded))


def export_pages(
    pages: Sequence[Dict]
    ,database: DatabaseConfig
    ,*
    ,session: Optional[requests.Session] = None
) -> ExportReport:
    """Export pages in order; a failing page is logged and skipped."""

    report = ExportReport()
    total = len(pages)
    for index, page in enumerate(pages, start=1):
        try:
            report.results.append(process_page(page, database, index, total, session=session))
        except Exception as exc:
            title = get_page_title(page)
            logger.error("Error while processing page '%s': %s", title, exc)
            logger.debug("Traceback for page '%s'", title, exc_info=True)
            report.failures.append((title, str(exc)))
    return report
