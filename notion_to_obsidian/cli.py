from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import requests

from .config import CONFIG_PATH, ENV_PATH, ConfigurationError, get_database_by_name, load_api_key, load_config
from .exporter import export_pages
from .notion_client import NotionClient
from .prompt import InputFunc, confirm_pages, get_search_condition_interactive, select_database
from .search import SearchCondition, SearchError, get_page_summaries, get_pages


LOG_PATH = Path("notion2obsidian.log")
LOGGER_NAME = "notion_to_obsidian"


def build_arg_parser() -> argparse.ArgumentParser:
    """Construct the command-line parser for the exporter CLI."""

    parser = argparse.ArgumentParser(
        prog="notion2obsidian"
        ,description="Export pages of a Notion database as Obsidian markdown files."
    )
    parser.add_argument("--db", help="Name of the configured database to export.")
    parser.add_argument("--title", help="Export the page whose title matches exactly.")
    parser.add_argument("--contains", help="Export pages whose title contains this keyword.")
    parser.add_argument("--all", action="store_true", help="Export every page of the database.")
    parser.add_argument("--verbose", action="store_true", help="Show debug output and list written files.")
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help="Path to config.json.")
    parser.add_argument("--env", type=Path, default=ENV_PATH, help="Path to the .env file with NOTION_API_KEY.")
    return parser


def has_search_options(args: argparse.Namespace) -> bool:
    return bool(args.title or args.contains or args.all)


def search_condition_from_args(args: argparse.Namespace) -> Optional[SearchCondition]:
    """Map --title/--contains/--all to a search condition; None means ask interactively."""

    if args.title:
        return SearchCondition(mode="title", keyword=args.title)
    if args.contains:
        return SearchCondition(mode="contains", keyword=args.contains)
    if args.all:
        return SearchCondition(mode="all")
    return None


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Log to notion2obsidian.log and echo warnings (or everything with --verbose) to the console."""

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(LOG_PATH, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.addHandler(console_handler)

    logger.propagate = False
    return logger


def run_cli(
    argv: Optional[List[str]] = None
    ,*
    ,client: Optional[NotionClient] = None
    ,input_func: InputFunc = input
) -> int:
    """Entry point invoked by export_notion_to_obsidian.py or tests; returns the exit code."""

    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logger = configure_logging(args.verbose)
    print("[info] Starting notion2obsidian...")

    try:
        logger.debug("Reading %s", args.config)
        config = load_config(args.config)
        logger.debug("Loaded %d database setting(s)", len(config.databases))

        api_key = load_api_key(args.env)
        logger.debug("Notion API key found")
        client = client or NotionClient(api_key)

        if args.db:
            database = get_database_by_name(config, args.db)
            if database is None:
                raise ConfigurationError(
                    f"Database '{args.db}' not found. Available: {', '.join(config.database_names)}"
                )
        else:
            database = select_database(config.databases, input_func)
            if database is None:
                print("Cancelled.")
                return 0

        logger.debug("Database: %s (%s)", database.name, database.database_id)
        logger.debug("outputDir: %s", database.output_dir)
        logger.debug("imageDir: %s", database.image_dir)

        interactive = not has_search_options(args)
        condition = search_condition_from_args(args) if not interactive else get_search_condition_interactive(input_func)
        if condition is None:
            print("Cancelled.")
            return 0

        logger.debug("Search mode: %s", condition.mode)
        if condition.keyword:
            logger.debug("Keyword: %s", condition.keyword)

        pages = get_pages(client, database.database_id, condition)
    except (ConfigurationError, SearchError, requests.RequestException) as exc:
        logger.error("%s", exc)
        return 1

    if not pages:
        print("[info] No matching pages found.")
        return 0

    summaries = get_page_summaries(pages)
    if interactive:
        if not confirm_pages(summaries, input_func):
            print("Cancelled.")
            return 0
    else:
        print(f"[info] Found {len(summaries)} page(s)")

    print()
    with requests.Session() as session:
        report = export_pages(pages, database, session=session)

    print(f"\nDone: {report.files_written} file(s) written")
    logger.info("Export finished: %d written, %d failed", report.files_written, len(report.failures))

    if args.verbose and report.results:
        print("\nWritten files:")
        for result in report.results:
            image_info = f" ({result.image_count} image(s))" if result.image_count else ""
            print(f"  - {result.file_path}{image_info}")

    return 0


def main() -> None:
    sys.exit(run_cli(sys.argv[1:]))
