"""
Utility package for exporting Notion database pages into an Obsidian vault.

Each selected page becomes one markdown file whose YAML front matter holds the
page's properties. Images attached through files properties are downloaded
next to the vault and embedded with relative links. Per-database rules
(excluded, renamed and reordered properties) live in config.json.
"""
__all__ = [
    "config",
    "notion_client",
    "converter",
    "images",
    "downloader",
    "writer",
    "exporter",
    "search",
    "prompt",
    "cli",
    "config_server",
]
