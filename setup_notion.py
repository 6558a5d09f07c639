"""
Provision the Notion page that backs the portfolio.

    python setup_notion.py setup       # create missing collection databases
    python setup_notion.py add-order   # add and backfill the Order column
"""

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List

from notion_client import AsyncClient

from cms import NotionContentSource, database_title
from config import ConfigError, configure_logging, load_settings

logger = logging.getLogger(__name__)

TITLE = {"title": {}}
TEXT = {"rich_text": {}}
URL = {"url": {}}
NUMBER = {"number": {}}
FILES = {"files": {}}


def _select(*options):
    return {"select": {"options": [{"name": name, "color": color} for name, color in options]}}


# database title -> property schema
DATABASE_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "General": {
        "DisplayName": TITLE, "Byline": TEXT, "Website": URL, "About": TEXT, "ProfilePhoto": FILES,
    },
    "Work Experience": {
        "Title": TITLE, "Company": TEXT, "Year": TEXT, "Location": TEXT, "Description": TEXT, "Order": NUMBER,
    },
    "Projects": {
        "Title": TITLE, "Year": NUMBER, "Company": TEXT, "Description": TEXT, "URL": URL, "Attachments": FILES,
        "Status": _select(("Published", "green"), ("Draft", "yellow"), ("Archived", "gray")),
        "Order": NUMBER,
    },
    "Writing": {
        "Title": TITLE, "Year": NUMBER, "Description": TEXT, "URL": URL, "Attachments": FILES,
        "Platform": _select(("Medium", "green"), ("Blog", "blue"), ("Publication", "purple")),
        "Order": NUMBER,
    },
    "Speaking": {
        "Title": TITLE, "Year": NUMBER, "Description": TEXT, "Location": TEXT, "URL": URL, "Event": TEXT,
        "Attachments": FILES, "Order": NUMBER,
    },
    "Education": {
        "Title": TITLE, "Year": NUMBER, "Institution": TEXT, "Description": TEXT, "Location": TEXT,
        "Attachments": FILES, "Order": NUMBER,
    },
    "Contact": {
        "Platform": TITLE, "Handle": TEXT, "URL": URL, "Order": NUMBER,
    },
}

ORDERED_DATABASES = [name for name in DATABASE_SCHEMAS if name != "General"]


async def setup_databases(source: NotionContentSource) -> List[str]:
    """Create every database that does not exist yet; returns the created titles."""
    existing = {database_title(db) for db in await source.list_databases()}
    created = []
    for title, properties in DATABASE_SCHEMAS.items():
        if title.lower() in existing:
            logger.info("Database %s already exists", title)
            continue
        await source.client.databases.create(
            parent={"type": "page_id", "page_id": source.page_id},
            title=[{"type": "text", "text": {"content": title}}],
            properties=properties,
        )
        logger.info("Created database %s", title)
        created.append(title)
    return created


async def add_order_fields(source: NotionContentSource) -> List[str]:
    """Add an Order column where missing and number existing records 1..n."""
    updated = []
    for title in ORDERED_DATABASES:
        try:
            database = await source.find_database(title)
            if database is None:
                logger.info("Database %s not found, skipping", title)
                continue
            if "Order" in (database.get("properties") or {}):
                logger.info("Order field already exists in %s", title)
                continue

            await source.client.databases.update(database_id=database["id"], properties={"Order": NUMBER})
            pages = await source.query_database(database)
            for position, page in enumerate(pages, start=1):
                await source.client.pages.update(page_id=page["id"], properties={"Order": {"number": position}})
            logger.info("Added Order field to %s and numbered %d records", title, len(pages))
            updated.append(title)
        except Exception:
            logger.exception("Error updating %s database", title)
    return updated


async def run(command: str) -> None:
    settings = load_settings()
    async with AsyncClient(auth=settings.notion_token) as client:
        source = NotionContentSource(client, settings.notion_page_id)
        if command == "setup":
            await setup_databases(source)
        else:
            await add_order_fields(source)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Provision the portfolio's Notion databases")
    parser.add_argument("command", choices=["setup", "add-order"])
    args = parser.parse_args(argv)

    configure_logging()
    try:
        asyncio.run(run(args.command))
    except ConfigError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
