import logging
import math
from typing import Any, Dict, List, Optional

from records import order_value, parse_general, parse_item
from schemas import ItemType, PortfolioGeneral, PortfolioItem

logger = logging.getLogger(__name__)


def database_title(database: Dict[str, Any]) -> str:
    title = database.get("title") or []
    if not title or not isinstance(title[0], dict):
        return ""
    return (title[0].get("plain_text") or "").lower()


class NotionContentSource:
    """Reads portfolio collections from the child databases of one Notion page.

    `client` is a notion_client.AsyncClient (or anything exposing the same
    blocks/databases endpoints).
    """

    def __init__(self, client, page_id: str):
        self.client = client
        self.page_id = page_id

    async def list_databases(self) -> List[Dict[str, Any]]:
        databases = []
        cursor: Optional[str] = None
        while True:
            kwargs = {"block_id": self.page_id}
            if cursor:
                kwargs["start_cursor"] = cursor
            response = await self.client.blocks.children.list(**kwargs)
            for block in response.get("results", []):
                if block.get("type") != "child_database":
                    continue
                try:
                    databases.append(await self.client.databases.retrieve(database_id=block["id"]))
                except Exception:
                    logger.exception("Error retrieving database %s", block["id"])
            if not response.get("has_more"):
                return databases
            cursor = response.get("next_cursor")

    async def find_database(self, title: str) -> Optional[Dict[str, Any]]:
        for database in await self.list_databases():
            if database_title(database) == title.lower():
                return database
        return None

    async def query_database(self, database: Dict[str, Any]) -> List[Dict[str, Any]]:
        """All pages of a database, ascending by Order when the schema has it."""
        sortable = "Order" in (database.get("properties") or {})
        pages = []
        cursor: Optional[str] = None
        while True:
            kwargs: Dict[str, Any] = {"database_id": database["id"]}
            if sortable:
                kwargs["sorts"] = [{"property": "Order", "direction": "ascending"}]
            if cursor:
                kwargs["start_cursor"] = cursor
            response = await self.client.databases.query(**kwargs)
            pages.extend(response.get("results", []))
            if not response.get("has_more"):
                break
            cursor = response.get("next_cursor")

        if sortable:
            # stable, records without an Order keep source order after the rest
            pages.sort(key=lambda p: math.inf if order_value(p) is None else order_value(p))
        return pages

    async def fetch_collection(self, title: str, item_type: ItemType) -> List[PortfolioItem]:
        try:
            database = await self.find_database(title)
            if database is None:
                logger.info("No %s database found", title)
                return []
            return [parse_item(page, item_type) for page in await self.query_database(database)]
        except Exception:
            logger.exception("Error fetching %s", title)
            return []

    async def fetch_general(self) -> Optional[PortfolioGeneral]:
        try:
            database = await self.find_database("General")
            if database is None:
                return None
            pages = await self.query_database(database)
            return parse_general(pages[0]) if pages else None
        except Exception:
            logger.exception("Error fetching general info")
            return None
