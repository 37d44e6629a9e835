"""Inventory store access and the search gateway used by the agent."""

import uuid
from collections.abc import Sequence
from typing import Any

from langchain_core.documents import Document
from langchain_core.vectorstores import VectorStore
from sqlalchemy import exists, func, or_, select

from app.db.session import Database
from app.db.tables import Item
from app.models.inventory import InventoryItem
from app.models.search import InventorySearchError, InventorySearchOutcome, InventorySearchResult
from app.utils.logging import get_logger

logger = get_logger(__name__)

LIKE_ESCAPE = "\\"


def _like_pattern(query: str) -> str:
    """Build a LIKE pattern matching the query as a literal substring."""
    escaped = (
        query.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", f"{LIKE_ESCAPE}%").replace("_", f"{LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


class InventoryRepository:
    """Read access to the items table, plus bulk loading for seeding."""

    def __init__(self, database: Database):
        self.database = database

    async def count(self) -> int:
        """Total number of items in the store."""
        async with self.database.session() as session:
            result = await session.execute(select(func.count()).select_from(Item))
            return result.scalar_one()

    async def list_items(self) -> list[InventoryItem]:
        """All items, in insertion order."""
        async with self.database.session() as session:
            result = await session.execute(select(Item).order_by(Item.created_at, Item.item_id))
            return [InventoryItem.model_validate(row) for row in result.scalars().all()]

    async def get_item(self, item_id: str) -> InventoryItem | None:
        """Look up a single item by its identifier."""
        async with self.database.session() as session:
            row = await session.get(Item, item_id)
            return InventoryItem.model_validate(row) if row else None

    async def text_search(self, query: str, limit: int) -> list[InventoryItem]:
        """Case-insensitive substring match over name, description, embedding text and each category."""
        pattern = _like_pattern(query)
        # Match category values one by one, not the serialized JSON list
        category = func.json_each(Item.categories).table_valued("value")
        category_match = exists(
            select(1).select_from(category).where(category.c.value.ilike(pattern, escape=LIKE_ESCAPE))
        )
        stmt = (
            select(Item)
            .where(
                or_(
                    Item.item_name.ilike(pattern, escape=LIKE_ESCAPE),
                    Item.item_description.ilike(pattern, escape=LIKE_ESCAPE),
                    category_match,
                    Item.embedding_text.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
            .order_by(Item.created_at, Item.item_id)
            .limit(limit)
        )
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [InventoryItem.model_validate(row) for row in result.scalars().all()]

    async def add_items(self, items: Sequence[InventoryItem]) -> None:
        """Insert or replace items."""
        async with self.database.session() as session:
            for item in items:
                data = item.model_dump()
                data["embedding_text"] = item.build_embedding_text()
                await session.merge(Item(**data))
        logger.info(f"Stored {len(items)} items in the inventory store")


def vector_id(item_id: str) -> str:
    """Stable UUID for an item in the vector index (Qdrant only accepts UUIDs or integers)."""
    return str(uuid.uuid5(uuid.NAMESPACE_OID, item_id))


def item_to_document(item: InventoryItem) -> Document:
    """Vector index document for an item: embedding text as content, the item as metadata."""
    metadata = item.model_dump(mode="json", exclude={"embedding_text"})
    return Document(page_content=item.build_embedding_text(), metadata=metadata, id=vector_id(item.item_id))


async def index_items(vector_store: VectorStore, items: Sequence[InventoryItem]) -> list[str]:
    """Embed items into the vector index, keyed by item id."""
    documents = [item_to_document(item) for item in items]
    ids = await vector_store.aadd_documents(documents, ids=[vector_id(item.item_id) for item in items])
    logger.info(f"Indexed {len(ids)} items for semantic search")
    return ids


class InventorySearchGateway:
    """Answers free-text inventory questions, preferring semantic similarity.

    The gateway never raises: failures are returned as ``InventorySearchError`` so
    the model always receives something it can talk about.
    """

    def __init__(self, repository: InventoryRepository, vector_store: VectorStore):
        self.repository = repository
        self.vector_store = vector_store

    async def search(self, query: str, n: int = 10) -> InventorySearchOutcome:
        """Search the inventory.

        Args:
            query: Free-text description of what the customer wants
            n: Maximum number of items to return

        Returns:
            Tagged results (``vector`` or ``text``) or an error payload
        """
        logger.info(f"Item lookup called with query: {query!r} (n={n})")

        if n < 1:
            return InventorySearchError(
                error="Invalid result count",
                message=f"n must be a positive integer, got {n}",
                query=query,
            )

        try:
            total = await self.repository.count()
            logger.debug(f"Total items in inventory: {total}")

            if total == 0:
                logger.warning("Inventory is empty, skipping search")
                return InventorySearchError(
                    error="No items found in inventory",
                    message="The inventory database appears to be empty",
                    query=query,
                )

            hits = await self.vector_store.asimilarity_search_with_score(query, k=n)
            logger.debug(f"Vector search returned {len(hits)} results")

            if hits:
                results = [self._hit_to_result(document, score) for document, score in hits[:n]]
                return InventorySearchResult(results=results, search_type="vector", query=query, count=len(results))

            logger.info("Vector search returned no results, trying text search")
            items = await self.repository.text_search(query, limit=n)
            logger.debug(f"Text search returned {len(items)} results")

            results = [item.model_dump(mode="json") for item in items]
            return InventorySearchResult(results=results, search_type="text", query=query, count=len(results))

        except Exception as e:
            logger.error(f"Error in item lookup for query {query!r}: {e}", exc_info=True)
            return InventorySearchError(error="Failed to search inventory", message=str(e), query=query)

    @staticmethod
    def _hit_to_result(document: Document, score: float) -> dict[str, Any]:
        return {**document.metadata, "embedding_text": document.page_content, "score": float(score)}
