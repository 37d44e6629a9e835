#!/usr/bin/env python3
"""Load inventory items from a JSON file into the inventory store and the vector index."""

import asyncio
import json
import sys
from pathlib import Path

from langchain_core.vectorstores import VectorStore
from pydantic import TypeAdapter

from app.config import get_settings
from app.db.session import Database
from app.models.inventory import InventoryItem
from app.services.inventory import InventoryRepository, index_items
from app.services.llm import create_embeddings, create_qdrant_client, create_vector_store
from app.utils.logging import LogConfig, get_logger, setup_logging

logger = get_logger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "sample_inventory.json"

items_adapter = TypeAdapter(list[InventoryItem])


def load_items(path: Path) -> list[InventoryItem]:
    """Read and validate items from a JSON array."""
    return items_adapter.validate_python(json.loads(path.read_text()))


async def seed_stores(items: list[InventoryItem], repository: InventoryRepository, vector_store: VectorStore) -> None:
    """Store the items and embed them for semantic search."""
    await repository.add_items(items)
    await index_items(vector_store, items)


async def seed(path: Path) -> None:
    """Seed the configured inventory store and vector index from a JSON file."""
    settings = get_settings()
    items = load_items(path)
    logger.info(f"Loaded {len(items)} items from {path}")

    database = Database(settings.database_url)
    qdrant = create_qdrant_client(settings)
    try:
        await database.ping()
        await database.create_tables()
        vector_store = create_vector_store(qdrant, create_embeddings(settings), settings)
        await seed_stores(items, InventoryRepository(database), vector_store)
    finally:
        qdrant.close()
        await database.dispose()


def main():
    """Main entry point for the seeding script."""
    setup_logging(LogConfig(level=get_settings().log_level))
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_DATA_FILE
    asyncio.run(seed(path))


if __name__ == "__main__":
    main()
