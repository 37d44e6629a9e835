"""Process-wide dependencies, constructed once at startup and injected into the API."""

from contextlib import AsyncExitStack
from dataclasses import dataclass

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import MemorySaver
from langgraph.checkpoint.sqlite.aio import AsyncSqliteSaver

from app.config import Settings
from app.db.session import Database
from app.graphs.conversation import InventoryAgent
from app.services.conversation import ConversationService, load_tokenizer
from app.services.inventory import InventoryRepository, InventorySearchGateway
from app.services.llm import create_chat_model, create_embeddings, create_qdrant_client, create_vector_store
from app.tools import create_item_lookup_tool
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Everything the HTTP layer needs."""

    inventory: InventoryRepository
    conversations: ConversationService


async def create_checkpointer(settings: Settings, stack: AsyncExitStack) -> BaseCheckpointSaver:
    """Conversation state store: SQLite file when configured, memory otherwise."""
    if not settings.checkpoint_db_path:
        logger.warning("CHECKPOINT_DB_PATH is empty, conversations will not survive a restart")
        return MemorySaver()

    checkpointer = await stack.enter_async_context(AsyncSqliteSaver.from_conn_string(settings.checkpoint_db_path))
    await checkpointer.setup()
    return checkpointer


async def build_services(settings: Settings, stack: AsyncExitStack) -> ServiceContainer:
    """Connect to the backing stores and wire the agent.

    Resources are registered on ``stack`` and released when it closes.

    Raises:
        Exception: If the inventory store or the vector index cannot be reached
    """
    database = Database(settings.database_url)
    stack.push_async_callback(database.dispose)

    try:
        await database.ping()
        await database.create_tables()
        qdrant = create_qdrant_client(settings)
    except Exception as e:
        logger.error(f"Error connecting to backing stores: {e}", exc_info=True)
        raise
    stack.callback(qdrant.close)

    vector_store = create_vector_store(qdrant, create_embeddings(settings), settings)
    repository = InventoryRepository(database)
    gateway = InventorySearchGateway(repository, vector_store)

    agent = InventoryAgent(
        model=create_chat_model(settings),
        tools=[create_item_lookup_tool(gateway)],
        checkpointer=await create_checkpointer(settings, stack),
        max_retries=settings.max_retries,
        recursion_limit=settings.recursion_limit,
    )

    conversations = ConversationService(
        agent,
        max_message_tokens=settings.max_message_tokens,
        tokenizer=load_tokenizer(),
    )

    logger.info("Services initialized")
    return ServiceContainer(inventory=repository, conversations=conversations)
