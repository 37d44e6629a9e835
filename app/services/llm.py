"""Factories for the hosted model clients and the vector index."""

from langchain_anthropic import ChatAnthropic
from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings
from langchain_qdrant import QdrantVectorStore
from qdrant_client import QdrantClient
from qdrant_client.models import Distance, VectorParams

from app.config import Settings
from app.utils.logging import get_logger

logger = get_logger(__name__)


def create_chat_model(settings: Settings) -> ChatAnthropic:
    """Chat model for the agent.

    Client-side retries are disabled: rate limits are handled by the agent's
    own backoff so every attempt is visible in our logs.
    """
    if not settings.anthropic_api_key:
        raise ValueError("ANTHROPIC_API_KEY environment variable is required")

    logger.info(f"Initializing chat model {settings.llm_model}")
    return ChatAnthropic(
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=4096,
        max_retries=0,
        api_key=settings.anthropic_api_key,
    )


def create_embeddings(settings: Settings) -> OpenAIEmbeddings:
    """Embedding model used to index and query the inventory."""
    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY environment variable is required for embeddings")

    logger.info(f"Initializing embedding model {settings.embedding_model}")
    return OpenAIEmbeddings(model=settings.embedding_model, api_key=settings.openai_api_key)


def create_qdrant_client(settings: Settings) -> QdrantClient:
    """Connect to Qdrant and check it answers; raises if unreachable."""
    logger.info(f"Connecting to Qdrant at {settings.qdrant_url}")
    client = QdrantClient(url=settings.qdrant_url, timeout=5)
    client.get_collections()
    return client


def create_vector_store(client: QdrantClient, embeddings: Embeddings, settings: Settings) -> QdrantVectorStore:
    """Vector index over inventory items, creating the collection on first use."""
    if not client.collection_exists(settings.qdrant_collection):
        logger.info(f"Creating vector collection {settings.qdrant_collection}")
        client.create_collection(
            collection_name=settings.qdrant_collection,
            vectors_config=VectorParams(size=settings.embedding_dimension, distance=Distance.COSINE),
        )

    return QdrantVectorStore(
        client=client,
        collection_name=settings.qdrant_collection,
        embedding=embeddings,
    )
