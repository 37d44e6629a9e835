"""API endpoints for the inventory chat service."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from app import __version__
from app.errors import AgentError
from app.models.conversation import ChatRequest, ChatResponse, ChatStartResponse, HealthResponse
from app.models.inventory import InventoryItem
from app.services.container import ServiceContainer
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

INTERNAL_ERROR = "Internal server error"


def get_services(request: Request) -> ServiceContainer:
    """Dependencies constructed at startup and attached to the application."""
    return request.app.state.services


Services = Annotated[ServiceContainer, Depends(get_services)]


@router.get("/", response_class=PlainTextResponse, tags=["Health"])
async def root() -> str:
    """Liveness text."""
    return "Inventory Agent Server"


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )


@router.get("/products", response_model=list[InventoryItem], tags=["Products"])
async def list_products(services: Services) -> list[InventoryItem]:
    """Return every inventory item as stored."""
    try:
        return await services.inventory.list_items()
    except Exception as e:
        logger.error(f"Error fetching products: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch products") from e


@router.get("/products/{item_id}", response_model=InventoryItem, tags=["Products"])
async def get_product(item_id: str, services: Services) -> InventoryItem:
    """Return a single inventory item."""
    try:
        product = await services.inventory.get_item(item_id)
    except Exception as e:
        logger.error(f"Error fetching product {item_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch product") from e

    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("/chat", response_model=ChatStartResponse, tags=["Conversation"])
async def start_chat(request: ChatRequest, services: Services) -> ChatStartResponse:
    """Start a new conversation and return its thread id with the first answer."""
    logger.info(f"New conversation: {request.message[:50]}...")
    try:
        thread_id, response = await services.conversations.start_conversation(request.message)
    except ValueError as e:
        logger.warning(f"Message validation error: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e
    except AgentError as e:
        logger.error(f"Error starting conversation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR) from e

    return ChatStartResponse(thread_id=thread_id, response=response)


@router.post("/chat/{thread_id}", response_model=ChatResponse, tags=["Conversation"])
async def continue_chat(thread_id: str, request: ChatRequest, services: Services) -> ChatResponse:
    """Send a message on an existing conversation.

    Any caller that knows a thread id can continue that conversation; there is
    no ownership check.
    """
    try:
        response = await services.conversations.continue_conversation(thread_id, request.message)
    except ValueError as e:
        logger.warning(f"Message validation error for thread {thread_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e
    except AgentError as e:
        logger.error(f"Error in chat for thread {thread_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR) from e

    return ChatResponse(response=response)
