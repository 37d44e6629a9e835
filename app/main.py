"""Main FastAPI application."""

from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import __version__
from app.api.endpoints import router
from app.config import get_settings
from app.services.container import ServiceContainer, build_services
from app.utils.logging import LogConfig, get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build services at startup unless they were injected; release them at shutdown.

    A failure here aborts startup, so the server process exits with an error.
    """
    if getattr(app.state, "services", None) is not None:
        yield
        return

    settings = get_settings()
    setup_logging(LogConfig(level=settings.log_level))
    async with AsyncExitStack() as stack:
        app.state.services = await build_services(settings, stack)
        yield
        app.state.services = None


def create_app(services: ServiceContainer | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        services: Prebuilt dependencies; built from the environment at startup when omitted

    Returns:
        Configured application
    """
    app = FastAPI(
        title="Inventory Chat Agent",
        description=(
            "A conversational shopping assistant for a furniture store, backed by "
            "semantic inventory search."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "Conversation",
                "description": "Chat with the shopping assistant. Conversations are keyed by thread id.",
            },
            {
                "name": "Products",
                "description": "Read-only access to the furniture inventory.",
            },
            {
                "name": "Health",
                "description": "Service health monitoring and status checks.",
            },
        ],
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())
