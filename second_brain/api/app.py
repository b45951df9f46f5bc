"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
error handlers and router registration.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from second_brain.api.chat import router as chat_router
from second_brain.api.knowledge import router as knowledge_router
from second_brain.errors import ChatError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    # Startup
    logger.info("Starting Second Brain API...")
    yield
    # Shutdown
    logger.info("Shutting down Second Brain API...")


async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    """Render chat failures as ``{"error", "code"}`` with the mapped status."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Second Brain API",
        description=(
            "Conversational access to a personal knowledge base. Stores documents, "
            "audio, web pages, notes and images as searchable text and answers "
            "questions with retrieval-augmented, streamed responses."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    application.add_exception_handler(ChatError, chat_error_handler)
    application.include_router(chat_router)
    application.include_router(knowledge_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "second-brain"}

    return application


app = create_app()
