"""Main application entry point.

Serves the API and the NiceGUI interface from one uvicorn server.
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from nicegui import ui
from sqlalchemy.exc import SQLAlchemyError

from second_brain.agent.config import get_llm_config
from second_brain.api.app import create_app
from second_brain.api.dependencies import get_file_storage, get_knowledge_store
from second_brain.knowledge.config import get_knowledge_config

load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def prepare_storage() -> None:
    """Create the upload directory and open the knowledge database.

    A database that cannot be opened is reported but does not stop the
    server: chat keeps answering without knowledge context and the store
    retries on its next use.
    """
    config = get_knowledge_config()
    logger.info(f"Uploaded files stored in {config.files_dir}")
    get_file_storage()

    try:
        get_knowledge_store().open()
    except (OSError, SQLAlchemyError) as e:
        logger.warning(f"Knowledge database {config.database_url} unavailable: {e}")


def check_llm_config() -> None:
    """Log the model in use, or warn that chat and summaries are disabled."""
    try:
        config = get_llm_config()
    except ValueError as e:
        logger.warning(f"Chat will answer with an error until a key is set: {e}")
        return
    logger.info(f"Using model {config.model_name} at {config.base_url}")


def build_app() -> FastAPI:
    """Create the API app with the chat interface mounted at ``/``."""
    from second_brain.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()
    ui.run_with(
        app,
        title="Second Brain",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "second-brain-secret"),
    )
    return app


def main() -> None:
    """Application entry point."""
    configure_logging()
    prepare_storage()
    check_llm_config()

    app = build_app()

    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Starting Second Brain on http://localhost:{port}")
    logger.info(f"API docs available at http://localhost:{port}/docs")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
