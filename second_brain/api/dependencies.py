"""FastAPI dependencies wiring the stores and services into routes.

Stores are process-wide singletons; the relay and retriever are cheap and
built per request so each chat call stays independent.
"""

import logging

from fastapi import Depends

from second_brain.agent.config import get_llm_config
from second_brain.agent.summarizer import ContentSummarizer, get_content_summarizer
from second_brain.chat.relay import CompletionRelay
from second_brain.chat.retriever import ContextRetriever
from second_brain.errors import UpstreamError
from second_brain.knowledge.config import KnowledgeConfig, get_knowledge_config
from second_brain.knowledge.files import FileStorage
from second_brain.knowledge.ingestion import ContentProcessor
from second_brain.knowledge.store import KnowledgeStore

logger = logging.getLogger(__name__)

_knowledge_store: KnowledgeStore | None = None
_file_storage: FileStorage | None = None


def get_knowledge_store() -> KnowledgeStore:
    """Get or create the global knowledge store."""
    global _knowledge_store
    if _knowledge_store is None:
        _knowledge_store = KnowledgeStore(get_knowledge_config().database_url)
    return _knowledge_store


def get_file_storage() -> FileStorage:
    """Get or create the global file storage."""
    global _file_storage
    if _file_storage is None:
        _file_storage = FileStorage(get_knowledge_config().files_dir)
    return _file_storage


def get_context_retriever(
    store: KnowledgeStore = Depends(get_knowledge_store),
    config: KnowledgeConfig = Depends(get_knowledge_config),
) -> ContextRetriever:
    return ContextRetriever(
        store, limit=config.retrieval_limit, excerpt_chars=config.excerpt_chars
    )


def get_completion_relay() -> CompletionRelay:
    """Build the relay from environment configuration.

    Raises:
        UpstreamError: If the backend API key is not configured.
    """
    try:
        config = get_llm_config()
    except ValueError as e:
        logger.error(f"Invalid LLM configuration: {e}")
        raise UpstreamError("LLM_API_KEY is not configured") from e
    return CompletionRelay(config)


def _summarizer_or_none() -> ContentSummarizer | None:
    try:
        return get_content_summarizer()
    except ValueError as e:
        logger.warning(f"LLM not configured, ingestion keeps raw text: {e}")
        return None


def get_content_processor(
    store: KnowledgeStore = Depends(get_knowledge_store),
    files: FileStorage = Depends(get_file_storage),
    config: KnowledgeConfig = Depends(get_knowledge_config),
) -> ContentProcessor:
    return ContentProcessor(store, files, config, _summarizer_or_none())
