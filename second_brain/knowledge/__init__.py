"""Knowledge base storage and content ingestion.

Responsibilities:
    - Knowledge item records with processing status (SQLite via SQLAlchemy)
    - Local file storage for uploaded documents, audio and images
    - Best-effort ranked text search over completed items
    - Background normalization of new items into searchable text
"""

from second_brain.knowledge.config import KnowledgeConfig, get_knowledge_config
from second_brain.knowledge.files import FileStorage
from second_brain.knowledge.ingestion import ContentProcessor
from second_brain.knowledge.store import KnowledgeStore

__all__ = [
    "ContentProcessor",
    "FileStorage",
    "KnowledgeConfig",
    "KnowledgeStore",
    "get_knowledge_config",
]
