"""Knowledge base configuration.

Storage locations and the text budgets used by retrieval and ingestion.
Budgets are plain fields so they can be tuned against the backend's
context window without code changes.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class KnowledgeConfig(BaseModel):
    """Configuration for the knowledge store and content processing.

    Attributes:
        database_url: SQLAlchemy URL of the item store.
        files_dir: Directory holding uploaded files.
        retrieval_limit: Maximum excerpts injected into one chat request.
        excerpt_chars: Characters of processed content kept per excerpt.
        source_chars: Characters of raw source text sent to the model.
        document_fallback_chars: Raw document text kept when summarization fails.
        web_fallback_chars: Raw page text kept when summarization fails.
        max_upload_bytes: Upload size limit.
        fetch_timeout: Seconds allowed for fetching a web page or remote document.
    """

    database_url: str = Field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///data/knowledge.db"),
    )
    files_dir: str = Field(default_factory=lambda: os.getenv("FILES_DIR", "data/files"))
    retrieval_limit: int = Field(default=5, ge=1, le=50)
    excerpt_chars: int = Field(default=1000, ge=1)
    source_chars: int = Field(default=50000, ge=1)
    document_fallback_chars: int = Field(default=10000, ge=1)
    web_fallback_chars: int = Field(default=5000, ge=1)
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    fetch_timeout: float = Field(default=30.0, gt=0)


def get_knowledge_config() -> KnowledgeConfig:
    """Create knowledge configuration from environment."""
    return KnowledgeConfig()
