"""Second Brain - conversational access to a personal knowledge base.

Combines FastAPI for HTTP streaming, SQLAlchemy for knowledge storage,
Agno for content normalization, NiceGUI for visualization, and Pydantic
for data validation.

Components:
    - api: HTTP endpoints, chat relay and knowledge management
    - chat: context retrieval, prompt assembly and completion relay
    - client: event-stream decoder and chat client
    - knowledge: item store, file store and content ingestion
    - agent: LLM configuration and summarization
    - ui: Web interface for chat interactions
    - models: Request/response schemas
"""

__version__ = "0.1.0"
