"""Pydantic models for API requests, responses and the chat pipeline.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - ConversationTurn: Individual message in conversation
    - ChatRequest: Incoming chat request payload
    - KnowledgeExcerpt: Retrieved context for one knowledge item
    - AssembledRequest: Outbound request for the language model
    - KnowledgeItem: Stored knowledge record
"""

from second_brain.models.schemas import (
    AssembledRequest,
    ChatRequest,
    ConversationTurn,
    ErrorResponse,
    ItemStatus,
    KnowledgeExcerpt,
    KnowledgeItem,
    Modality,
    ProcessContentRequest,
    ProcessContentResponse,
    TextNoteRequest,
    UrlRequest,
)

__all__ = [
    "AssembledRequest",
    "ChatRequest",
    "ConversationTurn",
    "ErrorResponse",
    "ItemStatus",
    "KnowledgeExcerpt",
    "KnowledgeItem",
    "Modality",
    "ProcessContentRequest",
    "ProcessContentResponse",
    "TextNoteRequest",
    "UrlRequest",
]
