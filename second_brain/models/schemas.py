from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Modality(str, Enum):
    """Content type of a knowledge item."""

    DOCUMENT = "document"
    AUDIO = "audio"
    WEB = "web"
    TEXT = "text"
    IMAGE = "image"


class ItemStatus(str, Enum):
    """Processing status of a knowledge item."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ConversationTurn(BaseModel):
    """A single turn of the caller-supplied conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    """Request payload for the chat endpoint.

    Attributes:
        messages: Full conversation, oldest first. Order is preserved.
    """

    messages: list[ConversationTurn] = Field(..., min_length=1)


class ErrorResponse(BaseModel):
    """Body returned when a chat call fails before streaming starts."""

    error: str
    code: str


class KnowledgeExcerpt(BaseModel):
    """Bounded slice of a completed item used as retrieval context.

    Attributes:
        source_id: Id of the knowledge item.
        title: Item title.
        modality: Item content type.
        captured_at: When the source was captured, if known.
        excerpt_text: Processed content cut to the excerpt budget.
    """

    model_config = ConfigDict(frozen=True)

    source_id: str
    title: str
    modality: Modality
    captured_at: datetime | None = None
    excerpt_text: str


class AssembledRequest(BaseModel):
    """Outbound request for the language model, built once per chat call."""

    model_config = ConfigDict(frozen=True)

    system_instruction: str
    turns: tuple[ConversationTurn, ...]
    stream: Literal[True] = True

    def to_messages(self) -> list[dict[str, str]]:
        """Messages in backend order, system instruction first."""
        return [{"role": "system", "content": self.system_instruction}] + [
            turn.model_dump() for turn in self.turns
        ]


class KnowledgeItem(BaseModel):
    """A stored knowledge item.

    Attributes:
        id: Unique item identifier.
        title: Display title.
        modality: Content type.
        original_content: Note text, URL or stored file key.
        processed_content: Normalized searchable text, set once completed.
        status: Processing status.
        metadata: Free-form details (file name, size, content type, url).
        source_timestamp: When the source was captured.
        created_at: When the item was stored.
    """

    id: str
    title: str
    modality: Modality
    original_content: str
    processed_content: str | None = None
    status: ItemStatus
    metadata: dict[str, str | int | None] = Field(default_factory=dict)
    source_timestamp: datetime | None = None
    created_at: datetime


class TextNoteRequest(BaseModel):
    """Free text note to store as a completed item."""

    title: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)

    @field_validator("title", "text", mode="before")
    @classmethod
    def strip_value(cls, v: str) -> str:
        """Strip whitespace before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class UrlRequest(BaseModel):
    """Web page to fetch and index."""

    url: str = Field(..., min_length=1)

    @field_validator("url", mode="before")
    @classmethod
    def strip_url(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("url")
    @classmethod
    def require_http(cls, v: str) -> str:
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v


class ProcessContentRequest(BaseModel):
    """Ingestion trigger for a previously stored item.

    The item is resolved by ``item_id`` when given, otherwise by file name,
    URL or title in that order.
    """

    item_id: str | None = None
    file_name: str | None = None
    url: str | None = None
    text: str | None = None
    title: str | None = None
    modality: Modality


class ProcessContentResponse(BaseModel):
    """Outcome of an ingestion trigger."""

    success: bool = False
    item_id: str | None = None
    message: str | None = None
