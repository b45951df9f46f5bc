"""HTTP client for the chat endpoint.

Keeps the conversation as an ordered list of message buffers and streams
each answer into a new assistant buffer through the StreamDecoder.
"""

import logging
import uuid
from collections.abc import Callable
from typing import Literal

import httpx
from pydantic import BaseModel, Field

from second_brain.client.decoder import decode_stream

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Sorry, I encountered an error. Please try again."


class ChatRequestError(Exception):
    """The chat endpoint rejected the call before streaming started.

    Attributes:
        status_code: HTTP status of the response.
        code: Error code from the response body (e.g. ``rate_limited``).
        message: Explanation from the response body.
    """

    def __init__(self, status_code: int, code: str, message: str) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(f"{status_code} {code}: {message}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ChatRequestError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            status_code=response.status_code,
            code=str(body.get("code", "upstream_error")),
            message=str(body.get("error") or body.get("detail") or response.reason_phrase),
        )


class MessageBuffer(BaseModel):
    """One message of the conversation; assistant buffers grow while streaming."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: Literal["user", "assistant", "system"]
    content: str = ""


class Conversation:
    """Ordered message buffers of one chat session."""

    def __init__(self) -> None:
        self.messages: list[MessageBuffer] = []

    def add(self, role: Literal["user", "assistant", "system"], content: str = "") -> MessageBuffer:
        buffer = MessageBuffer(role=role, content=content)
        self.messages.append(buffer)
        return buffer

    def get(self, buffer_id: str) -> MessageBuffer | None:
        return next((m for m in self.messages if m.id == buffer_id), None)

    def update(self, buffer_id: str, content: str) -> None:
        if buffer := self.get(buffer_id):
            buffer.content = content

    def remove(self, buffer_id: str) -> None:
        self.messages = [m for m in self.messages if m.id != buffer_id]

    def clear(self) -> None:
        self.messages.clear()

    def history(self) -> list[dict[str, str]]:
        """Messages in the shape the chat endpoint expects."""
        return [{"role": m.role, "content": m.content} for m in self.messages]


class ChatClient:
    """Streams answers from the chat endpoint into a Conversation."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def send(
        self,
        conversation: Conversation,
        content: str,
        on_update: Callable[[str, str], None] | None = None,
    ) -> MessageBuffer:
        """Add a user message and stream the assistant's answer.

        Args:
            conversation: Conversation to extend; the full history is sent.
            content: The user's message.
            on_update: Called with ``(buffer_id, full_text)`` as the answer grows.

        Returns:
            The final assistant buffer. If the connection fails, the partial
            answer is dropped and a buffer holding FALLBACK_MESSAGE is returned.

        Raises:
            ChatRequestError: The endpoint answered with an error status.
                No assistant buffer is added in that case.
        """
        conversation.add("user", content)
        payload = {"messages": conversation.history()}

        def sink(buffer_id: str, text: str) -> None:
            conversation.update(buffer_id, text)
            if on_update:
                on_update(buffer_id, text)

        assistant_id: str | None = None
        async with httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        ) as client:
            try:
                async with client.stream(
                    "POST",
                    "/chat",
                    json=payload,
                    headers={"Accept": "text/event-stream"},
                ) as response:
                    if not response.is_success:
                        await response.aread()
                        raise ChatRequestError.from_response(response)

                    assistant = conversation.add("assistant")
                    assistant_id = assistant.id
                    await decode_stream(response.aiter_bytes(), assistant.id, sink)
                    return assistant
            except httpx.HTTPError as e:
                logger.error(f"Chat error: {e}")
                if assistant_id:
                    conversation.remove(assistant_id)
                fallback = conversation.add("assistant", FALLBACK_MESSAGE)
                if on_update:
                    on_update(fallback.id, fallback.content)
                return fallback
