"""Streaming relay to the OpenAI-compatible completion backend.

The backend's event stream is passed through byte for byte; frames are
only interpreted by the client-side decoder. Failures that happen before
the stream starts are mapped onto ChatError subclasses. Nothing is
retried here and no state is kept between calls.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from second_brain.agent.config import LLMConfig
from second_brain.errors import UpstreamError, UpstreamQuotaExceeded, UpstreamRateLimited
from second_brain.models.schemas import AssembledRequest

logger = logging.getLogger(__name__)

EVENT_STREAM_MEDIA_TYPE = "text/event-stream"


class RelayStream:
    """An open backend response whose body is being relayed.

    Closing releases both the response and its client; it is safe to
    close more than once.
    """

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient) -> None:
        self._response = response
        self._client = client
        self._closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield body chunks as they arrive, then release the stream."""
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            logger.error(f"Backend stream interrupted: {e}")
            raise
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()
        await self._client.aclose()


class CompletionRelay:
    """Sends assembled requests to the backend and opens its stream."""

    def __init__(
        self,
        config: LLMConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the relay.

        Args:
            config: Backend location, credentials and model settings.
            transport: Optional httpx transport (tests plug a mock backend here).
        """
        self._config = config
        self._transport = transport

    def build_payload(self, request: AssembledRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self._config.model_name,
            "messages": request.to_messages(),
            "temperature": self._config.temperature,
            "stream": request.stream,
        }
        if self._config.max_tokens is not None:
            payload["max_tokens"] = self._config.max_tokens
        return payload

    async def open_stream(self, request: AssembledRequest) -> RelayStream:
        """Start a streamed completion.

        Returns:
            The open stream; the caller must iterate or close it.

        Raises:
            UpstreamRateLimited: Backend answered 429.
            UpstreamQuotaExceeded: Backend answered 402.
            UpstreamError: Any other non-success status, or the backend
                could not be reached.
        """
        client = httpx.AsyncClient(timeout=self._config.timeout, transport=self._transport)
        try:
            backend_request = client.build_request(
                "POST",
                self._config.completions_url,
                json=self.build_payload(request),
                headers={
                    "Authorization": f"Bearer {self._config.api_key}",
                    "Accept": EVENT_STREAM_MEDIA_TYPE,
                },
            )
            response = await client.send(backend_request, stream=True)
        except httpx.HTTPError as e:
            await client.aclose()
            logger.error(f"AI gateway unreachable: {e}")
            raise UpstreamError("AI service error") from e

        if response.is_success:
            return RelayStream(response, client)

        try:
            body = (await response.aread()).decode("utf-8", errors="replace")
        except httpx.HTTPError:
            body = ""
        finally:
            await response.aclose()
            await client.aclose()

        logger.error(f"AI gateway error: {response.status_code} {body[:500]}")
        if response.status_code == 429:
            raise UpstreamRateLimited("Rate limit exceeded. Please try again later.")
        if response.status_code == 402:
            raise UpstreamQuotaExceeded("Payment required. Please add credits to continue.")
        raise UpstreamError("AI service error")
