"""Unit tests for the completion relay."""

import httpx
import pytest

from second_brain.agent.config import LLMConfig
from second_brain.chat.prompt import assemble_request
from second_brain.chat.relay import CompletionRelay
from second_brain.errors import UpstreamError, UpstreamQuotaExceeded, UpstreamRateLimited
from second_brain.models.schemas import ConversationTurn
from tests.conftest import FakeBackend, sse_delta


class BrokenStream(httpx.AsyncByteStream):
    """Body that fails after its first chunk."""

    async def __aiter__(self):
        yield sse_delta("Par")
        raise httpx.ReadError("connection reset")


@pytest.fixture
def request_():
    return assemble_request([], [ConversationTurn(role="user", content="Hello")])


def relay_for(config: LLMConfig, handler) -> CompletionRelay:
    return CompletionRelay(config, transport=httpx.MockTransport(handler))


async def collect(stream) -> bytes:
    return b"".join([chunk async for chunk in stream.iter_bytes()])


class TestPayload:
    def test_build_payload(self, llm_config: LLMConfig, request_) -> None:
        payload = CompletionRelay(llm_config).build_payload(request_)

        assert payload["model"] == llm_config.model_name
        assert payload["stream"] is True
        assert payload["temperature"] == 0.7
        assert "max_tokens" not in payload
        assert payload["messages"][0]["role"] == "system"
        assert payload["messages"][1:] == [{"role": "user", "content": "Hello"}]

    def test_configured_max_tokens_is_sent(self, llm_config: LLMConfig, request_) -> None:
        config = llm_config.model_copy(update={"max_tokens": 2048})

        assert CompletionRelay(config).build_payload(request_)["max_tokens"] == 2048

    async def test_request_sent_to_completions_url(
        self, llm_config: LLMConfig, backend: FakeBackend, request_
    ) -> None:
        stream = await relay_for(llm_config, backend.handler).open_stream(request_)
        await stream.aclose()

        sent = backend.requests[0]
        assert str(sent.url) == "http://llm.test/v1/chat/completions"
        assert sent.headers["authorization"] == "Bearer sk-test-key"
        assert backend.last_payload()["messages"][0]["role"] == "system"


class TestStreaming:
    async def test_passes_body_through_unchanged(
        self, llm_config: LLMConfig, backend: FakeBackend, request_
    ) -> None:
        body = b": ping\n\n" + sse_delta("Hi") + b"\n" + sse_delta(" there") + b"data: [DONE]\n\n"
        backend.respond(200, body)

        stream = await relay_for(llm_config, backend.handler).open_stream(request_)

        assert stream.status_code == 200
        assert await collect(stream) == body

    async def test_aclose_is_idempotent(
        self, llm_config: LLMConfig, backend: FakeBackend, request_
    ) -> None:
        stream = await relay_for(llm_config, backend.handler).open_stream(request_)

        await stream.aclose()
        await stream.aclose()

    async def test_mid_stream_failure_propagates(self, llm_config: LLMConfig, request_) -> None:
        relay = relay_for(
            llm_config,
            lambda request: httpx.Response(200, stream=BrokenStream()),
        )
        stream = await relay.open_stream(request_)
        received: list[bytes] = []

        with pytest.raises(httpx.ReadError):
            async for chunk in stream.iter_bytes():
                received.append(chunk)

        assert received == [sse_delta("Par")]


class TestErrorMapping:
    async def test_429_is_rate_limited(
        self, llm_config: LLMConfig, backend: FakeBackend, request_
    ) -> None:
        backend.respond(429, '{"error": "slow down"}')

        with pytest.raises(UpstreamRateLimited) as exc_info:
            await relay_for(llm_config, backend.handler).open_stream(request_)

        assert exc_info.value.status_code == 429
        assert exc_info.value.code == "rate_limited"
        assert exc_info.value.message == "Rate limit exceeded. Please try again later."

    async def test_402_is_payment_required(
        self, llm_config: LLMConfig, backend: FakeBackend, request_
    ) -> None:
        backend.respond(402, '{"error": "no credits"}')

        with pytest.raises(UpstreamQuotaExceeded) as exc_info:
            await relay_for(llm_config, backend.handler).open_stream(request_)

        assert exc_info.value.status_code == 402
        assert exc_info.value.code == "payment_required"

    @pytest.mark.parametrize("status", [400, 401, 404, 500, 502, 503])
    async def test_other_statuses_are_upstream_errors(
        self, llm_config: LLMConfig, backend: FakeBackend, request_, status: int
    ) -> None:
        backend.respond(status, "nope")

        with pytest.raises(UpstreamError) as exc_info:
            await relay_for(llm_config, backend.handler).open_stream(request_)

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "AI service error"

    async def test_unreachable_backend(self, llm_config: LLMConfig, request_) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError) as exc_info:
            await relay_for(llm_config, refuse).open_stream(request_)

        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    async def test_error_body_is_logged(
        self,
        llm_config: LLMConfig,
        backend: FakeBackend,
        request_,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        backend.respond(500, "model overloaded")

        with pytest.raises(UpstreamError):
            await relay_for(llm_config, backend.handler).open_stream(request_)

        assert "model overloaded" in caplog.text
