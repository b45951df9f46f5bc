"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - knowledge_config: Config pointing at a temporary database and file dir
    - knowledge_store: Fresh SQLite knowledge store
    - file_storage: Temporary file storage
    - llm_config: Backend config with a fake key and host
    - backend: Scriptable stand-in for the language model API
    - summarizer: Recording stand-in for the Agno summarizer
    - app / async_client: The real FastAPI app wired to the fakes above
"""

import json
from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from second_brain.agent.config import LLMConfig
from second_brain.api import dependencies
from second_brain.api.app import create_app
from second_brain.chat.relay import CompletionRelay
from second_brain.knowledge.config import KnowledgeConfig
from second_brain.knowledge.files import FileStorage
from second_brain.knowledge.ingestion import ContentProcessor
from second_brain.knowledge.store import KnowledgeStore


def sse_delta(content: str) -> bytes:
    """One ``data:`` frame carrying a content delta."""
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n".encode()


class FakeBackend:
    """OpenAI-compatible backend answering from a scripted response."""

    def __init__(self) -> None:
        self.status_code = 200
        self.body: bytes = sse_delta("Hi") + sse_delta(" there") + b"data: [DONE]\n"
        self.requests: list[httpx.Request] = []

    def respond(self, status_code: int, body: bytes | str) -> None:
        self.status_code = status_code
        self.body = body.encode() if isinstance(body, str) else body

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        headers = {"content-type": "text/event-stream" if self.status_code == 200 else "application/json"}
        return httpx.Response(self.status_code, content=self.body, headers=headers)

    def last_payload(self) -> dict:
        return json.loads(self.requests[-1].content)


def page_handler(request: httpx.Request) -> httpx.Response:
    """Serves a fixed HTML page for any URL fetched during ingestion."""
    html = "<html><head><title>Test Page</title></head><body><p>Tomatoes grow in May.</p></body></html>"
    return httpx.Response(200, text=html, headers={"content-type": "text/html"})


class FakeSummarizer:
    """Records calls and returns canned answers."""

    def __init__(self, answer: str = "Summary of the content", fail: bool = False) -> None:
        self.answer = answer
        self.fail = fail
        self.calls: list[dict] = []

    async def summarize(self, instructions: str, content: str) -> str:
        self.calls.append({"instructions": instructions, "content": content})
        if self.fail:
            raise RuntimeError("model unavailable")
        return self.answer

    async def describe_image(
        self, prompt: str, content: bytes | None = None, url: str | None = None
    ) -> str:
        self.calls.append({"prompt": prompt, "content": content, "url": url})
        if self.fail:
            raise RuntimeError("model unavailable")
        return self.answer


@pytest.fixture
def knowledge_config(tmp_path: Path) -> KnowledgeConfig:
    return KnowledgeConfig(
        database_url=f"sqlite:///{tmp_path / 'knowledge.db'}",
        files_dir=str(tmp_path / "files"),
    )


@pytest.fixture
def knowledge_store(knowledge_config: KnowledgeConfig) -> KnowledgeStore:
    return KnowledgeStore(knowledge_config.database_url)


@pytest.fixture
def file_storage(knowledge_config: KnowledgeConfig) -> FileStorage:
    return FileStorage(knowledge_config.files_dir)


@pytest.fixture
def llm_config() -> LLMConfig:
    return LLMConfig(api_key="sk-test-key", base_url="http://llm.test/v1", max_tokens=None)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def app(
    knowledge_config: KnowledgeConfig,
    knowledge_store: KnowledgeStore,
    file_storage: FileStorage,
    llm_config: LLMConfig,
    backend: FakeBackend,
    summarizer: FakeSummarizer,
):
    """FastAPI app with stores and backends replaced by test doubles."""
    application = create_app()
    overrides = application.dependency_overrides
    overrides[dependencies.get_knowledge_config] = lambda: knowledge_config
    overrides[dependencies.get_knowledge_store] = lambda: knowledge_store
    overrides[dependencies.get_file_storage] = lambda: file_storage
    overrides[dependencies.get_completion_relay] = lambda: CompletionRelay(
        llm_config, transport=httpx.MockTransport(backend.handler)
    )
    overrides[dependencies.get_content_processor] = lambda: ContentProcessor(
        knowledge_store,
        file_storage,
        knowledge_config,
        summarizer,
        transport=httpx.MockTransport(page_handler),
    )
    return application


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
