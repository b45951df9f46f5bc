"""Content ingestion: turns stored items into searchable text.

Each modality is normalized into ``processed_content``:
    - text: stored as written
    - document: source text summarized by the model
    - web: page fetched, stripped to text and summarized; page title kept
    - image: described by a vision-capable model
    - audio: placeholder until a transcription service is wired in

Summarization failures are not fatal: the raw text, cut to the configured
fallback budget, is stored instead. Failing to read the source at all
marks the item ``failed``.
"""

import logging
import re
from typing import Protocol

import httpx

from second_brain.errors import ContentProcessingError
from second_brain.knowledge.config import KnowledgeConfig
from second_brain.knowledge.files import FileStorage
from second_brain.knowledge.store import KnowledgeStore
from second_brain.models.schemas import (
    KnowledgeItem,
    Modality,
    ProcessContentRequest,
    ProcessContentResponse,
)

logger = logging.getLogger(__name__)

DOCUMENT_INSTRUCTIONS = (
    "Extract and summarize the key information from this document. "
    "Preserve important facts, dates, names, and concepts. "
    "Format the output as clear, searchable text."
)
WEB_INSTRUCTIONS = (
    "Extract and summarize the main content from this webpage. "
    "Focus on the article or main content, ignoring navigation, ads, and boilerplate. "
    "Preserve key facts and information."
)
IMAGE_PROMPT = (
    "Describe this image in detail. Include any text, objects, people, colors, "
    "and context you can identify. Make the description searchable and informative."
)
AUDIO_PLACEHOLDER = (
    "Audio transcription: [Audio file uploaded - transcription service integration pending]"
)
IMAGE_PENDING = "Image uploaded - description pending"

_SCRIPT_RE = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[^>]*>[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")
_TITLE_RE = re.compile(r"<title>([^<]*)</title>", re.IGNORECASE)


def html_to_text(html: str) -> str:
    """Drop scripts, styles and tags, collapse whitespace."""
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    return _SPACE_RE.sub(" ", text).strip()


def extract_title(html: str) -> str | None:
    match = _TITLE_RE.search(html)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


class Summarizer(Protocol):
    async def summarize(self, instructions: str, content: str) -> str: ...

    async def describe_image(
        self, prompt: str, content: bytes | None = None, url: str | None = None
    ) -> str: ...


class ContentProcessor:
    """Normalizes knowledge items and records the outcome in the store."""

    def __init__(
        self,
        store: KnowledgeStore,
        files: FileStorage,
        config: KnowledgeConfig,
        summarizer: Summarizer | None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            store: Item store to read from and update.
            files: Storage holding uploaded files.
            config: Text budgets and fetch timeout.
            summarizer: Model wrapper used for summaries and descriptions.
                None skips the model and keeps raw text.
            transport: Optional httpx transport for fetching remote sources.
        """
        self._store = store
        self._files = files
        self._config = config
        self._summarizer = summarizer
        self._transport = transport

    async def process(
        self,
        item_id: str,
        text: str | None = None,
        url: str | None = None,
    ) -> KnowledgeItem:
        """Normalize one item and mark it completed.

        Args:
            item_id: Item to process.
            text: Note text overriding the stored original (text items).
            url: Page URL overriding the stored original (web items).

        Returns:
            The completed item.

        Raises:
            ContentProcessingError: If the item is unknown or its source
                cannot be read. The item is marked failed in the latter case.
        """
        item = self._store.get_item(item_id)
        if item is None:
            raise ContentProcessingError(f"Knowledge item not found: {item_id}")

        self._store.mark_processing(item.id)
        logger.info(f"Processing {item.modality.value} item {item.id}: {item.title}")

        try:
            processed, title = await self._normalize(item, text=text, url=url)
        except Exception:
            self._store.fail_item(item.id)
            raise

        completed = self._store.complete_item(item.id, processed, title=title)
        logger.info(f"Content processed successfully for item: {item.id}")
        return completed

    async def process_in_background(self, item_id: str) -> None:
        """Background-task entry point; failures are logged, not raised."""
        try:
            await self.process(item_id)
        except Exception as e:
            logger.error(f"Processing failed for item {item_id}: {e}")

    async def handle_request(self, request: ProcessContentRequest) -> ProcessContentResponse:
        """Resolve the item named by an ingestion trigger and process it."""
        if request.item_id:
            item = self._store.get_item(request.item_id)
        else:
            item = self._store.find_item(
                file_name=request.file_name, url=request.url, title=request.title
            )

        if item is None:
            logger.info("No item found to process")
            return ProcessContentResponse(message="No item found")

        completed = await self.process(item.id, text=request.text, url=request.url)
        return ProcessContentResponse(success=True, item_id=completed.id)

    async def _normalize(
        self, item: KnowledgeItem, text: str | None, url: str | None
    ) -> tuple[str, str | None]:
        if item.modality == Modality.TEXT:
            return text or item.original_content, None
        if item.modality == Modality.DOCUMENT:
            return await self._normalize_document(item), None
        if item.modality == Modality.WEB:
            return await self._normalize_web(url or item.original_content)
        if item.modality == Modality.IMAGE:
            return await self._normalize_image(item), None
        return AUDIO_PLACEHOLDER, None

    async def _normalize_document(self, item: KnowledgeItem) -> str:
        raw = await self._read_source_text(item.original_content)
        source = raw[: self._config.source_chars]
        summary = await self._summarize(DOCUMENT_INSTRUCTIONS, f"Document content:\n\n{source}")
        return summary or raw[: self._config.document_fallback_chars]

    async def _normalize_web(self, target_url: str) -> tuple[str, str | None]:
        html = await self._fetch_text(target_url)
        page_text = html_to_text(html)[: self._config.source_chars]
        summary = await self._summarize(
            WEB_INSTRUCTIONS, f"Webpage content from {target_url}:\n\n{page_text}"
        )
        return summary or page_text[: self._config.web_fallback_chars], extract_title(html)

    async def _normalize_image(self, item: KnowledgeItem) -> str:
        source = item.original_content
        image_url = source if _is_url(source) else None
        content = None if image_url else self._read_file(source)
        if self._summarizer is None:
            return IMAGE_PENDING
        try:
            description = await self._summarizer.describe_image(
                IMAGE_PROMPT, content=content, url=image_url
            )
        except Exception as e:
            logger.warning(f"Image description failed for item {item.id}: {e}")
            return IMAGE_PENDING
        return description or "Image uploaded"

    async def _summarize(self, instructions: str, content: str) -> str:
        if self._summarizer is None:
            return ""
        try:
            return await self._summarizer.summarize(instructions, content)
        except Exception as e:
            logger.warning(f"Summarization failed, keeping raw text: {e}")
            return ""

    async def _read_source_text(self, source: str) -> str:
        if _is_url(source):
            return await self._fetch_text(source)
        return self._read_file(source).decode("utf-8", errors="replace")

    def _read_file(self, key: str) -> bytes:
        try:
            return self._files.read(key)
        except (FileNotFoundError, ValueError) as e:
            raise ContentProcessingError(f"Stored file not available: {key}") from e

    async def _fetch_text(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self._config.fetch_timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.text
        except httpx.HTTPError as e:
            raise ContentProcessingError(f"Failed to fetch {url}: {e}") from e


def _is_url(value: str) -> bool:
    return value.lower().startswith(("http://", "https://"))
