"""Agno-backed summarizer used to normalize ingested content.

The chat path does not go through Agno: it relays the backend's raw
event stream. Ingestion, on the other hand, needs one complete answer per
item (a document summary, a page digest, an image description), which is
what an Agno agent run returns.
"""

import logging

from agno.agent import Agent
from agno.media import Image
from agno.models.openai import OpenAIChat

from second_brain.agent.config import LLMConfig, get_llm_config

logger = logging.getLogger(__name__)


class ContentSummarizer:
    """Runs one-shot Agno agents over ingested content."""

    def __init__(self, config: LLMConfig | None = None) -> None:
        """Initialize the summarizer.

        Args:
            config: Optional model configuration.
                    Loads from environment if not provided.
        """
        self._config = config or get_llm_config()
        self._model = self._create_model()

    def _create_model(self) -> OpenAIChat:
        return OpenAIChat(
            id=self._config.model_name,
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )

    def _create_agent(self, instructions: str | None = None) -> Agent:
        return Agent(
            model=self._model,
            instructions=instructions,
            markdown=False,
        )

    async def summarize(self, instructions: str, content: str) -> str:
        """Condense text into searchable prose.

        Args:
            instructions: What to extract and how to format it.
            content: Raw source text.

        Returns:
            The model's answer, empty if it produced none.
        """
        agent = self._create_agent(instructions)
        response = await agent.arun(content)
        return response.content or ""

    async def describe_image(
        self,
        prompt: str,
        content: bytes | None = None,
        url: str | None = None,
    ) -> str:
        """Describe an image given as raw bytes or a URL."""
        agent = self._create_agent()
        image = Image(content=content) if content is not None else Image(url=url)
        response = await agent.arun(prompt, images=[image])
        return response.content or ""


# Module-level singleton instance
_summarizer: ContentSummarizer | None = None


def get_content_summarizer() -> ContentSummarizer:
    """Get or create the global summarizer."""
    global _summarizer
    if _summarizer is None:
        _summarizer = ContentSummarizer()
    return _summarizer
