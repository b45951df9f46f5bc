"""Language model configuration and Agno-based content summarization.

Responsibilities:
    - Backend settings (key, base URL, model, sampling) shared with the chat relay
    - One-shot agent runs that turn documents, pages and images into searchable text
"""

from second_brain.agent.config import LLMConfig, get_llm_config
from second_brain.agent.summarizer import ContentSummarizer, get_content_summarizer

__all__ = ["ContentSummarizer", "LLMConfig", "get_content_summarizer", "get_llm_config"]
