"""Context retrieval for the latest user question.

Retrieval is best effort: a store failure is logged and the chat goes on
without context instead of failing.
"""

import logging
from collections.abc import Sequence
from typing import Protocol

from second_brain.models.schemas import ConversationTurn, KnowledgeExcerpt, KnowledgeItem

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
DEFAULT_EXCERPT_CHARS = 1000

_PUNCTUATION = "\"'`.,;:!?()[]{}<>"


class SearchableStore(Protocol):
    def search(self, terms: list[str], limit: int) -> list[KnowledgeItem]: ...


def latest_user_utterance(turns: Sequence[ConversationTurn]) -> str | None:
    """Content of the last user turn, or None if there is none."""
    for turn in reversed(turns):
        if turn.role == "user":
            return turn.content
    return None


def tokenize(text: str) -> list[str]:
    """Split on whitespace into unique lower-cased terms, in order.

    Surrounding punctuation is trimmed so "week?" still matches "week".
    """
    terms: list[str] = []
    for raw in text.split():
        term = raw.strip(_PUNCTUATION).lower()
        if term and term not in terms:
            terms.append(term)
    return terms


class ContextRetriever:
    """Finds completed knowledge items relevant to the conversation."""

    def __init__(
        self,
        store: SearchableStore,
        limit: int = DEFAULT_LIMIT,
        excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
    ) -> None:
        self._store = store
        self._limit = limit
        self._excerpt_chars = excerpt_chars

    def retrieve(self, turns: Sequence[ConversationTurn]) -> list[KnowledgeExcerpt]:
        """Return at most ``limit`` excerpts, most relevant first.

        No search is issued when the conversation has no user turn.
        """
        query = latest_user_utterance(turns)
        if query is None:
            return []

        terms = tokenize(query)
        if not terms:
            return []

        try:
            items = self._store.search(terms, limit=self._limit)
        except Exception as e:
            logger.warning(f"Knowledge search failed, continuing without context: {e}")
            return []

        excerpts = [
            KnowledgeExcerpt(
                source_id=item.id,
                title=item.title,
                modality=item.modality,
                captured_at=item.source_timestamp,
                excerpt_text=(item.processed_content or "")[: self._excerpt_chars],
            )
            for item in items[: self._limit]
        ]
        logger.info(f"Chat request - found {len(excerpts)} relevant items")
        return excerpts
