"""System prompt assembly."""

from collections.abc import Sequence

from second_brain.models.schemas import AssembledRequest, ConversationTurn, KnowledgeExcerpt

SYSTEM_TEMPLATE = """You are an intelligent AI assistant serving as a "Second Brain" - a personal knowledge companion. You have access to the user's knowledge base which includes documents, audio transcripts, web content, notes, and images.

Your responsibilities:
1. Answer questions accurately based on the provided context from the user's knowledge base
2. Synthesize information from multiple sources when relevant
3. Support temporal queries (e.g., "what did I work on last week")
4. Be helpful, concise, and cite your sources when possible
5. If you don't have relevant information in the knowledge base, say so clearly"""

CONTEXT_HEADER = "RELEVANT CONTEXT FROM KNOWLEDGE BASE:"
NO_CONTEXT_NOTICE = (
    "Note: The knowledge base is currently empty or no relevant content "
    "was found for this query."
)
EXCERPT_SEPARATOR = "\n\n---\n\n"


def format_excerpt(excerpt: KnowledgeExcerpt) -> str:
    """Render one excerpt as ``[MODALITY - TITLE - DATE]`` plus its text."""
    if excerpt.captured_at:
        captured = excerpt.captured_at
        date = f"{captured.month}/{captured.day}/{captured.year}"
    else:
        date = "Unknown date"
    return f"[{excerpt.modality.value.upper()} - {excerpt.title} - {date}]\n{excerpt.excerpt_text}"


def build_system_instruction(excerpts: Sequence[KnowledgeExcerpt]) -> str:
    if excerpts:
        context = EXCERPT_SEPARATOR.join(format_excerpt(e) for e in excerpts)
        return f"{SYSTEM_TEMPLATE}\n\n\n\n{CONTEXT_HEADER}\n{context}"
    return f"{SYSTEM_TEMPLATE}\n\n\n\n{NO_CONTEXT_NOTICE}"


def assemble_request(
    excerpts: Sequence[KnowledgeExcerpt],
    turns: Sequence[ConversationTurn],
) -> AssembledRequest:
    """Build the outbound request; caller turns are kept as given."""
    return AssembledRequest(
        system_instruction=build_system_instruction(excerpts),
        turns=tuple(turns),
    )
