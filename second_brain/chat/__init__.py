"""Retrieval-augmented chat pipeline.

Flow per chat call:
    1. ContextRetriever finds excerpts for the latest user turn
    2. assemble_request prepends the system instruction with that context
    3. CompletionRelay streams the backend's answer back untouched
"""

from second_brain.chat.prompt import assemble_request, build_system_instruction
from second_brain.chat.relay import CompletionRelay, RelayStream
from second_brain.chat.retriever import ContextRetriever

__all__ = [
    "CompletionRelay",
    "ContextRetriever",
    "RelayStream",
    "assemble_request",
    "build_system_instruction",
]
