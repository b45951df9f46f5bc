"""Unit tests for individual components in isolation.

Coverage:
    - client/: Stream decoding and conversation buffers
    - chat/: Retrieval, prompt assembly and relay error mapping
    - knowledge/: Item store, file storage and ingestion
    - agent/: Model configuration and the Agno summarizer

Uses mocks and httpx.MockTransport for external services.
"""
