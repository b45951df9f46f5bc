"""FastAPI endpoints for the Second Brain service.

HTTP and streaming routes with async request handling. The chat endpoint
relays the language model's Server-Sent Events stream.

Endpoints:
    - GET /health: Service health status
    - POST /chat: Retrieval-augmented streamed chat
    - GET /knowledge: Knowledge items, newest first
    - POST /knowledge/text, /knowledge/url, /knowledge/upload: Add content
    - DELETE /knowledge/{id}: Remove an item
    - POST /knowledge/process: Normalize an item into searchable text
"""

from second_brain.api.app import app, create_app

__all__ = ["app", "create_app"]
