"""Integration tests for components working together as a system.

Coverage:
    - POST /chat streaming, context injection and error mapping
    - Knowledge endpoints with real SQLite and file storage
    - ChatClient against the running app

Runs the real FastAPI app in-process; only the model backend is scripted.
"""
