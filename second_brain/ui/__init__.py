"""NiceGUI interface - thin visualization layer for the knowledge base.

Responsibilities:
    - Chat message display with incremental streaming updates
    - Adding notes and web pages to the knowledge base
    - Knowledge item list with processing status

Contains no retrieval or decoding logic; the chat client owns the stream
and this layer only re-renders the message it reports.
"""
