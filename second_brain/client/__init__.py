"""Client side of the chat stream.

Responsibilities:
    - Incremental event-stream decoding across arbitrary chunk boundaries
    - Conversation state as ordered message buffers
    - Fallback message when the connection drops mid-answer
"""

from second_brain.client.chat_client import (
    FALLBACK_MESSAGE,
    ChatClient,
    ChatRequestError,
    Conversation,
    MessageBuffer,
)
from second_brain.client.decoder import StreamDecoder, decode_stream, extract_delta

__all__ = [
    "FALLBACK_MESSAGE",
    "ChatClient",
    "ChatRequestError",
    "Conversation",
    "MessageBuffer",
    "StreamDecoder",
    "decode_stream",
    "extract_delta",
]
