"""Incremental decoder for the chat event stream.

Wire format: lines separated by ``\\n`` (a trailing ``\\r`` is dropped);
``:`` starts a comment, blank lines separate events, ``data: <json>``
carries ``{"choices": [{"delta": {"content": "..."}}]}`` and
``data: [DONE]`` ends the stream.

Chunks may split lines and multi-byte characters anywhere; the decoder
keeps the unterminated tail until the rest arrives. A frame that fails to
parse is skipped without ending the stream. Whatever is left without a
newline when input ends is dropped.
"""

import codecs
import json
from collections.abc import AsyncIterable, Callable

DATA_PREFIX = "data: "
COMMENT_PREFIX = ":"
DONE_SENTINEL = "[DONE]"

# Receives (buffer_id, full_text_so_far) after every non-empty delta
Sink = Callable[[str, str], None]


def extract_delta(payload: str) -> str | None:
    """Text delta of one data frame, or None if absent or unparseable."""
    try:
        delta = json.loads(payload)["choices"][0]["delta"].get("content")
    except (ValueError, KeyError, IndexError, TypeError, AttributeError):
        return None
    return delta if isinstance(delta, str) and delta else None


class StreamDecoder:
    """Folds event-stream bytes into one growing message text."""

    def __init__(self, buffer_id: str, sink: Sink, encoding: str = "utf-8") -> None:
        self.buffer_id = buffer_id
        self._sink = sink
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._residual = ""
        self._text = ""
        self.done = False

    @property
    def text(self) -> str:
        """Accumulated message text."""
        return self._text

    def feed(self, chunk: bytes) -> bool:
        """Consume one chunk of bytes.

        Returns:
            True once the terminator has been seen; later chunks are ignored.
        """
        if self.done:
            return True

        self._residual += self._decoder.decode(chunk)
        if "\n" not in self._residual:
            return False

        *lines, self._residual = self._residual.split("\n")
        for line in lines:
            self._handle_line(line)
            if self.done:
                self._residual = ""
                break
        return self.done

    def close(self) -> str:
        """Signal end of input; an unterminated trailing line is dropped."""
        self._decoder.decode(b"", final=True)
        self._residual = ""
        self.done = True
        return self._text

    def _handle_line(self, line: str) -> None:
        if line.endswith("\r"):
            line = line[:-1]
        if not line.strip() or line.startswith(COMMENT_PREFIX):
            return
        if not line.startswith(DATA_PREFIX):
            return

        payload = line[len(DATA_PREFIX):].strip()
        if payload == DONE_SENTINEL:
            self.done = True
            return

        delta = extract_delta(payload)
        if delta is None:
            return

        self._text += delta
        self._sink(self.buffer_id, self._text)


async def decode_stream(
    chunks: AsyncIterable[bytes],
    buffer_id: str,
    sink: Sink,
) -> str:
    """Run a decoder over an async byte source until it ends or hits ``[DONE]``.

    Errors raised by the source propagate to the caller.

    Returns:
        The accumulated message text.
    """
    decoder = StreamDecoder(buffer_id, sink)
    async for chunk in chunks:
        if decoder.feed(chunk):
            break
    return decoder.close()
