"""
Stream Translator - turns the upstream ``data:`` event stream into text deltas.

The upstream sends UTF-8 text in arbitrary chunk boundaries. Lines end with
``\\n``; meaningful lines look like ``data: {json}`` or ``data: [DONE]``.
"""

import codecs
import json
from contextlib import aclosing
from typing import AsyncGenerator, AsyncIterable, List, Union

from loguru import logger

from ...models.internal import ZChatSession
from .streaming_utils import extract_text_from_chunk


DATA_PREFIX = "data: "
DONE_MARKER = "[DONE]"


class _StreamDone:
    def __repr__(self) -> str:
        return "STREAM_DONE"


STREAM_DONE = _StreamDone()


def parse_event_line(line: str) -> Union[str, _StreamDone, None]:
    """
    Interpret one complete upstream line.

    Returns:
        STREAM_DONE for the terminator, the delta text for a data event that
        carries text, None for everything else (including malformed JSON)
    """
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):]
    if payload == DONE_MARKER:
        return STREAM_DONE

    try:
        chunk = json.loads(payload)
    except ValueError:
        # Partial JSON from a chunk boundary; expected, not an error
        logger.debug(f"Skipping malformed stream line ({len(payload)} chars)")
        return None

    return extract_text_from_chunk(chunk)


class StreamTranslator:
    """
    Single-pass translator from upstream byte chunks to text deltas.

    Whatever has been emitted when iteration stops (terminator, upstream
    close, consumer closing the generator, or an error) is recorded as one
    assistant message on the session.
    """

    def __init__(self, chunks: AsyncIterable[bytes], session: ZChatSession):
        self._chunks = chunks
        self._session = session
        self._parts: List[str] = []
        self._started = False

    @property
    def text(self) -> str:
        """Concatenation of every delta emitted so far."""
        return "".join(self._parts)

    async def _lines(self) -> AsyncGenerator[str, None]:
        """Split raw bytes ourselves so multi-byte characters and lines may straddle any chunk boundary."""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""
        async for chunk in self._chunks:
            buffer += decoder.decode(chunk)
            *complete, buffer = buffer.split("\n")
            for line in complete:
                yield line

        buffer += decoder.decode(b"", final=True)
        for line in buffer.split("\n"):
            if line:
                yield line

    async def deltas(self) -> AsyncGenerator[str, None]:
        """
        Yield non-empty text deltas in upstream order.

        Raises:
            RuntimeError: If called a second time
        """
        if self._started:
            raise RuntimeError("StreamTranslator can only be consumed once")
        self._started = True

        try:
            async with aclosing(self._lines()) as lines:
                async for line in lines:
                    event = parse_event_line(line)
                    if event is STREAM_DONE:
                        return
                    if event:
                        self._parts.append(event)
                        yield event
        finally:
            self._session.add_message("assistant", self.text)
            logger.debug(f"Stream finished with {len(self._parts)} deltas ({len(self.text)} chars)")
