"""Server-Sent-Events frame decoder for the agent backend stream.

Frames are separated by a blank line. Only ``data:`` lines matter; each one
carries a single JSON event. Bad JSON is dropped with a warning so one broken
frame never costs the rest of the stream.
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"
_DATA_PREFIX = "data:"
_FRAME_SEPARATOR = "\n\n"


def parse_frame(raw_frame: str) -> list[Any]:
    """Return the parsed JSON payloads of every ``data:`` line in *raw_frame*."""
    events: list[Any] = []
    for line in raw_frame.split("\n"):
        line = line.strip()
        if not line.startswith(_DATA_PREFIX):
            continue

        payload = line[len(_DATA_PREFIX):].strip()
        if not payload or payload == DONE_SENTINEL:
            continue

        try:
            events.append(json.loads(payload))
        except (ValueError, RecursionError) as exc:
            logger.warning("Dropping unparseable SSE payload %r: %s", payload[:200], exc)
    return events


class SSEFrameDecoder:
    """Incremental decoder: feed raw bytes, get back the events of completed frames.

    UTF-8 is decoded incrementally so a multi-byte character split across
    chunks is reassembled. Each chunk is normalised and searched on its own,
    so a large frame arriving in many small chunks is only scanned once.
    Whatever is still buffered when the stream ends never formed a complete
    frame and is discarded.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._parts: list[str] = []
        # A trailing CR is held back until we know whether an LF follows it
        self._held_cr = False

    def feed(self, chunk: bytes) -> list[Any]:
        text = self._decoder.decode(chunk)
        if self._held_cr:
            text = "\r" + text
        self._held_cr = text.endswith("\r")
        if self._held_cr:
            text = text[:-1]
        text = text.replace("\r\n", "\n")

        events: list[Any] = []
        if text.startswith("\n") and self._parts and self._parts[-1].endswith("\n"):
            # Separator straddles the previous chunk and this one
            events.extend(parse_frame("".join(self._parts)[:-1]))
            self._parts = []
            text = text[1:]

        while _FRAME_SEPARATOR in text:
            raw_frame, text = text.split(_FRAME_SEPARATOR, 1)
            self._parts.append(raw_frame)
            events.extend(parse_frame("".join(self._parts)))
            self._parts = []

        if text:
            self._parts.append(text)
        return events

    @property
    def pending(self) -> str:
        """Text received since the last complete frame."""
        return "".join(self._parts) + ("\r" if self._held_cr else "")


async def iter_sse_events(chunks: AsyncIterable[bytes]) -> AsyncIterator[Any]:
    """Lazily yield parsed events from an async byte stream until it ends."""
    decoder = SSEFrameDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event

    if decoder.pending.strip():
        logger.debug("Discarding %d bytes of incomplete trailing SSE frame", len(decoder.pending))
