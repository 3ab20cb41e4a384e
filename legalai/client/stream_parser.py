"""Turn relayed event-stream bytes back into text deltas"""

from __future__ import annotations

import codecs
import json

from pydantic import ValidationError

from legalai.models.chat import DATA_PREFIX, DONE_SENTINEL, StreamDelta


def parse_sse_line(line: str) -> str | None:
    """Return the text delta carried by one complete event-stream line.

    Lines without the ``data: `` prefix, the ``[DONE]`` sentinel and payloads
    that are not a well-formed delta event yield None.
    """
    if not line.startswith(DATA_PREFIX):
        return None
    data_str = line[len(DATA_PREFIX):].strip()
    if data_str == DONE_SENTINEL:
        return None
    try:
        data = json.loads(data_str)
    except json.JSONDecodeError:
        # Partial payloads at chunk boundaries are expected
        return None
    if not isinstance(data, dict):
        return None
    try:
        return StreamDelta.model_validate(data).text()
    except ValidationError:
        return None


class DeltaStreamParser:
    """Incremental decoder: bytes in, deltas out.

    Decoder state and the trailing partial line persist across ``feed``
    calls, so chunk boundaries may fall anywhere, including inside a
    multi-byte character or in the middle of a ``data:`` line.
    """

    def __init__(self):
        # Invalid bytes become U+FFFD instead of aborting the read loop
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return self._parse_lines(lines)

    def flush(self) -> list[str]:
        """Finish decoding and parse whatever line is left unterminated"""
        self._buffer += self._decoder.decode(b"", final=True)
        lines, self._buffer = [self._buffer], ""
        return self._parse_lines(lines)

    @staticmethod
    def _parse_lines(lines: list[str]) -> list[str]:
        deltas = []
        for line in lines:
            delta = parse_sse_line(line.rstrip("\r"))
            if delta:
                deltas.append(delta)
        return deltas
