"""Newline-delimited JSON (ndjson) progress stream.

A search response is a sequence of ``progress`` events followed by one
``complete`` event, each encoded as a single JSON line.  Readers must not
assume that one network read carries exactly one event, so
:class:`NdjsonDecoder` buffers partial lines between reads.
"""

from __future__ import annotations

import codecs
import json
from typing import (
    Any,
    AsyncIterable,
    AsyncIterator,
    Iterable,
    Iterator,
    List,
    Mapping,
    Union,
)

NDJSON_MEDIA_TYPE = "application/x-ndjson"
STREAM_HEADERS = {"Cache-Control": "no-cache"}


def encode_event(event: Mapping[str, Any]) -> bytes:
    line = json.dumps(event, ensure_ascii=False, separators=(",", ":"))
    return (line + "\n").encode("utf-8")


async def encode_events(
    events: AsyncIterable[Mapping[str, Any]],
) -> AsyncIterator[bytes]:
    async for event in events:
        yield encode_event(event)


class NdjsonDecoder:
    """Incremental ndjson parser fed with arbitrary chunks."""

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""

    def feed(self, chunk: Union[bytes, str]) -> List[Any]:
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        return [json.loads(line) for line in lines if line.strip()]

    def close(self) -> List[Any]:
        """Flush a trailing line that had no terminating newline."""
        rest = self._buffer + self._utf8.decode(b"", final=True)
        self._buffer = ""
        return [json.loads(rest)] if rest.strip() else []


def iter_ndjson(chunks: Iterable[Union[bytes, str]]) -> Iterator[Any]:
    decoder = NdjsonDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
    yield from decoder.close()


__all__ = [
    "NDJSON_MEDIA_TYPE",
    "STREAM_HEADERS",
    "encode_event",
    "encode_events",
    "NdjsonDecoder",
    "iter_ndjson",
]
