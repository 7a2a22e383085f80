"""Merging of the toolchain's output streams into line events."""

from __future__ import annotations

import codecs
import queue
import threading
from collections.abc import Iterator
from typing import BinaryIO

from .models import LineEvent, StreamSource

_DONE = object()


class LineSplitter:
    """Incrementally decode one byte stream into line events.

    Every newline-terminated line becomes a final event. When a chunk ends in
    the middle of a line, one partial event carries the fragment read so far;
    the same text is emitted again, complete and final, once its newline
    arrives.

    Examples:
        splitter = LineSplitter(StreamSource.STDERR)
        splitter.feed(b"first\\nsec")  # [final "first", partial "sec"]
        splitter.close()  # [final "sec"]
    """

    def __init__(self, source: StreamSource):
        self.source = source
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[LineEvent]:
        self._buffer += self._decoder.decode(chunk)
        events = self._split()
        if self._buffer:
            events.append(LineEvent(self.source, self._buffer, final=False))
        return events

    def close(self) -> list[LineEvent]:
        self._buffer += self._decoder.decode(b"", final=True)
        events = self._split()
        if self._buffer:
            events.append(LineEvent(self.source, self._buffer))
            self._buffer = ""
        return events

    def _split(self) -> list[LineEvent]:
        *lines, self._buffer = self._buffer.split("\n")
        return [LineEvent(self.source, line.removesuffix("\r")) for line in lines]


def _pump(
    stream: BinaryIO, source: StreamSource, events: queue.Queue, chunk_size: int
) -> None:
    splitter = LineSplitter(source)
    try:
        while True:
            chunk = stream.read1(chunk_size)
            if not chunk:
                break
            for event in splitter.feed(chunk):
                events.put(event)
        for event in splitter.close():
            events.put(event)
    except BaseException as error:
        events.put(error)
    finally:
        events.put(_DONE)


def merge_streams(
    stdout: BinaryIO | None, stderr: BinaryIO | None, chunk_size: int = 64 * 1024
) -> Iterator[LineEvent]:
    """Read both streams concurrently and yield their events as they arrive.

    Each stream keeps its own order; events of different streams are
    interleaved in arrival order. An error raised while reading a stream is
    re-raised from the iterator.

    Args:
        stdout: Standard output of the process, if piped.
        stderr: Standard error of the process, if piped.
        chunk_size: Maximum number of bytes read at once.

    Yields:
        LineEvent: Final and partial line events.
    """
    events: queue.Queue = queue.Queue()
    readers = []
    for stream, source in ((stdout, StreamSource.STDOUT), (stderr, StreamSource.STDERR)):
        if stream is None:
            continue
        reader = threading.Thread(
            target=_pump,
            args=(stream, source, events, chunk_size),
            name=f"deno-report-{source.value}",
            daemon=True,
        )
        reader.start()
        readers.append(reader)

    remaining = len(readers)
    while remaining:
        item = events.get()
        if item is _DONE:
            remaining -= 1
        elif isinstance(item, BaseException):
            raise item
        else:
            yield item

    for reader in readers:
        reader.join()
