"""Streaming a byte range of a Telegram file in aligned chunks."""

from __future__ import annotations

import logging
from typing import AsyncIterator, Awaitable, Callable

log = logging.getLogger("filestreambot.reader")

DEFAULT_CHUNK_SIZE = 1024 * 1024

ChunkFetcher = Callable[[int, int], Awaitable[bytes]]


class TelegramReader:
    """Reads bytes ``start`` to ``end`` inclusive of a remote file.

    ``fetch_chunk(offset, limit)`` returns up to ``limit`` bytes at ``offset``;
    offsets are always multiples of ``chunk_size``.
    """

    def __init__(
        self,
        fetch_chunk: ChunkFetcher,
        start: int,
        end: int,
        content_length: int,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk size must be positive")
        if start < 0 or end < start:
            raise ValueError(f"invalid range {start}-{end}")
        self._fetch_chunk = fetch_chunk
        self._start = start
        self._end = end
        self._content_length = content_length
        self._chunk_size = chunk_size
        self._bytes_read = 0
        self._parts = self._part_stream()
        log.debug("Start")

    async def _part_stream(self) -> AsyncIterator[bytes]:
        size = self._chunk_size
        offset = self._start - self._start % size
        first_cut = self._start - offset
        last_cut = self._end % size + 1
        part_count = (self._end - offset + size) // size
        for part in range(1, part_count + 1):
            data = await self._fetch_chunk(offset, size)
            if not data:
                return
            if part_count == 1:
                data = data[first_cut:last_cut]
            elif part == 1:
                data = data[first_cut:]
            elif part == part_count:
                data = data[:last_cut]
            offset += size
            log.debug("Part %d/%d", part, part_count)
            yield data

    async def _next_part(self) -> bytes:
        async for data in self._parts:
            return data
        return b""

    async def read(self) -> bytes:
        """Return the next piece of the range, or ``b""`` once it is complete."""
        if self._bytes_read == self._content_length:
            log.debug("EOF (bytes read == content length)")
            return b""
        data = await self._next_part()
        if not data:
            self._parts = self._part_stream()
            data = await self._next_part()
            if not data:
                raise EOFError("file data ended before the requested range was read")
        self._bytes_read += len(data)
        return data

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while data := await self.read():
            yield data