from __future__ import annotations

import logging
import os

from bytenav.core.config import NavigatorConfig
from bytenav.core.cursor import LineCursor, SearchCursor
from bytenav.core.index import Chained, MatchIndex, NoMatch, ScanOutcome, SingleSpan
from bytenav.core.io import ByteSource, FileSource
from bytenav.core.scanner import DEFAULT_CHUNK
from bytenav.core.spans import Span

logger = logging.getLogger(__name__)


def _tail(start: int, size: int, sep: bytes) -> Span:
    """Last line, closed by the virtual separator at `[size, size + len(sep))`."""
    return Span(start, size + len(sep), match_start=size, match_end=size + len(sep))


class Navigator:
    """Search and line navigation over one byte source.

    Every search starts its own `MatchIndex`; the returned cursor grows
    that index on demand. Closing the navigator closes the source.
    """

    def __init__(
        self,
        source: ByteSource,
        *,
        chunk_size: int = DEFAULT_CHUNK,
        separator: bytes | str = b"\n",
        encoding: str = "utf-8",
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._source = source
        self._chunk_size = chunk_size
        self._encoding = encoding
        self._separator = self._to_bytes(separator)
        self._closed = False

    @classmethod
    def open(
        cls, path: str | os.PathLike[str], *, config: NavigatorConfig | None = None
    ) -> Navigator:
        cfg = config or NavigatorConfig()
        source = FileSource(
            path,
            page_size=cfg.page_size,
            cache_pages=cfg.cache_pages,
            use_mmap=cfg.use_mmap,
        )
        return cls(
            source,
            chunk_size=cfg.chunk_size,
            separator=cfg.separator,
            encoding=cfg.encoding,
        )

    async def __aenter__(self) -> Navigator:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def encoding(self) -> str:
        return self._encoding

    @property
    def separator(self) -> bytes:
        return self._separator

    @property
    def closed(self) -> bool:
        return self._closed

    async def size(self) -> int:
        return await self._source.size()

    async def read(self, start: int, length: int) -> bytes:
        return await self._source.read_range(start, length)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._source.close()

    async def search(self, pattern: bytes | str) -> SearchCursor | None:
        """Alias for `search_first`."""
        return await self.search_first(pattern)

    async def search_first(self, pattern: bytes | str, start: int = 0) -> SearchCursor | None:
        """Cursor on the first occurrence at or after `start`, or None."""
        value = self._to_bytes(pattern)
        index = self._new_index()
        outcome = await index.outcome(value, start, await self.size())
        return self._search_cursor(index, outcome, value)

    async def search_last(
        self, pattern: bytes | str, start: int | None = None
    ) -> SearchCursor | None:
        """Cursor on the last occurrence ending at or before `start` (default: the end)."""
        value = self._to_bytes(pattern)
        stop = await self.size() if start is None else start
        index = self._new_index()
        outcome = await index.outcome(value, 0, stop, reverse=True)
        return self._search_cursor(index, outcome, value)

    async def first_line(self, separator: bytes | str | None = None) -> LineCursor:
        sep = self._separator if separator is None else self._to_bytes(separator)
        index = self._new_index()
        outcome = await self._locate_line(index, sep, reverse=False)
        if isinstance(outcome, SingleSpan):
            return LineCursor(index, outcome.span, sep)
        first = index.spans.first_item(outcome.span)
        first.start = 0
        return LineCursor(index, first, sep)

    async def last_line(self, separator: bytes | str | None = None) -> LineCursor:
        sep = self._separator if separator is None else self._to_bytes(separator)
        index = self._new_index()
        outcome = await self._locate_line(index, sep, reverse=True)
        if isinstance(outcome, SingleSpan):
            return LineCursor(index, outcome.span, sep)
        last = index.spans.last_item(outcome.span)
        size = await self.size()
        if last.end < size:
            # Content follows the last separator: it is the last line.
            last = index.spans.add(last, _tail(last.end, size, sep))
        return LineCursor(index, last, sep)

    async def line_at(self, offset: int, separator: bytes | str | None = None) -> LineCursor:
        """Cursor on the line holding byte `offset`.

        A line owns its separator, so an offset inside a separator belongs to
        the line it ends. Offsets at or past the end give the last line.
        """
        if offset < 0:
            raise ValueError(f"offset must not be negative: {offset}")
        sep = self._separator if separator is None else self._to_bytes(separator)
        size = await self.size()
        if offset >= size:
            return await self.last_line(sep)
        index = self._new_index()
        # The first separator ending after `offset` may start up to len(sep) - 1 before it.
        span = await index.scan_forward(sep, max(0, offset - len(sep) + 1), size)
        if span is None:
            prev = await index.scan_reverse(sep, 0, offset)
            start = 0 if prev is None else prev.end
            span = index.spans.add(prev, _tail(start, size, sep))
        return LineCursor(index, span, sep)

    async def _locate_line(
        self, index: MatchIndex, sep: bytes, *, reverse: bool
    ) -> SingleSpan | Chained:
        size = await self.size()
        outcome = await index.outcome(sep, 0, size, reverse=reverse)
        if isinstance(outcome, NoMatch):
            return SingleSpan(index.spans.add(None, _tail(0, size, sep)))
        return outcome

    def _search_cursor(
        self, index: MatchIndex, outcome: ScanOutcome, pattern: bytes
    ) -> SearchCursor | None:
        if isinstance(outcome, NoMatch):
            logger.debug("no occurrence of %r", pattern)
            return None
        return SearchCursor(index, outcome.span, pattern)

    def _new_index(self) -> MatchIndex:
        if self._closed:
            raise ValueError("navigator is closed")
        return MatchIndex(self._source, chunk_size=self._chunk_size)

    def _to_bytes(self, value: bytes | str) -> bytes:
        data = value.encode(self._encoding) if isinstance(value, str) else bytes(value)
        if not data:
            raise ValueError("pattern must not be empty")
        return data
