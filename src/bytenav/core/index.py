"""Incremental discovery of pattern occurrences into an ordered span list."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bytenav.core.io import ByteSource
from bytenav.core.scanner import (
    DEFAULT_CHUNK,
    chunk_size_for,
    find_occurrences,
    next_forward_window,
    next_reverse_window,
)
from bytenav.core.spans import Span, SpanList

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoMatch:
    """The scanned range holds no occurrence."""


@dataclass(frozen=True)
class SingleSpan:
    """One span stands for the whole resource (no separator anywhere)."""

    span: Span


@dataclass(frozen=True)
class Chained:
    """An occurrence was found; `span` is linked into the index's list."""

    span: Span


ScanOutcome = NoMatch | SingleSpan | Chained


class MatchIndex:
    """Span list of one search session plus the scans that grow it.

    Each public search starts a fresh index; cursors keep growing it as
    they move past what is already known.
    """

    def __init__(self, source: ByteSource, *, chunk_size: int = DEFAULT_CHUNK) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._source = source
        self._chunk_size = chunk_size
        self.spans = SpanList()
        self.reads = 0

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    async def size(self) -> int:
        return await self._source.size()

    async def read(self, position: int, length: int) -> bytes:
        return await self._source.read_range(position, length)

    async def scan_forward(
        self, pattern: bytes, start: int, stop: int, *, anchor: Span | None = None
    ) -> Span | None:
        """Scan `[start, stop)` toward the end until a window yields matches.

        Every match of that window is added to the list (next to `anchor`
        when given). Returns the first of them, or None when the range is
        exhausted without a match.
        """
        if not pattern:
            raise ValueError("pattern must not be empty")
        p_len = len(pattern)
        chunk = chunk_size_for(p_len, self._chunk_size)
        position = max(0, start)
        while position < stop:
            window = next_forward_window(position, chunk, p_len)
            length = min(window.read_length, stop - position)
            if length < p_len:
                break
            data = await self._read_window(position, length)
            offsets = find_occurrences(pattern, data)
            if offsets:
                spans = self._add_matches(offsets, p_len, position, anchor, read_reverse=False)
                return spans[0]
            if position + length >= stop:
                break
            position = window.next_position
        return None

    async def scan_reverse(
        self, pattern: bytes, start: int, stop: int, *, anchor: Span | None = None
    ) -> Span | None:
        """Scan `[start, stop)` toward the start until a window yields matches.

        Returns the last match of that window, or None.
        """
        if not pattern:
            raise ValueError("pattern must not be empty")
        p_len = len(pattern)
        chunk = chunk_size_for(p_len, self._chunk_size)
        start = max(0, start)
        current = stop
        while current > start:
            window = next_reverse_window(current, chunk, p_len, start)
            # Clip at `stop`: the window may reach half a pattern past it.
            length = min(window.length, stop - window.position)
            if length >= p_len:
                data = await self._read_window(window.position, length)
                offsets = find_occurrences(pattern, data)
                if offsets:
                    spans = self._add_matches(
                        offsets, p_len, window.position, anchor, read_reverse=True
                    )
                    return spans[-1]
            if window.position <= start:
                break
            # Step so consecutive windows share pattern_length + pattern_length // 2 bytes.
            current = window.position + p_len
        return None

    async def outcome(
        self, pattern: bytes, start: int, stop: int, *, reverse: bool = False
    ) -> ScanOutcome:
        """Scan a fresh range and wrap the result as a tagged outcome."""
        if reverse:
            span = await self.scan_reverse(pattern, start, stop)
        else:
            span = await self.scan_forward(pattern, start, stop)
        if span is None:
            return NoMatch()
        return Chained(span)

    async def _read_window(self, position: int, length: int) -> bytes:
        self.reads += 1
        logger.debug("read window [%d, %d)", position, position + length)
        return await self._source.read_range(position, length)

    def _add_matches(
        self,
        offsets: list[int],
        pattern_length: int,
        position: int,
        anchor: Span | None,
        *,
        read_reverse: bool,
    ) -> list[Span]:
        added: list[Span] = []
        prev = anchor
        if prev is None and len(self.spans):
            prev = self.spans.get(0)
        for offset in offsets:
            begin = position + offset
            span = Span(begin, begin + pattern_length, read_reverse=read_reverse)
            prev = self.spans.add(prev, span)
            added.append(prev)
        logger.debug(
            "added %d span(s) in [%d, %d)%s",
            len(added),
            added[0].start,
            added[-1].end,
            " (reverse)" if read_reverse else "",
        )
        return added
